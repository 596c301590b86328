"""
This package contains the batch pipeline of auto-ffmpeg.

The pipeline discovers the jobs of a directory, fills the job queue, and runs
the fixed-size worker pool that filters and converts each file.
"""
