"""
auto-ffmpeg: bulk media transcoding driven by an external encoder.

The package discovers input files, filters them by name and by probed stream
content, and hands each one to a user-supplied encoder command line using a
fixed-size pool of worker threads. Progress can be recorded so an interrupted
batch resumes where it stopped.
"""

__version__ = "1.0.0"
