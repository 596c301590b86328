"""
Utilities package for auto-ffmpeg.

Modules:
    - process.py: `ProcessExecutor`, which launches the encoder command line
      either waiting for it or detached from it.
    - module_checker.py: startup check that the encoder and ffprobe can be found.
"""
