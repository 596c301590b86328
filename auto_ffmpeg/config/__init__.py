"""
Configuration package for auto-ffmpeg.

- common.py: shared constants and the optional `config.user.yaml` loader.
- loader.py: parses `config.txt` into the immutable `Configuration`, including
  the two-level probe-match mini-language.
"""
