"""
Main entry point for auto-ffmpeg when run from a checkout.

Run `python main.py [FILE | DIRECTORY]` next to `config.txt`. Without an
argument the directory holding `config.txt` is converted.
"""

import sys

from loguru import logger

from auto_ffmpeg.cli import main
from auto_ffmpeg.config.common import LOGGER_FORMAT

# Initial logger setup; `main` reconfigures it from config.user.yaml.
logger.remove()
logger.add(sys.stderr, level="DEBUG" if __debug__ else "INFO", format=LOGGER_FORMAT)


if __name__ == "__main__":
    sys.exit(main())
