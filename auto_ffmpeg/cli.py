"""
Command-line entry point of auto-ffmpeg.

    auto-ffmpeg              convert the base directory
    auto-ffmpeg DIRECTORY    convert DIRECTORY
    auto-ffmpeg FILE         convert FILE in the background

All behaviour beyond the target is set in `config.txt`.
"""
import argparse
import sys
import time
from pathlib import Path
from typing import List, Optional

from loguru import logger

from .config.common import (
    BASE_DIR,
    EXIT_DELAY_SECONDS,
    LOG_FILE_ROTATION,
    LOGGER_FORMAT,
    UserConfig,
    load_user_config,
)
from .config.loader import load_configuration
from .domain.exceptions import AutoFFmpegException
from .pipeline.batch_pipeline import BatchController
from .utils.module_checker import Modules


def get_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Bulk-convert media files with the encoder command from config.txt."
    )
    parser.add_argument(
        "target",
        nargs="?",
        default=None,
        help="File or directory to convert (default: the directory holding config.txt).",
    )
    return parser.parse_args(argv)


def configure_logger(user_config: UserConfig):
    logger.remove()
    logger.add(sys.stderr, level=user_config.log_level, format=LOGGER_FORMAT)
    if user_config.log_file:
        logger.add(
            user_config.log_file,
            level=user_config.log_level,
            format=LOGGER_FORMAT,
            rotation=LOG_FILE_ROTATION,
            enqueue=True,
            encoding="utf-8",
            errors="backslashreplace",
        )


def main(argv: Optional[List[str]] = None, base_dir: Path = BASE_DIR, exit_delay: int = EXIT_DELAY_SECONDS) -> int:
    args = get_args(argv)
    raw_argc = 1 + (len(argv) if argv is not None else len(sys.argv) - 1)

    user_config = load_user_config(base_dir)
    configure_logger(user_config)

    target = Path(args.target) if args.target else None
    try:
        config = load_configuration(
            base_dir,
            argv=args.target or "",
            argc=raw_argc,
            user_config=user_config,
        )
    except AutoFFmpegException as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    Modules.run_all(config)

    logger.info("Working...")
    try:
        BatchController(config).run(target)
    except (AutoFFmpegException, OSError) as e:
        logger.error(f"Run aborted: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted by user.")
        return 130

    logger.success(f"Done. Exiting in {exit_delay} seconds...")
    time.sleep(exit_delay)
    return 0


if __name__ == "__main__":
    sys.exit(main())
