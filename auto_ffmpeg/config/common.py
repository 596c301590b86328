"""
Common configuration settings used throughout auto-ffmpeg.

This module holds the constants shared across the application (file names,
logging format, sentinels of the `config.txt` format) and the loader for the
optional `config.user.yaml`, which lets users point the tool at a specific
ffprobe build and tune logging without touching `config.txt`.
"""
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml
from loguru import logger

# --- Base Directory ---
# The "tool base directory": `config.txt`, `progress.txt` and the output of
# local mode live here. It defaults to the project root and can be moved with
# the AUTO_FFMPEG_HOME environment variable.
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
BASE_DIR = Path(os.environ.get("AUTO_FFMPEG_HOME", PROJECT_ROOT)).resolve()

CONFIG_FILE_NAME = "config.txt"
USER_CONFIG_FILE_NAME = "config.user.yaml"
PROGRESS_FILE_NAME = "progress.txt"
ERROR_LOG_FILE_NAME = "error.txt"


# --- config.txt Format ---
# Each line is `key>value`. Spaces around the key and the separator are ignored.
CONFIG_KEY_VALUE_SEPARATOR = ">"
# An `infilter` or `probe_match` value of "." disables that filter.
DISABLED_FILTER = "."
# `inext` is a pipe-delimited list of extensions, e.g. ".mkv|.mp4".
INEXT_SEPARATOR = "|"
# `probe_match` sections are separated by "~"; inside a section the stream
# selector and its regexes are separated by ";", e.g. "a;jpn~s;ass;forced".
PROBE_SECTION_SEPARATOR = "~"
PROBE_FIELD_SEPARATOR = ";"
# An `outext` of "keep" leaves the input's extension untouched.
KEEP_EXTENSION = "keep"
# The command template slot filled with the input, then the output path.
CMD_SLOT = "%s"
TRUE_VALUE = "true"

REQUIRED_KEYS = (
    "cmd", "count", "recursive", "outdir", "outmode", "infilter",
    "probe_match", "inext", "outext", "resume", "hide_window",
)


# --- Logging Configuration ---
LOGGER_FORMAT = (
    "<green>{time:MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "{thread.name} - <level>{message}</level>"
)
DEFAULT_LOG_LEVEL = "INFO"
LOG_FILE_ROTATION = "10 MB"


# --- CLI Behaviour ---
# Seconds the console stays open after the final banner, so a double-clicked
# run leaves its output readable.
EXIT_DELAY_SECONDS = 60
WORKER_THREAD_PREFIX = "worker"

DEFAULT_FFPROBE = "ffprobe"


@dataclass(frozen=True)
class UserConfig:
    """
    Settings read from `config.user.yaml`.

    Attributes:
        ffprobe_bin: Command or absolute path used to run ffprobe.
        log_level: Console log level.
        log_file: Optional path of an additional rotating log file.
    """

    ffprobe_bin: str = DEFAULT_FFPROBE
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: Optional[Path] = None


def _ffprobe_in(directory: Path) -> str:
    exe_name = "ffprobe.exe" if os.name == "nt" else "ffprobe"
    candidate = directory / exe_name
    if candidate.is_file():
        return str(candidate)
    logger.warning(
        f"'{exe_name}' not found in configured ffprobe_dir '{directory}'. Falling back to PATH."
    )
    return shutil.which(DEFAULT_FFPROBE) or DEFAULT_FFPROBE


def load_user_config(base_dir: Path = BASE_DIR) -> UserConfig:
    """
    Loads `config.user.yaml` from `base_dir`.

    The file is optional. A missing file yields the defaults; an unreadable or
    malformed one is reported and also yields the defaults, since none of its
    settings are required for a run.

    Expected layout:

        paths:
          ffprobe_dir: /opt/ffmpeg/bin
        logging:
          level: DEBUG
          file: auto_ffmpeg.log
    """
    user_config_path = base_dir / USER_CONFIG_FILE_NAME
    if not user_config_path.is_file():
        logger.debug(f"User config '{user_config_path}' not found. Using defaults.")
        return UserConfig()

    try:
        with user_config_path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Could not load or parse '{user_config_path}': {e}")
        return UserConfig()

    if not isinstance(raw, dict):
        logger.warning(f"'{user_config_path}' must contain a mapping. Using defaults.")
        return UserConfig()

    paths_config = raw.get("paths") or {}
    logging_config = raw.get("logging") or {}

    ffprobe_bin = DEFAULT_FFPROBE
    ffprobe_dir_str = paths_config.get("ffprobe_dir")
    if ffprobe_dir_str:
        ffprobe_bin = _ffprobe_in(Path(ffprobe_dir_str))

    log_file = None
    log_file_str = logging_config.get("file")
    if log_file_str:
        log_file = Path(log_file_str)
        if not log_file.is_absolute():
            log_file = base_dir / log_file

    return UserConfig(
        ffprobe_bin=ffprobe_bin,
        log_level=str(logging_config.get("level", DEFAULT_LOG_LEVEL)).upper(),
        log_file=log_file,
    )
