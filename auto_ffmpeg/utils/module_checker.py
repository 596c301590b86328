"""
This module provides the Modules class, which verifies that the external tools a
run depends on can be found before any job is dispatched.
"""
import os
import shlex
import shutil
from typing import List, Optional

from loguru import logger

from ..domain.models import Configuration


class Modules:
    """
    Checks for the encoder named in `cmd` and, when probe matching is enabled,
    for ffprobe.

    Missing tools are reported as warnings only: the command template may rely
    on shell built-ins or aliases that `shutil.which` cannot see.
    """

    @staticmethod
    def encoder_executable(cmd: str) -> Optional[str]:
        """Returns the first token of the command template, or None if it cannot be split."""
        try:
            parts = shlex.split(cmd, posix=os.name != "nt")
        except ValueError as e:
            logger.warning(f"Could not split command template to find the encoder: {e}")
            return None
        if not parts:
            return None
        return parts[0].strip('"')

    @staticmethod
    def is_available(executable: str) -> bool:
        return shutil.which(executable) is not None or os.path.isfile(executable)

    @classmethod
    def missing(cls, config: Configuration) -> List[str]:
        """Lists the required executables that cannot be located."""
        required: List[str] = []
        encoder = cls.encoder_executable(config.cmd)
        if encoder:
            required.append(encoder)
        if config.filter_by_probe:
            required.append(config.ffprobe_bin)
        return [exe for exe in required if not cls.is_available(exe)]

    @classmethod
    def run_all(cls, config: Configuration) -> None:
        for exe in cls.missing(config):
            logger.warning(
                f"'{exe}' was not found on PATH. Jobs using it will fail unless the shell can resolve it."
            )
