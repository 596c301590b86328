"""
Builds and launches the encoder command for one input file.
"""

from pathlib import Path
from typing import Optional

from loguru import logger

from ..config.common import CMD_SLOT
from ..domain.models import Configuration
from ..utils.process import ProcessExecutor


def build_output_path(config: Configuration, input_path: Path, out_dir: Path) -> Path:
    """`out_dir / input name`, with the extension replaced unless `outext` is "keep"."""
    output_path = out_dir / input_path.name
    if config.keep_extension:
        return output_path
    return output_path.with_suffix(config.outext)


def build_command(template: str, input_path: Path, output_path: Path) -> str:
    """
    Fills the first two `%s` slots of `template` with the input and output paths.

    Any other `%` sequence in the template (e.g. an image sequence pattern like
    `%03d`) is left as is.
    """
    head, middle, tail = template.split(CMD_SLOT, 2)
    return f"{head}{input_path}{middle}{output_path}{tail}"


class Transcoder:
    """Launches the configured encoder command for individual files."""

    def __init__(self, config: Configuration, executor: Optional[ProcessExecutor] = None):
        self.config = config
        self.executor = executor or ProcessExecutor(hide_window=config.hide_window)

    def command_for(self, input_path: Path, out_dir: Path) -> str:
        output_path = build_output_path(self.config, input_path, out_dir)
        return build_command(self.config.cmd, input_path, output_path)

    def transcode(self, input_path: Path, out_dir: Path) -> Optional[int]:
        """Runs the encoder and waits for it. Returns its exit status, which callers may ignore."""
        cmd = self.command_for(input_path, out_dir)
        logger.info(f"Converting {input_path.name}")
        return self.executor.run(cmd)

    def transcode_detached(self, input_path: Path, out_dir: Path) -> None:
        """Starts the encoder in the background and returns immediately."""
        cmd = self.command_for(input_path, out_dir)
        logger.info(f"Starting conversion of {input_path.name} in the background")
        self.executor.spawn(cmd)
