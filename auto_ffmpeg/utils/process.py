"""
Runs the external encoder.

The encoder command line comes straight from `config.txt`, with the user doing
their own quoting around the `%s` slots, so it is handed to the platform shell
as one string. Standard streams are detached from the console: workers never
read the encoder's output, and several encoders writing to one console would
interleave their progress lines.
"""

import os
import subprocess
from typing import Any, Dict, Optional

from loguru import logger


def _platform_kwargs(hide_window: bool) -> Dict[str, Any]:
    if os.name == "nt":
        # Each encoder gets its own console unless hiding was requested.
        flag = subprocess.CREATE_NO_WINDOW if hide_window else subprocess.CREATE_NEW_CONSOLE
        return {"creationflags": flag}
    # hide_window has no meaning without a windowing console; detach from the
    # controlling terminal so Ctrl+C in the tool's console is not forwarded.
    return {"start_new_session": True}


class ProcessExecutor:
    """
    Launches shell command lines for the worker pool and the single-file path.

    `run` blocks until the command exits ("fire and wait"); `spawn` returns as
    soon as the command has started ("fire and forget"). Neither raises for a
    non-zero exit status: the status is logged and returned for the caller to
    ignore or use.
    """

    def __init__(self, hide_window: bool = False):
        self.hide_window = hide_window

    def _popen(self, cmd: str) -> subprocess.Popen:
        return subprocess.Popen(
            cmd,
            shell=True,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            **_platform_kwargs(self.hide_window),
        )

    def run(self, cmd: str) -> Optional[int]:
        """
        Executes `cmd` and waits for it to exit, however long that takes.

        Returns:
            The exit status, or None if the shell could not be started.
        """
        logger.debug(f"Executing: {cmd}")
        try:
            proc = self._popen(cmd)
        except OSError as e:
            logger.error(f"Could not start command: {cmd}\nError: {e}")
            return None

        returncode = proc.wait()
        if returncode != 0:
            logger.warning(f"Command exited with status {returncode}: {cmd}")
        else:
            logger.debug(f"Command finished: {cmd}")
        return returncode

    def spawn(self, cmd: str) -> Optional[subprocess.Popen]:
        """Starts `cmd` and returns without waiting for it."""
        logger.debug(f"Spawning detached: {cmd}")
        try:
            return self._popen(cmd)
        except OSError as e:
            logger.error(f"Could not start command: {cmd}\nError: {e}")
            return None
