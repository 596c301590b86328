"""
File-based error reporting, kept separate from the real-time console log.

Jobs that fail for reasons other than the encoder itself (for instance an
output directory that cannot be created) are appended to `error.txt` in the
base directory, so a long unattended batch leaves a record of what it could
not do.
"""

import threading
from datetime import datetime
from pathlib import Path

from loguru import logger

from ..config.common import ERROR_LOG_FILE_NAME


class ErrorLog:
    """
    Appends human-readable error entries to a text file.

    Several worker threads share one instance; each entry is written under a
    lock so entries never interleave.
    """

    # A decorative separator line between entries.
    linesep_marker: str = "=" * 50

    def __init__(self, log_dir: Path, filename: str = ERROR_LOG_FILE_NAME):
        self.log_file_path = log_dir / filename
        self._lock = threading.Lock()

    def write(self, *error_messages: str):
        """
        Writes one entry made of `error_messages`, one per line, then a separator.

        If the file cannot be written, the messages go to the console logger
        instead so they are not lost.
        """
        if not error_messages:
            return

        timestamp = datetime.now().isoformat(timespec="seconds")
        content_to_write = (
            f"[{timestamp}]\n" + "\n".join(error_messages) + "\n" + self.linesep_marker + "\n"
        )
        try:
            with self._lock:
                self.log_file_path.parent.mkdir(parents=True, exist_ok=True)
                with self.log_file_path.open("a", encoding="utf-8", errors="backslashreplace") as f:
                    f.write(content_to_write)
        except Exception as e:
            logger.error(f"Failed to write to error log {self.log_file_path}: {e}")
            for msg in error_messages:
                logger.error(f"  - {msg}")
