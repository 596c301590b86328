"""
Keeps the record of converted files that lets an interrupted batch resume.

The store is a plain text file (`progress.txt` beside `config.txt`) with one
input path per line. It is read once before any worker starts and afterwards
only appended to, one line per converted job.

Paths are written exactly as the OS reports them. Names that are not valid
UTF-8 round-trip through the surrogateescape error handler.
"""

import os
import threading
from pathlib import Path
from typing import Set, Union

from loguru import logger

from ..config.common import PROGRESS_FILE_NAME


class ProgressStore:
    """
    Append-only record of processed input paths.

    `record` is safe to call from several worker threads: the open, write,
    flush and close of one line happen under a lock, and the line is on disk
    before `record` returns. It does not deduplicate; the worker pool records
    each job at most once.
    """

    def __init__(self, path: Path):
        self.path = path
        self._lock = threading.Lock()
        self._done: Set[str] = set()

    @classmethod
    def in_dir(cls, base_dir: Path) -> "ProgressStore":
        return cls(base_dir / PROGRESS_FILE_NAME)

    def load(self) -> Set[str]:
        """
        Reads the store. Call once, before concurrency begins.

        Returns:
            The recorded path strings; an empty set if the file does not exist.
        """
        try:
            text = self.path.read_text(encoding="utf-8", errors="surrogateescape")
        except FileNotFoundError:
            logger.debug(f"No progress file at {self.path}; starting fresh.")
            self._done = set()
            return set(self._done)
        self._done = {line for line in text.splitlines() if line}
        logger.info(f"Loaded {len(self._done)} completed path(s) from {self.path}")
        return set(self._done)

    def contains(self, path: Union[Path, str]) -> bool:
        return str(path) in self._done

    def record(self, path: Union[Path, str]) -> None:
        """Appends `path` to the store and syncs it to disk."""
        line = f"{path}\n"
        with self._lock:
            with self.path.open("a", encoding="utf-8", errors="surrogateescape") as f:
                f.write(line)
                f.flush()
                os.fsync(f.fileno())
        logger.debug(f"Recorded progress for {path}")
