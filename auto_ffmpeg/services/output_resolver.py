"""
Derives the destination directory of each job and makes sure it exists.

The resolver is owned by the batch controller and shared by all workers. Every
lookup runs check, compute and create as a single critical section, so the
first two workers asking for the same directory never race on `mkdir` or on
writing the memo, and every later lookup returns from the memo without touching
the filesystem.
"""

import threading
from pathlib import Path
from typing import Dict, Optional

from loguru import logger

from ..domain.exceptions import OutputDirectoryError
from ..domain.models import Configuration, OutMode


class OutputResolver:
    """
    Resolves `input path -> existing output directory` for one run.

    Modes:
        local: `base_dir / outdir`.
        source: sibling of the invocation argument named `outdir`
                (`base_dir / outdir` without an argument). In recursive runs
                it is the sibling of each input's containing directory instead.
        absolute: `outdir` taken as a literal path.

    In recursive runs the local and absolute modes mirror the input's
    subdirectory, relative to the scan root, below their root directory.
    """

    def __init__(self, config: Configuration, scan_root: Optional[Path] = None):
        self.config = config
        self.scan_root = (scan_root or config.base_dir).resolve()
        self._lock = threading.Lock()
        # Keyed by the input's containing directory. Modes that are not
        # per-directory only ever store one entry.
        self._cache: Dict[Path, Path] = {}
        self._shared: Optional[Path] = None

    @property
    def per_directory(self) -> bool:
        return self.config.recursive

    def _mode_root(self) -> Path:
        """The single output directory of a non-recursive run, or the mirror root of a recursive one."""
        outmode = self.config.outmode
        if outmode is OutMode.LOCAL:
            return self.config.base_dir / self.config.outdir
        if outmode is OutMode.SOURCE:
            if self.config.argv:
                return Path(self.config.argv).resolve().parent / self.config.outdir
            return self.config.base_dir / self.config.outdir
        return Path(self.config.outdir)

    def compute(self, input_path: Path) -> Path:
        """Computes the destination directory of `input_path` without touching the filesystem."""
        if not self.per_directory:
            return self._mode_root()

        source_dir = input_path.parent
        if self.config.outmode is OutMode.SOURCE:
            return source_dir.parent / self.config.outdir
        try:
            relative = source_dir.relative_to(self.scan_root)
        except ValueError:
            # Inputs outside the scan root land directly in the mode root.
            logger.warning(f"{input_path} is outside the scan root {self.scan_root}.")
            relative = Path()
        return self._mode_root() / relative

    @staticmethod
    def _create(directory: Path) -> None:
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputDirectoryError(f"Could not create output directory {directory}: {e}") from e

    def resolve(self, input_path: Path) -> Path:
        """
        Returns the existing destination directory for `input_path`.

        Raises:
            OutputDirectoryError: If the directory cannot be created. Nothing is
                                  memoized in that case, so a later job retries.
        """
        with self._lock:
            if not self.per_directory:
                if self._shared is None:
                    directory = self.compute(input_path)
                    self._create(directory)
                    logger.debug(f"Output directory ready: {directory}")
                    self._shared = directory
                return self._shared

            key = input_path.parent
            cached = self._cache.get(key)
            if cached is not None:
                return cached
            directory = self.compute(input_path)
            self._create(directory)
            logger.debug(f"Output directory ready: {directory}")
            self._cache[key] = directory
            return directory
