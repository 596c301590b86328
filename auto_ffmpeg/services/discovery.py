"""
Discovers the input files of a batch.

Discovery is split into two pure predicates, `is_candidate` (is this file a
job?) and `should_descend` (is this directory walked?), and a generic walker
that knows nothing about the configuration. The walker visits each level in
sorted order, files first, then subdirectories depth-first, so two walks of an
unchanged tree produce the same job order.
"""

from pathlib import Path
from typing import Callable, Iterator, List

from loguru import logger

from ..domain.models import Configuration


def is_candidate(path: Path, config: Configuration) -> bool:
    """
    True if `path` should be queued for conversion.

    The extension must be one of the configured input extensions (exact,
    case-sensitive comparison). When a name filter is configured it must also
    be found somewhere in the full path.
    """
    if path.suffix not in config.inexts:
        return False
    if config.filter_by_name and not config.infilter.search(str(path)):
        return False
    return True


def should_descend(directory: Path, config: Configuration) -> bool:
    """Skips folders named like the output directory so produced files are not re-ingested."""
    return directory.name != config.outdir_name


def walk_files(
    root: Path,
    recursive: bool,
    descend: Callable[[Path], bool] = lambda d: True,
) -> Iterator[Path]:
    """
    Yields the files under `root` in a deterministic depth-first order.

    Args:
        root: The directory to list. An unreadable or missing directory raises.
        recursive: If False, only the direct children of `root` are yielded.
        descend: Predicate deciding whether a subdirectory is walked.
    """
    entries = sorted(root.iterdir())
    subdirs: List[Path] = []
    for entry in entries:
        if entry.is_file():
            yield entry
        elif recursive and entry.is_dir():
            subdirs.append(entry)
    for subdir in subdirs:
        if descend(subdir):
            yield from walk_files(subdir, recursive, descend)
        else:
            logger.debug(f"Not descending into output directory: {subdir}")


def discover_jobs(root: Path, config: Configuration) -> List[Path]:
    """
    Lists the jobs of a batch rooted at `root`, in discovery order.

    Returns:
        Absolute paths of every candidate file.
    """
    root = root.resolve()
    logger.debug(f"Scanning {root} (recursive={config.recursive})")
    jobs = [
        path
        for path in walk_files(root, config.recursive, lambda d: should_descend(d, config))
        if is_candidate(path, config)
    ]
    logger.info(f"Discovered {len(jobs)} file(s) to process under {root}")
    for i, job in enumerate(jobs):
        logger.trace(f"  {i + 1}. {job}")
    return jobs
