"""
Data models shared by the loader, the services and the worker pool.

`Configuration` is built exactly once per run by `config.loader` and is never
mutated afterwards; every worker thread reads the same instance.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Tuple

from ..config.common import KEEP_EXTENSION


class OutMode(Enum):
    """Strategy used to derive the destination directory of an input file."""

    LOCAL = "local"
    SOURCE = "source"
    ABSOLUTE = "absolute"


@dataclass(frozen=True)
class ProbeMatchSection:
    """
    One AND-group of the probe-match filter.

    Attributes:
        stream: The ffprobe stream selector (e.g. "a", "v:0", "s").
        patterns: Case-insensitive regexes; every one of them must be found in
                  the probe report of `stream` for the section to pass.
    """

    stream: str
    patterns: Tuple[re.Pattern, ...]


@dataclass(frozen=True)
class Configuration:
    """
    The validated, immutable settings of one run.

    Attributes:
        cmd: Encoder command template. The first two `%s` slots receive the
             input path and the output path, in that order.
        count: Number of worker threads (>= 1).
        recursive: Walk subdirectories of the target directory.
        outdir: Output directory name (local/source modes) or literal path
                (absolute mode).
        outmode: How the destination directory is derived.
        inexts: Extensions (with their leading dot) of the files to convert.
        infilter: Regex searched in the full input path, or None if disabled.
        probe_matches: Probe-match sections; empty when the filter is disabled.
        outext: Replacement extension, or `KEEP_EXTENSION` to keep the input's.
        resume: Skip files listed in the progress store and record new ones.
        hide_window: Ask the platform not to show a console for the encoder.
        base_dir: Directory holding `config.txt`, `progress.txt` and the
                  default output of local mode.
        argv: The invocation argument (empty when none was given).
        argc: The argument count of the invocation, program name included.
        ffprobe_bin: The ffprobe executable used by the probe-match filter.
    """

    cmd: str
    count: int
    recursive: bool
    outdir: str
    outmode: OutMode
    inexts: FrozenSet[str]
    infilter: Optional[re.Pattern]
    probe_matches: Tuple[ProbeMatchSection, ...]
    outext: str
    resume: bool
    hide_window: bool
    base_dir: Path
    argv: str = ""
    argc: int = 1
    ffprobe_bin: str = "ffprobe"

    @property
    def filter_by_name(self) -> bool:
        return self.infilter is not None

    @property
    def filter_by_probe(self) -> bool:
        return bool(self.probe_matches)

    @property
    def keep_extension(self) -> bool:
        return self.outext == KEEP_EXTENSION

    @property
    def outdir_name(self) -> str:
        """The last component of `outdir`, used to skip output folders while walking."""
        return Path(self.outdir).name


class JobOutcome(Enum):
    """Terminal state of a job. Every job reaches exactly one of these."""

    SKIPPED_RESUME = "skipped_resume"
    SKIPPED_FILTER = "skipped_filter"
    CONVERTED = "converted"
    FAILED = "failed"


@dataclass
class BatchResult:
    """Outcome of every job processed by one batch run."""

    outcomes: Dict[Path, JobOutcome] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    def paths_with(self, outcome: JobOutcome) -> List[Path]:
        return sorted(p for p, o in self.outcomes.items() if o is outcome)

    def count(self, outcome: JobOutcome) -> int:
        return sum(1 for o in self.outcomes.values() if o is outcome)

    def summary(self) -> str:
        return ", ".join(f"{o.value}={self.count(o)}" for o in JobOutcome)


def compile_pattern(pattern: str) -> re.Pattern:
    """Compiles a user-supplied regex the way every filter in this tool uses it."""
    return re.compile(pattern, re.IGNORECASE)
