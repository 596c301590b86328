"""Shared test configuration and fixtures."""

import threading
from pathlib import Path
from typing import List, Optional

import pytest
from loguru import logger

from auto_ffmpeg.config.loader import build_configuration

BASE_ENTRIES = {
    "cmd": 'enc -i "%s" "%s"',
    "count": "2",
    "recursive": "false",
    "outdir": "out",
    "outmode": "local",
    "infilter": ".",
    "probe_match": ".",
    "inext": ".mp4",
    "outext": ".mkv",
    "resume": "false",
    "hide_window": "false",
}


class RecordingExecutor:
    """Stands in for ProcessExecutor and records every command line it is given."""

    def __init__(self, returncode: Optional[int] = 0, watch_dir: Optional[Path] = None):
        self.returncode = returncode
        self.watch_dir = watch_dir
        self.commands: List[str] = []
        self.spawned: List[str] = []
        self.dir_existed: List[bool] = []
        self._lock = threading.Lock()

    def run(self, cmd: str) -> Optional[int]:
        with self._lock:
            self.commands.append(cmd)
            if self.watch_dir is not None:
                self.dir_existed.append(self.watch_dir.is_dir())
        return self.returncode

    def spawn(self, cmd: str):
        with self._lock:
            self.spawned.append(cmd)


@pytest.fixture(autouse=True)
def reset_logger():
    """Drop sinks added by the CLI so they do not outlive pytest's captured streams."""
    yield
    logger.remove()


@pytest.fixture
def tool_dir(tmp_path):
    """The tool base directory (where config.txt and progress.txt live)."""
    path = tmp_path / "tool"
    path.mkdir()
    return path


@pytest.fixture
def media_dir(tmp_path):
    path = tmp_path / "media"
    path.mkdir()
    return path


@pytest.fixture
def make_config(tool_dir):
    """Builds a Configuration from BASE_ENTRIES with per-test overrides."""

    def _make(argv: str = "", **overrides):
        entries = dict(BASE_ENTRIES)
        entries.update({k: str(v) for k, v in overrides.items()})
        return build_configuration(entries, tool_dir, argv=argv, argc=2 if argv else 1)

    return _make


def touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"fake media")
    return path
