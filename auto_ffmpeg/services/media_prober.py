"""
Probes media files with ffprobe and applies the probe-match filter.

ffprobe runs through ffmpeg-python's `ffmpeg.probe`, which returns the parsed
JSON report. Users write their `probe_match` regexes against ffprobe's plain
text layout (`codec_name=aac`, `TAG:language=jpn`), so the JSON is rendered
back into that layout before matching:

    [STREAM]
    index=1
    codec_name=aac
    TAG:language=jpn
    [/STREAM]
    [FORMAT]
    format_name=matroska,webm
    [/FORMAT]
"""

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import ffmpeg
from loguru import logger

from ..config.common import DEFAULT_FFPROBE
from ..domain.exceptions import ProbeError
from ..domain.models import ProbeMatchSection


def _render_value(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def _render_section(name: str, data: Dict[str, Any]) -> List[str]:
    lines = [f"[{name}]"]
    for key, value in data.items():
        if isinstance(value, dict):
            prefix = "TAG" if key == "tags" else key.upper()
            lines.extend(f"{prefix}:{k}={_render_value(v)}" for k, v in value.items())
        elif isinstance(value, list):
            # side_data_list and friends: flatten each entry's fields.
            for item in value:
                if isinstance(item, dict):
                    lines.extend(f"{k}={_render_value(v)}" for k, v in item.items())
        else:
            lines.append(f"{key}={_render_value(value)}")
    lines.append(f"[/{name}]")
    return lines


def render_report(probe: Dict[str, Any]) -> str:
    """Renders ffprobe's JSON report in ffprobe's default text layout."""
    lines: List[str] = []
    for stream in probe.get("streams") or []:
        if isinstance(stream, dict):
            lines.extend(_render_section("STREAM", stream))
    fmt = probe.get("format")
    if isinstance(fmt, dict):
        lines.extend(_render_section("FORMAT", fmt))
    return "\n".join(lines)


class MediaProber:
    """
    Wraps ffprobe for the probe-match filter.

    There is no caching: each section of the filter probes the file once with
    its own stream selector.
    """

    def __init__(self, ffprobe_bin: str = DEFAULT_FFPROBE):
        self.ffprobe_bin = ffprobe_bin

    def report(self, path: Path, stream: str) -> str:
        """
        Returns ffprobe's text report of `path`, restricted to `stream`.

        Args:
            path: The media file to probe.
            stream: An ffprobe stream selector; empty means all streams.

        Raises:
            ProbeError: If ffprobe cannot run, fails, or prints unparsable output.
        """
        kwargs: Dict[str, str] = {}
        if stream:
            kwargs["select_streams"] = stream
        try:
            probe = ffmpeg.probe(str(path), cmd=self.ffprobe_bin, **kwargs)
        except ffmpeg.Error as e:
            stderr = e.stderr.decode("utf-8", errors="replace").strip() if e.stderr else ""
            raise ProbeError(f"ffprobe failed for {path.name}: {stderr or e}") from e
        except OSError as e:
            raise ProbeError(f"Could not run '{self.ffprobe_bin}': {e}") from e
        except ValueError as e:
            raise ProbeError(f"ffprobe output for {path.name} was not valid JSON: {e}") from e
        return render_report(probe)

    def matches(self, path: Path, sections: Iterable[ProbeMatchSection]) -> bool:
        """
        True if every regex of every section is found in that section's report.

        Stops at the first failing section. A probe failure counts as a
        mismatch. With no sections the file passes without probing.
        """
        for section in sections:
            try:
                report = self.report(path, section.stream)
            except ProbeError as e:
                logger.warning(f"Treating probe failure as a mismatch: {e}")
                return False
            failed: Optional[str] = next(
                (p.pattern for p in section.patterns if not p.search(report)), None
            )
            if failed is not None:
                logger.debug(
                    f"{path.name}: stream '{section.stream}' does not match '{failed}'"
                )
                return False
        return True
