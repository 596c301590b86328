"""Tests for the probe-match language and the ffprobe-backed filter."""

from pathlib import Path
from unittest.mock import patch

import ffmpeg
import pytest

from auto_ffmpeg.config.loader import parse_probe_match, parse_probe_section
from auto_ffmpeg.domain.exceptions import ConfigError
from auto_ffmpeg.services.media_prober import MediaProber, render_report

PROBE_TARGET = "auto_ffmpeg.services.media_prober.ffmpeg.probe"

AUDIO_PROBE = {
    "streams": [
        {
            "index": 1,
            "codec_name": "aac",
            "codec_type": "audio",
            "channels": 2,
            "disposition": {"default": 1},
            "tags": {"language": "jpn", "title": "Main"},
        }
    ],
    "format": {"format_name": "matroska,webm", "duration": "1420.5"},
}


class TestParseProbeSection:
    def test_stream_then_regexes(self):
        section = parse_probe_section("a;jpn;aac")
        assert section.stream == "a"
        assert [p.pattern for p in section.patterns] == ["jpn", "aac"]

    def test_empty_stream_selector_allowed(self):
        assert parse_probe_section(";aac").stream == ""

    def test_trailing_separator_ignored(self):
        assert len(parse_probe_section("v:0;hevc;").patterns) == 1

    def test_section_without_regex_raises(self):
        with pytest.raises(ConfigError, match="at least one regex"):
            parse_probe_section("a")

    def test_invalid_regex_raises(self):
        with pytest.raises(ConfigError, match="probe_match"):
            parse_probe_section("a;(unclosed")

    def test_regexes_are_case_insensitive(self):
        section = parse_probe_section("a;LANGUAGE=JPN")
        assert section.patterns[0].search("TAG:language=jpn")


class TestParseProbeMatch:
    def test_disabled(self):
        assert parse_probe_match(".") == ()

    def test_sections_in_order(self):
        sections = parse_probe_match("a;jpn~s;ass;forced")
        assert [s.stream for s in sections] == ["a", "s"]
        assert [p.pattern for p in sections[1].patterns] == ["ass", "forced"]

    def test_empty_section_raises(self):
        with pytest.raises(ConfigError, match="empty section"):
            parse_probe_match("a;jpn~")


class TestRenderReport:
    def test_default_text_layout(self):
        report = render_report(AUDIO_PROBE)
        lines = report.splitlines()
        assert lines[0] == "[STREAM]"
        assert "codec_name=aac" in lines
        assert "TAG:language=jpn" in lines
        assert "DISPOSITION:default=1" in lines
        assert "[/STREAM]" in lines
        assert "format_name=matroska,webm" in lines
        assert lines[-1] == "[/FORMAT]"

    def test_empty_probe(self):
        assert render_report({}) == ""


class TestMediaProber:
    def test_select_streams_passed_to_ffprobe(self):
        prober = MediaProber("/opt/ffprobe")
        with patch(PROBE_TARGET, return_value=AUDIO_PROBE) as probe:
            prober.report(Path("a.mkv"), "a")
        probe.assert_called_once_with("a.mkv", cmd="/opt/ffprobe", select_streams="a")

    def test_empty_selector_probes_all_streams(self):
        with patch(PROBE_TARGET, return_value=AUDIO_PROBE) as probe:
            MediaProber().report(Path("a.mkv"), "")
        probe.assert_called_once_with("a.mkv", cmd="ffprobe")

    def test_all_regexes_of_a_section_must_match(self):
        prober = MediaProber()
        with patch(PROBE_TARGET, return_value=AUDIO_PROBE):
            assert prober.matches(Path("a.mkv"), parse_probe_match("a;jpn;aac"))
            assert not prober.matches(Path("a.mkv"), parse_probe_match("a;jpn;opus"))

    def test_all_sections_must_match(self):
        prober = MediaProber()
        with patch(PROBE_TARGET, return_value=AUDIO_PROBE):
            assert not prober.matches(Path("a.mkv"), parse_probe_match("a;jpn~a;eng"))

    def test_probes_once_per_section(self):
        with patch(PROBE_TARGET, return_value=AUDIO_PROBE) as probe:
            assert MediaProber().matches(Path("a.mkv"), parse_probe_match("a;jpn~a;aac~a;main"))
        assert probe.call_count == 3

    def test_stops_at_first_failing_section(self):
        with patch(PROBE_TARGET, return_value=AUDIO_PROBE) as probe:
            assert not MediaProber().matches(Path("a.mkv"), parse_probe_match("a;dts~a;aac"))
        assert probe.call_count == 1

    def test_no_sections_passes_without_probing(self):
        with patch(PROBE_TARGET) as probe:
            assert MediaProber().matches(Path("a.mkv"), ())
        probe.assert_not_called()

    def test_ffprobe_error_is_a_mismatch(self):
        error = ffmpeg.Error("ffprobe", b"", b"Invalid data found when processing input")
        with patch(PROBE_TARGET, side_effect=error):
            assert not MediaProber().matches(Path("a.mkv"), parse_probe_match("a;jpn"))

    def test_missing_ffprobe_is_a_mismatch(self):
        with patch(PROBE_TARGET, side_effect=FileNotFoundError("ffprobe")):
            assert not MediaProber().matches(Path("a.mkv"), parse_probe_match("a;jpn"))
