"""Tests for parsing config.txt and config.user.yaml."""

from pathlib import Path

import pytest

from auto_ffmpeg.config.common import DEFAULT_FFPROBE, load_user_config
from auto_ffmpeg.config.loader import (
    load_configuration,
    parse_config_text,
    parse_extensions,
    parse_name_filter,
    parse_outext,
)
from auto_ffmpeg.domain.exceptions import ConfigError
from auto_ffmpeg.domain.models import OutMode

from conftest import BASE_ENTRIES


def write_config(directory: Path, entries: dict) -> Path:
    text = "\n".join(f"{k}>{v}" for k, v in entries.items()) + "\n"
    path = directory / "config.txt"
    path.write_text(text, encoding="utf-8")
    return path


class TestParseConfigText:
    def test_key_value_lines(self):
        entries = parse_config_text("count>4\n  outdir  >  out dir\n")
        assert entries == {"count": "4", "outdir": "out dir"}

    def test_value_may_contain_separator(self):
        entries = parse_config_text('cmd>enc "%s" "%s" > log.txt\n')
        assert entries["cmd"] == 'enc "%s" "%s" > log.txt'

    def test_blank_and_comment_lines_ignored(self):
        entries = parse_config_text("# comment\n\ncount>1\r\n")
        assert entries == {"count": "1"}

    def test_first_duplicate_wins(self):
        assert parse_config_text("count>1\ncount>9\n") == {"count": "1"}

    def test_malformed_line_raises(self):
        with pytest.raises(ConfigError, match="Line 2"):
            parse_config_text("count>1\njust some text\n")


class TestLoadConfiguration:
    def test_loads_typed_configuration(self, tool_dir):
        entries = dict(BASE_ENTRIES, recursive="true", resume="true", inext=".mkv|.mp4")
        write_config(tool_dir, entries)

        config = load_configuration(tool_dir, argv="/videos", argc=2)

        assert config.cmd == BASE_ENTRIES["cmd"]
        assert config.count == 2
        assert config.recursive is True
        assert config.resume is True
        assert config.hide_window is False
        assert config.outmode is OutMode.LOCAL
        assert config.inexts == frozenset({".mkv", ".mp4"})
        assert config.infilter is None
        assert config.probe_matches == ()
        assert config.base_dir == tool_dir.resolve()
        assert config.argv == "/videos"
        assert config.argc == 2
        assert config.ffprobe_bin == DEFAULT_FFPROBE

    def test_missing_file_raises(self, tool_dir):
        with pytest.raises(ConfigError, match="not found"):
            load_configuration(tool_dir)

    def test_missing_key_raises(self, tool_dir):
        entries = dict(BASE_ENTRIES)
        del entries["outext"]
        write_config(tool_dir, entries)
        with pytest.raises(ConfigError, match="outext"):
            load_configuration(tool_dir)

    @pytest.mark.parametrize("count", ["zero", "0", "-2"])
    def test_invalid_count_raises(self, tool_dir, count):
        write_config(tool_dir, dict(BASE_ENTRIES, count=count))
        with pytest.raises(ConfigError, match="count"):
            load_configuration(tool_dir)

    def test_unknown_outmode_raises(self, tool_dir):
        write_config(tool_dir, dict(BASE_ENTRIES, outmode="elsewhere"))
        with pytest.raises(ConfigError, match="outmode"):
            load_configuration(tool_dir)

    def test_cmd_needs_two_slots(self, tool_dir):
        write_config(tool_dir, dict(BASE_ENTRIES, cmd="enc %s"))
        with pytest.raises(ConfigError, match="cmd"):
            load_configuration(tool_dir)

    def test_non_true_booleans_are_false(self, tool_dir):
        write_config(tool_dir, dict(BASE_ENTRIES, resume="yes", recursive="TRUE"))
        config = load_configuration(tool_dir)
        assert config.resume is False
        assert config.recursive is False


class TestFieldParsers:
    def test_extensions_need_leading_dot(self):
        with pytest.raises(ConfigError, match="mkv"):
            parse_extensions(".mp4|mkv")

    def test_empty_extension_list_raises(self):
        with pytest.raises(ConfigError):
            parse_extensions("|")

    def test_name_filter_is_case_insensitive(self):
        rx = parse_name_filter("season ?1")
        assert rx.search("/tv/Show/SEASON1/e01.mkv")

    def test_name_filter_disabled(self):
        assert parse_name_filter(".") is None

    def test_invalid_name_filter_raises(self):
        with pytest.raises(ConfigError, match="infilter"):
            parse_name_filter("([")

    def test_outext_gains_leading_dot(self):
        assert parse_outext("mkv") == ".mkv"
        assert parse_outext(".mkv") == ".mkv"

    def test_outext_keep_is_preserved(self):
        assert parse_outext("keep") == "keep"

    @pytest.mark.parametrize("outext", [".", "a/b", ".mk/v"])
    def test_invalid_outext_raises(self, outext):
        with pytest.raises(ConfigError, match="outext"):
            parse_outext(outext)

    def test_outext_normalized_on_load(self, tool_dir):
        write_config(tool_dir, dict(BASE_ENTRIES, outext="mkv"))
        assert load_configuration(tool_dir).outext == ".mkv"


class TestUserConfig:
    def test_defaults_without_file(self, tool_dir):
        user_config = load_user_config(tool_dir)
        assert user_config.ffprobe_bin == DEFAULT_FFPROBE
        assert user_config.log_level == "INFO"
        assert user_config.log_file is None

    def test_reads_logging_settings(self, tool_dir):
        (tool_dir / "config.user.yaml").write_text(
            "logging:\n  level: debug\n  file: run.log\n", encoding="utf-8"
        )
        user_config = load_user_config(tool_dir)
        assert user_config.log_level == "DEBUG"
        assert user_config.log_file == tool_dir / "run.log"

    def test_ffprobe_dir(self, tool_dir, tmp_path):
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir()
        exe = bin_dir / "ffprobe"
        exe.write_text("")
        (tool_dir / "config.user.yaml").write_text(
            f"paths:\n  ffprobe_dir: '{bin_dir}'\n", encoding="utf-8"
        )
        assert load_user_config(tool_dir).ffprobe_bin == str(exe)

    def test_malformed_yaml_falls_back_to_defaults(self, tool_dir):
        (tool_dir / "config.user.yaml").write_text("paths: [unclosed\n", encoding="utf-8")
        assert load_user_config(tool_dir).ffprobe_bin == DEFAULT_FFPROBE
