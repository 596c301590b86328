"""
Loads `config.txt` into a validated, immutable `Configuration`.

`config.txt` is line oriented, one `key>value` pair per line:

    cmd>ffmpeg -y -i "%s" -c:v libx265 "%s"
    count>2
    recursive>false
    outdir>out
    outmode>local
    infilter>.
    probe_match>a;jpn
    inext>.mkv|.mp4
    outext>.mkv
    resume>true
    hide_window>false

Every key is required. Any missing key or malformed value raises
`ConfigError` before a single job is dispatched.
"""
import re
from pathlib import Path
from typing import Dict, FrozenSet, Optional, Tuple

from loguru import logger

from .common import (
    BASE_DIR,
    CMD_SLOT,
    CONFIG_FILE_NAME,
    CONFIG_KEY_VALUE_SEPARATOR,
    DISABLED_FILTER,
    INEXT_SEPARATOR,
    KEEP_EXTENSION,
    PROBE_FIELD_SEPARATOR,
    PROBE_SECTION_SEPARATOR,
    REQUIRED_KEYS,
    TRUE_VALUE,
    UserConfig,
    load_user_config,
)
from ..domain.exceptions import ConfigError
from ..domain.models import Configuration, OutMode, ProbeMatchSection, compile_pattern

_CONFIG_LINE_RX = re.compile(
    rf"^ *([^ {CONFIG_KEY_VALUE_SEPARATOR}]+) *{CONFIG_KEY_VALUE_SEPARATOR} *(.+)$"
)


def parse_config_text(text: str) -> Dict[str, str]:
    """
    Splits the text of `config.txt` into a key/value map.

    Blank lines and lines starting with `#` are ignored. When a key appears
    twice, the first occurrence wins.
    """
    entries: Dict[str, str] = {}
    for line_no, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.rstrip("\r\n")
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        m = _CONFIG_LINE_RX.match(line)
        if not m:
            raise ConfigError(f"Line {line_no} is not a 'key{CONFIG_KEY_VALUE_SEPARATOR}value' pair: {line!r}")
        key, value = m.group(1), m.group(2).rstrip()
        if key in entries:
            logger.warning(f"Duplicate config key '{key}' on line {line_no} ignored.")
            continue
        entries[key] = value
    return entries


def parse_bool(value: str) -> bool:
    # Anything other than the exact "true" literal is false.
    return value == TRUE_VALUE


def parse_count(value: str) -> int:
    try:
        count = int(value)
    except ValueError as e:
        raise ConfigError(f"count must be an integer, got {value!r}") from e
    if count < 1:
        raise ConfigError(f"count must be at least 1, got {count}")
    return count


def parse_outmode(value: str) -> OutMode:
    try:
        return OutMode(value)
    except ValueError as e:
        choices = ", ".join(m.value for m in OutMode)
        raise ConfigError(f"outmode must be one of {choices}, got {value!r}") from e


def parse_extensions(value: str) -> FrozenSet[str]:
    exts = frozenset(ext.strip() for ext in value.split(INEXT_SEPARATOR) if ext.strip())
    if not exts:
        raise ConfigError("inext must list at least one extension")
    bad = sorted(ext for ext in exts if not ext.startswith("."))
    if bad:
        raise ConfigError(f"inext entries must include their leading dot: {', '.join(bad)}")
    return exts


def parse_outext(value: str) -> str:
    """
    Returns the replacement extension with its leading dot, or the "keep" sentinel.

    A bare `mkv` becomes `.mkv`. Anything `Path.with_suffix` would still
    reject (a lone dot, a path separator) is a config error.
    """
    value = value.strip()
    if value == KEEP_EXTENSION:
        return value
    if not value.startswith("."):
        value = "." + value
    try:
        Path("output").with_suffix(value)
    except ValueError as e:
        raise ConfigError(f"outext is not a valid extension: {value!r}") from e
    return value


def _compile(pattern: str, key: str) -> re.Pattern:
    try:
        return compile_pattern(pattern)
    except re.error as e:
        raise ConfigError(f"Invalid regex in {key}: {pattern!r} ({e})") from e


def parse_name_filter(value: str) -> Optional[re.Pattern]:
    if value == DISABLED_FILTER:
        return None
    return _compile(value, "infilter")


def parse_probe_section(section: str) -> ProbeMatchSection:
    """
    Parses one `stream;regex[;regex...]` section of the probe-match language.

    The first field is the ffprobe stream selector and may be empty (all
    streams). At least one non-empty regex must follow it.
    """
    fields = section.split(PROBE_FIELD_SEPARATOR)
    stream, raw_patterns = fields[0].strip(), fields[1:]
    patterns = tuple(_compile(p, "probe_match") for p in raw_patterns if p)
    if not patterns:
        raise ConfigError(
            f"probe_match section {section!r} needs a stream selector followed by at least one regex"
        )
    return ProbeMatchSection(stream=stream, patterns=patterns)


def parse_probe_match(value: str) -> Tuple[ProbeMatchSection, ...]:
    """
    Parses the whole `probe_match` value into its ordered sections.

    "." disables probing and yields no sections.
    """
    if value == DISABLED_FILTER:
        return tuple()
    sections = value.split(PROBE_SECTION_SEPARATOR)
    if any(not s.strip() for s in sections):
        raise ConfigError(f"probe_match contains an empty section: {value!r}")
    return tuple(parse_probe_section(s) for s in sections)


def validate_cmd(value: str) -> str:
    if value.count(CMD_SLOT) < 2:
        raise ConfigError(
            f"cmd must contain two '{CMD_SLOT}' slots (input, then output), got {value!r}"
        )
    return value


def build_configuration(
    entries: Dict[str, str],
    base_dir: Path,
    argv: str = "",
    argc: int = 1,
    user_config: Optional[UserConfig] = None,
) -> Configuration:
    missing = [key for key in REQUIRED_KEYS if key not in entries]
    if missing:
        raise ConfigError(f"Missing required config key(s): {', '.join(missing)}")

    user_config = user_config or UserConfig()
    return Configuration(
        cmd=validate_cmd(entries["cmd"]),
        count=parse_count(entries["count"]),
        recursive=parse_bool(entries["recursive"]),
        outdir=entries["outdir"],
        outmode=parse_outmode(entries["outmode"]),
        inexts=parse_extensions(entries["inext"]),
        infilter=parse_name_filter(entries["infilter"]),
        probe_matches=parse_probe_match(entries["probe_match"]),
        outext=parse_outext(entries["outext"]),
        resume=parse_bool(entries["resume"]),
        hide_window=parse_bool(entries["hide_window"]),
        base_dir=base_dir,
        argv=argv,
        argc=argc,
        ffprobe_bin=user_config.ffprobe_bin,
    )


def load_configuration(
    base_dir: Path = BASE_DIR,
    argv: str = "",
    argc: int = 1,
    user_config: Optional[UserConfig] = None,
) -> Configuration:
    """
    Reads `config.txt` from `base_dir` and returns the run's `Configuration`.

    Args:
        base_dir: Directory holding `config.txt` (the tool base directory).
        argv: The invocation argument, or "" when none was given.
        argc: Argument count of the invocation, program name included.
        user_config: Settings from `config.user.yaml`; loaded from `base_dir`
                     when omitted.

    Raises:
        ConfigError: If the file is missing or any key is missing or invalid.
    """
    base_dir = base_dir.resolve()
    config_path = base_dir / CONFIG_FILE_NAME
    try:
        text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {config_path}") from e
    except OSError as e:
        raise ConfigError(f"Could not read config file {config_path}: {e}") from e

    if user_config is None:
        user_config = load_user_config(base_dir)

    config = build_configuration(
        parse_config_text(text), base_dir, argv=argv, argc=argc, user_config=user_config
    )
    logger.debug(f"Loaded configuration from {config_path}: {config}")
    return config
