"""Configuration parsing for autotest sessions."""

import logging
import re
from dataclasses import dataclass, field, replace
from pathlib import Path

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

from autotest_engine.errors import ConfigError
from autotest_engine.ignore import DEFAULT_IGNORE_DIRS, DEFAULT_IGNORE_FILES, IgnorePolicy

logger = logging.getLogger(__name__)

DEFAULT_SETTLE_TIME = 0.5
DEFAULT_COMMAND = "pytest"


@dataclass(frozen=True)
class AutotestConfig:
    """Immutable session configuration, fixed before the session starts."""

    settle_time: float = DEFAULT_SETTLE_TIME
    """Seconds of quiet after the last modification before the command runs."""

    ignore_dirs: frozenset[str] = DEFAULT_IGNORE_DIRS
    """Directory names skipped while descending into watched trees."""

    ignore_files: tuple[str, ...] = DEFAULT_IGNORE_FILES
    """Regular expressions; write events on matching basenames are ignored."""

    extra_args: tuple[str, ...] = ()
    """Arguments passed to the command ahead of the resolved paths."""

    command: str = DEFAULT_COMMAND
    """Command to run when changes settle."""

    paths: tuple[str, ...] = field(default_factory=tuple)
    """Directories or package names to watch recursively."""

    run_on_start: bool = True
    """Run the command once before waiting for changes."""

    debug: bool = False
    """Log every classified event."""

    def __post_init__(self):
        if self.settle_time < 0:
            raise ConfigError(f"settle time must not be negative: {self.settle_time}")
        for pattern in self.ignore_files:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ConfigError(f"invalid ignore pattern {pattern!r}: {e}") from e

    def ignore_policy(self) -> IgnorePolicy:
        return IgnorePolicy.from_config(self.ignore_dirs, self.ignore_files)

    def merged(self, **overrides) -> "AutotestConfig":
        """Return a copy with every override that is not None applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _string_list(raw: dict, key: str, path: Path) -> list[str] | None:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{path}: '{key}' must be a list of strings")
    return value


def load_autotest_config(path: str | Path) -> AutotestConfig:
    """Load the ``[autotest]`` table of a TOML file.

    Args:
        path: Path to TOML config file

    Returns:
        Parsed configuration; keys that are absent keep their defaults

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigError: If the file cannot be parsed or holds invalid values
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse config file {path}: {e}") from e

    section = raw.get("autotest", {})
    if not isinstance(section, dict):
        raise ConfigError(f"{path}: [autotest] must be a table")

    kwargs: dict = {}

    if "settle_ms" in section:
        settle_ms = section["settle_ms"]
        if isinstance(settle_ms, bool) or not isinstance(settle_ms, int | float):
            raise ConfigError(f"{path}: 'settle_ms' must be a number")
        kwargs["settle_time"] = settle_ms / 1000.0

    ignore_dirs = _string_list(section, "ignore_dirs", path)
    ignore_dirs = set(DEFAULT_IGNORE_DIRS if ignore_dirs is None else ignore_dirs)
    ignore_dirs.update(_string_list(section, "extra_ignore_dirs", path) or [])
    kwargs["ignore_dirs"] = frozenset(ignore_dirs)

    ignore_files = _string_list(section, "ignore_files", path)
    ignore_files = list(DEFAULT_IGNORE_FILES if ignore_files is None else ignore_files)
    ignore_files.extend(_string_list(section, "extra_ignore_files", path) or [])
    kwargs["ignore_files"] = tuple(ignore_files)

    if (extra_args := _string_list(section, "extra_args", path)) is not None:
        kwargs["extra_args"] = tuple(extra_args)
    if (paths := _string_list(section, "paths", path)) is not None:
        kwargs["paths"] = tuple(paths)

    if "command" in section:
        if not isinstance(section["command"], str) or not section["command"].strip():
            raise ConfigError(f"{path}: 'command' must be a non-empty string")
        kwargs["command"] = section["command"]

    if "run_on_start" in section:
        if not isinstance(section["run_on_start"], bool):
            raise ConfigError(f"{path}: 'run_on_start' must be true or false")
        kwargs["run_on_start"] = section["run_on_start"]

    if "debug" in section:
        if not isinstance(section["debug"], bool):
            raise ConfigError(f"{path}: 'debug' must be true or false")
        kwargs["debug"] = section["debug"]

    logger.debug(f"Loaded autotest config from {path}")
    return AutotestConfig(**kwargs)
