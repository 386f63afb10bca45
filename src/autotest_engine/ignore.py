"""Ignore policy: decides which filesystem events are noise."""

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

DEFAULT_IGNORE_DIRS = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        "__pycache__",
        ".pytest_cache",
        ".mypy_cache",
        ".ruff_cache",
        ".tox",
        ".venv",
        "venv",
        "node_modules",
    }
)

DEFAULT_IGNORE_FILES = (
    r"\..*\.swp$",  # vim swap files
    r"~$",  # editor backups
    r"^\.#",  # emacs lock files
    r"\.py[co]$",
    r"^\.coverage",
)


@dataclass(frozen=True)
class IgnorePolicy:
    """Immutable ignore configuration.

    ``dirs`` is matched exactly against directory names while descending into
    a tree. ``patterns`` are searched in file basenames of write events.
    """

    dirs: frozenset[str] = DEFAULT_IGNORE_DIRS
    patterns: tuple[re.Pattern, ...] = field(
        default_factory=lambda: tuple(re.compile(p) for p in DEFAULT_IGNORE_FILES)
    )

    @classmethod
    def from_config(cls, dirs: Iterable[str], patterns: Iterable[str]) -> "IgnorePolicy":
        """Build a policy from directory names and regex sources.

        Raises:
            re.error: If a pattern does not compile
        """
        return cls(
            dirs=frozenset(dirs),
            patterns=tuple(re.compile(p) for p in patterns),
        )

    def is_ignored_dir(self, name: str) -> bool:
        return name in self.dirs

    def is_ignored_file(self, basename: str) -> bool:
        return any(pattern.search(basename) for pattern in self.patterns)
