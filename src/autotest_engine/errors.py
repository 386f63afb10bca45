"""Error hierarchy for the autotest engine.

Per-event errors are non-fatal: the session logs them and keeps watching.
Only setup errors (nothing could be watched) end the process.
"""


class AutotestError(Exception):
    """Base exception for autotest failures."""

    pass


class ConfigError(AutotestError):
    """Configuration file could not be parsed or holds an invalid value."""

    pass


class WatchError(AutotestError):
    """Base exception for watch set failures."""

    pass


class WatchRegistrationError(WatchError):
    """The notification source refused to add or remove a path."""

    pass


class WalkError(WatchError):
    """A recursive add was aborted part way through the tree."""

    pass


class PathGoneError(WatchError):
    """The path disappeared before it could be registered."""

    pass


class NotWatchedError(WatchError):
    """The path is not registered with the notification source."""

    pass


class CommandExecutionError(AutotestError):
    """The external command could not be launched."""

    pass
