"""Shared data models for autotest_engine."""

import enum
from dataclasses import dataclass, field


class EventKind(enum.Flag):
    """Kind bits carried by a single filesystem notification."""

    NONE = 0
    CREATED = enum.auto()
    REMOVED = enum.auto()
    WRITTEN = enum.auto()


class RunStatus(enum.Enum):
    """Outcome history of the watched command."""

    STARTING = "starting"
    WORKING = "working"
    FAILING = "failing"


@dataclass(frozen=True)
class Notification:
    """A raw filesystem notification."""

    path: str
    """Absolute path the notification refers to."""

    kinds: EventKind
    """One or more kind bits."""


@dataclass(frozen=True)
class SourceError:
    """An asynchronous error reported by the notification source."""

    error: BaseException


@dataclass(frozen=True)
class StopRequested:
    """Request to end the watch session."""


@dataclass(frozen=True)
class TimerFired:
    """The settle period elapsed without a further modification."""


LoopEvent = Notification | SourceError | StopRequested | TimerFired


@dataclass
class RunOutcome:
    """Result of one invocation of the external command."""

    success: bool
    """Whether the command exited successfully."""

    reason: str = ""
    """Short failure description (exit state or launch error)."""

    units: list[str] = field(default_factory=list)
    """Unit identifiers the command was run with."""
