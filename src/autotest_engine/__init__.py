"""autotest-engine: change aggregation and debounce engine for autotest."""

__version__ = "0.1.0"

# Config
from autotest_engine.config import AutotestConfig, load_autotest_config

# Core
from autotest_engine.classifier import EventClassifier
from autotest_engine.debounce import DebounceEngine, DebounceState
from autotest_engine.ignore import IgnorePolicy
from autotest_engine.tracker import RunResultTracker, round_seconds
from autotest_engine.watch_set import NotificationSource, WatchSet

# Models
from autotest_engine.models import EventKind, Notification, RunOutcome, RunStatus

# Session
from autotest_engine.notifier import AutotestNotifier, ConsoleNotifier, LoggingNotifier, NoOpNotifier
from autotest_engine.session import CommandRunner, WatchSession

__all__ = [
    "__version__",
    # Config
    "AutotestConfig",
    "load_autotest_config",
    # Core
    "IgnorePolicy",
    "WatchSet",
    "NotificationSource",
    "EventClassifier",
    "DebounceEngine",
    "DebounceState",
    "RunResultTracker",
    "round_seconds",
    # Models
    "EventKind",
    "Notification",
    "RunOutcome",
    "RunStatus",
    # Session
    "WatchSession",
    "CommandRunner",
    "AutotestNotifier",
    "NoOpNotifier",
    "LoggingNotifier",
    "ConsoleNotifier",
]
