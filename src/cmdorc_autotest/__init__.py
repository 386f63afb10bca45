"""cmdorc-autotest: rerun a command through cmdorc whenever watched sources change."""

__version__ = "0.1.0"

# Public API
from cmdorc_autotest.controller import AutotestController
from cmdorc_autotest.file_watcher import WatchdogSource
from cmdorc_autotest.runner import OrchestratorRunner, resolve_units

__all__ = [
    "__version__",
    # Primary components
    "AutotestController",
    "WatchdogSource",
    "OrchestratorRunner",
    "resolve_units",
]
