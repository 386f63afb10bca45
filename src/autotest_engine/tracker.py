"""Run-result tracker: success/failure history of the watched command."""

import logging
import math

from autotest_engine.models import RunStatus

logger = logging.getLogger(__name__)


def round_seconds(duration: float) -> int:
    """Round a duration to whole seconds, halves away from zero.

    >>> round_seconds(4.5)
    5
    >>> round_seconds(4.4)
    4
    """
    rounded = math.floor(abs(duration) + 0.5)
    return int(math.copysign(rounded, duration))


class RunResultTracker:
    """Three-state status (starting, working, failing) with transition times.

    ``time_success`` and ``time_failure`` are only set when the status
    transitions, never on a repeated outcome.
    """

    def __init__(self):
        self.status = RunStatus.STARTING
        self.time_success: float | None = None
        self.time_failure: float | None = None

    def record_outcome(self, success: bool, now: float, reason: str = "") -> str | None:
        """Record the outcome of one run.

        Args:
            success: Whether the command succeeded
            now: Current time in seconds (same clock for every call)
            reason: Failure reason shown in the failure message

        Returns:
            Status message to display, or None when there is nothing to report
        """
        previous = self.status

        if not success:
            msg = f"error: {reason}" if reason else "error"
            if previous is not RunStatus.FAILING:
                self.time_failure = now
            if previous is RunStatus.WORKING and self.time_success is not None:
                msg += f" ({round_seconds(now - self.time_success)}s success)"
            self.status = RunStatus.FAILING
            return msg

        msg = None
        if previous is not RunStatus.WORKING:
            self.time_success = now
        if previous is RunStatus.FAILING and self.time_failure is not None:
            msg = f"success after {round_seconds(now - self.time_failure)}s failures"
        self.status = RunStatus.WORKING
        return msg
