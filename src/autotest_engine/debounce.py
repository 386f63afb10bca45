"""Debounce engine: coalesces bursts of modifications into a single trigger.

The engine is a two-state machine driven by explicit time values, so the
session loop owns the clock and the engine itself never sleeps::

    IDLE  --observe-->  ARMED   (deadline = now + settle_time)
    ARMED --observe-->  ARMED   (deadline reset to now + settle_time)
    ARMED --poll, now >= deadline-->  IDLE, trigger fires once
"""

import enum
import logging

logger = logging.getLogger(__name__)


class DebounceState(enum.Enum):
    IDLE = "idle"
    ARMED = "armed"


class DebounceEngine:
    """Settle-timer state machine."""

    def __init__(self, settle_time: float):
        """Initialize engine.

        Args:
            settle_time: Quiet period in seconds required before a trigger
        """
        if settle_time < 0:
            raise ValueError(f"settle_time must not be negative: {settle_time}")
        self.settle_time = settle_time
        self.state = DebounceState.IDLE
        self.deadline: float | None = None

    @property
    def pending(self) -> bool:
        return self.state is DebounceState.ARMED

    def observe(self, now: float) -> None:
        """Record a qualifying modification at time ``now``."""
        if self.state is DebounceState.IDLE:
            logger.debug(f"armed, trigger in {self.settle_time}s")
        self.state = DebounceState.ARMED
        self.deadline = now + self.settle_time

    def remaining(self, now: float) -> float | None:
        """Seconds until the trigger is due, or None when nothing is pending."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - now)

    def poll(self, now: float) -> bool:
        """Fire the trigger if the settle period has elapsed.

        Returns:
            True exactly once per armed period, when ``now`` reached the deadline
        """
        if self.deadline is None or now < self.deadline:
            return False
        self.cancel()
        return True

    def cancel(self) -> None:
        """Drop any pending trigger."""
        self.state = DebounceState.IDLE
        self.deadline = None
