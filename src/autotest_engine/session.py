"""Watch session: the single-consumer loop that drives the debounce engine.

One asyncio task pulls from a single queue of loop events. The
notification source feeds the queue from its own thread through
``loop.call_soon_threadsafe``. The settle timer is the timeout of the
queue wait, and stop requests arrive through the same queue. Every
mutation of the watch set, debounce state and run status happens inside
this task, so none of them need a lock.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Protocol

from autotest_engine.classifier import EventClassifier
from autotest_engine.config import AutotestConfig
from autotest_engine.debounce import DebounceEngine
from autotest_engine.errors import CommandExecutionError
from autotest_engine.models import (
    EventKind,
    LoopEvent,
    Notification,
    RunOutcome,
    SourceError,
    StopRequested,
    TimerFired,
)
from autotest_engine.notifier import AutotestNotifier, NoOpNotifier
from autotest_engine.tracker import RunResultTracker
from autotest_engine.watch_set import NotificationSource, WatchSet

logger = logging.getLogger(__name__)


class CommandRunner(Protocol):
    """Runs the configured command for the currently watched directories."""

    async def run(self, watched: list[str]) -> RunOutcome:
        """Run the command to completion and report the outcome."""
        ...


class WatchSession:
    """Watch a set of trees and rerun a command after changes settle.

    Usage:
        session = WatchSession(config, source, runner)
        session.attach(asyncio.get_running_loop())
        session.watch("src")
        task = asyncio.create_task(session.run())
        ...
        session.request_stop()
        await session.wait_finished()
    """

    def __init__(
        self,
        config: AutotestConfig,
        source: NotificationSource,
        runner: CommandRunner,
        notifier: AutotestNotifier | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize session.

        Args:
            config: Immutable session configuration
            source: Notification source that directories are registered with
            runner: Command runner invoked on every trigger
            notifier: Status line sink (defaults to NoOpNotifier - silent)
            clock: Time source for run-status transitions
        """
        self.config = config
        self.source = source
        self.runner = runner
        self.notifier = notifier or NoOpNotifier()
        self.clock = clock

        self.watch_set = WatchSet(source, config.ignore_policy())
        self.classifier = EventClassifier(self.watch_set)
        self.debounce = DebounceEngine(config.settle_time)
        self.tracker = RunResultTracker()
        self.runs = 0

        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[LoopEvent] | None = None
        self._finished: asyncio.Event | None = None
        self._stop_requested = False

        # Outbound events (host wires these)
        self.on_run_finished: Callable[[RunOutcome, str | None], None] | None = None

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    def attach(self, loop: asyncio.AbstractEventLoop) -> None:
        """Bind the session to a running event loop. Idempotent.

        Raises:
            RuntimeError: If the loop is not running
        """
        if self._loop is not None:
            return
        if not loop.is_running():
            raise RuntimeError("Event loop must be running before attach()")
        self._loop = loop
        self._queue = asyncio.Queue()
        self._finished = asyncio.Event()

    def watch(self, root: str) -> None:
        """Watch ``root`` recursively.

        Raises:
            WalkError: If the tree cannot be walked
            WatchRegistrationError: If a directory cannot be registered
        """
        self.watch_set.add_recursive(root)

    def post(self, event: LoopEvent) -> None:
        """Queue an event for the loop. Safe to call from any thread."""
        if self._loop is None or self._loop.is_closed():
            logger.warning(f"Session not attached; dropping {event}")
            return
        try:
            self._loop.call_soon_threadsafe(self._enqueue, event)
        except RuntimeError as e:
            # loop closed between the check and the call
            logger.warning(f"Failed to queue {event}: {e}")

    def notify(self, path: str, kinds: EventKind) -> None:
        """Queue a filesystem notification. Safe to call from any thread."""
        self.post(Notification(path, kinds))

    def report_error(self, error: BaseException) -> None:
        """Queue an asynchronous source error. Safe to call from any thread."""
        self.post(SourceError(error))

    def request_stop(self) -> None:
        """Ask the loop to finish. Safe to call from any thread.

        A command run in progress completes first; modifications still
        pending afterwards never trigger.
        """
        self.post(StopRequested())

    async def wait_finished(self) -> None:
        """Block until the loop has terminated."""
        if self._finished is None:
            raise RuntimeError("Session not attached to event loop. Call attach() first.")
        await self._finished.wait()

    def _enqueue(self, event: LoopEvent) -> None:
        if isinstance(event, StopRequested):
            self._stop_requested = True
        self._queue.put_nowait(event)

    async def run(self) -> None:
        """Main processing loop. Returns after a stop request."""
        self.attach(asyncio.get_running_loop())
        try:
            if self.config.run_on_start and not self._stop_requested:
                await self.run_command()
            while not self._stop_requested:
                event = await self._next_event()
                await self._dispatch(event)
        finally:
            self.debounce.cancel()
            self._finished.set()
            logger.debug("watch loop finished")

    async def _next_event(self) -> LoopEvent:
        timeout = self.debounce.remaining(self._loop.time())
        if timeout == 0:
            return TimerFired()
        try:
            return await asyncio.wait_for(self._queue.get(), timeout)
        except asyncio.TimeoutError:
            return TimerFired()

    async def _dispatch(self, event: LoopEvent) -> None:
        if isinstance(event, StopRequested):
            self._stop_requested = True

        elif isinstance(event, SourceError):
            logger.error(f"error: {event.error}")
            self.notifier.error(str(event.error))

        elif isinstance(event, Notification):
            modified, error = self.classifier.classify(event)
            if error is not None:
                logger.error(f"error: {error}")
                self.notifier.error(str(error))
            elif modified:
                self.debounce.observe(self._loop.time())

        elif isinstance(event, TimerFired):
            if self.debounce.poll(self._loop.time()):
                await self.run_command()

    async def run_command(self) -> RunOutcome:
        """Run the command once and record its outcome."""
        self.runs += 1
        try:
            outcome = await self.runner.run(self.watch_set.paths)
        except CommandExecutionError as e:
            outcome = RunOutcome(success=False, reason=str(e))

        message = self.tracker.record_outcome(outcome.success, self.clock(), outcome.reason)
        if message:
            if outcome.success:
                self.notifier.success(message)
            else:
                self.notifier.failure(message)

        if self.on_run_finished:
            self.on_run_finished(outcome, message)
        return outcome
