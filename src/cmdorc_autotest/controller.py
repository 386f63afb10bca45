"""Controller wiring a watch session to watchdog, cmdorc and OS signals. Primary embed point."""

import asyncio
import logging
import os
import signal

from autotest_engine.config import AutotestConfig
from autotest_engine.errors import WatchError
from autotest_engine.models import EventKind
from autotest_engine.notifier import AutotestNotifier, NoOpNotifier
from autotest_engine.session import CommandRunner, WatchSession

from cmdorc_autotest.file_watcher import WatchdogSource
from cmdorc_autotest.locate import find_target
from cmdorc_autotest.runner import OrchestratorRunner

logger = logging.getLogger(__name__)


class AutotestController:
    """Build and drive one watch session.

    Stable methods: attach(), detach(), run(), request_stop().
    """

    def __init__(
        self,
        config: AutotestConfig,
        notifier: AutotestNotifier | None = None,
        runner: CommandRunner | None = None,
        cwd: str | None = None,
    ):
        """Initialize controller.

        Args:
            config: Session configuration
            notifier: Optional notification handler (defaults to NoOpNotifier - silent)
            runner: Command runner (defaults to an OrchestratorRunner for ``config.command``)
            cwd: Directory targets and units are resolved against (defaults to cwd)
        """
        self.config = config
        self.cwd = cwd or os.getcwd()
        self.notifier = notifier or NoOpNotifier()
        self.runner = runner or OrchestratorRunner(
            config.command, extra_args=config.extra_args, source_root=self.cwd
        )
        self.source = WatchdogSource(self)
        self.session = WatchSession(config, self.source, self.runner, notifier=self.notifier)
        self._loop: asyncio.AbstractEventLoop | None = None
        self._signals: list[signal.Signals] = []

    # EventSink: called from the observer thread
    def notify(self, path: str, kinds: EventKind) -> None:
        self.session.notify(path, kinds)

    def report_error(self, error: BaseException) -> None:
        self.session.report_error(error)

    def attach(self, loop: asyncio.AbstractEventLoop) -> int:
        """Attach to a running loop, start the observer and watch every target.

        Idempotent - a second call is a no-op.

        Returns:
            Number of targets watched

        Raises:
            RuntimeError: If the loop is not running
            WatchError: If no target could be watched
        """
        if self._loop is not None:
            return len(self.session.watch_set)

        if not loop.is_running():
            raise RuntimeError(
                "Event loop must be running before attach(). "
                "Call attach() from within a coroutine."
            )

        self._loop = loop
        self.session.attach(loop)
        self.source.start()

        watched = 0
        for target in self.config.paths or (".",):
            path = find_target(target, self.cwd)
            if path is None:
                continue
            try:
                self.session.watch(path)
                watched += 1
            except WatchError as e:
                logger.error(f"Failed to watch {path}: {e}")
                self.notifier.error(f"cannot watch {path}: {e}")

        if not watched:
            self.detach()
            raise WatchError("no paths to watch")

        self.notifier.info(f"watching {len(self.session.watch_set)} directories")
        return watched

    def install_signal_handlers(self) -> None:
        """Request a stop on SIGINT and SIGTERM."""
        if self._loop is None:
            raise RuntimeError("Controller not attached to event loop. Call attach() first.")
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                self._loop.add_signal_handler(sig, self.request_stop)
                self._signals.append(sig)
            except (NotImplementedError, RuntimeError, ValueError) as e:
                logger.debug(f"Cannot install handler for {sig.name}: {e}")

    def request_stop(self) -> None:
        """Ask the session to finish (sync-safe, from any thread)."""
        logger.debug("stop requested")
        self.session.request_stop()

    def detach(self) -> None:
        """Stop the observer and remove signal handlers."""
        if self._loop is not None:
            for sig in self._signals:
                self._loop.remove_signal_handler(sig)
        self._signals = []
        try:
            self.source.close()
        except Exception as e:
            logger.error(f"Error stopping file watcher: {e}")
        self._loop = None

    async def run(self) -> None:
        """Watch until a stop is requested, then clean up.

        Raises:
            WatchError: If no target could be watched
        """
        self.attach(asyncio.get_running_loop())
        self.install_signal_handlers()
        try:
            await self.session.run()
            await self.session.wait_finished()
        finally:
            self.detach()
