"""Notification source implementation using watchdog."""

import errno
import logging
import os
import threading
from collections.abc import Callable
from typing import Protocol

from watchdog.events import FileSystemEvent, FileSystemEventHandler, FileSystemMovedEvent
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver, ObservedWatch

from autotest_engine.errors import NotWatchedError, PathGoneError, WatchRegistrationError
from autotest_engine.models import EventKind

logger = logging.getLogger(__name__)


class EventSink(Protocol):
    """Receiver of translated notifications, called from the observer thread."""

    def notify(self, path: str, kinds: EventKind) -> None: ...

    def report_error(self, error: BaseException) -> None: ...


def _is_below(path: str, root: str) -> bool:
    return path.startswith(os.path.join(root, ""))


class _NotificationHandler(FileSystemEventHandler):
    """Translate watchdog events into (path, kind bits) notifications.

    Only events for entries of watched directories (or for a watched
    directory itself) are passed on. Events from ignored subtrees and from
    directories not yet added are dropped.
    """

    def __init__(self, sink: EventSink, is_watched: Callable[[str], bool]):
        """Initialize handler.

        Args:
            sink: Receiver of notifications (usually a WatchSession)
            is_watched: Tells whether a directory is in the watch set
        """
        self.sink = sink
        self.is_watched = is_watched

    def dispatch(self, event: FileSystemEvent) -> None:
        try:
            super().dispatch(event)
        except Exception as e:
            logger.error(f"Failed to translate {event!r}: {e}")
            self.sink.report_error(e)

    def _emit(self, path: str | bytes, kinds: EventKind) -> None:
        path = os.path.abspath(os.fsdecode(path))
        if not (self.is_watched(os.path.dirname(path)) or self.is_watched(path)):
            return
        self.sink.notify(path, kinds)

    def on_created(self, event: FileSystemEvent) -> None:
        self._emit(event.src_path, EventKind.CREATED)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._emit(event.src_path, EventKind.REMOVED)

    def on_modified(self, event: FileSystemEvent) -> None:
        # directory mtime changes duplicate the events of their children
        if event.is_directory:
            return
        self._emit(event.src_path, EventKind.WRITTEN)

    def on_moved(self, event: FileSystemMovedEvent) -> None:
        self._emit(event.src_path, EventKind.REMOVED)
        self._emit(event.dest_path, EventKind.CREATED)


class WatchdogSource:
    """Watchdog-backed notification source.

    The observer gets one recursive watch per top-most directory; every
    directory below it shares that watch. Which directories actually report
    is decided by the set of added paths, so ignored subtrees stay silent.
    """

    def __init__(self, sink: EventSink, observer: BaseObserver | None = None):
        """Initialize source.

        Args:
            sink: Receiver of notifications
            observer: Observer to schedule watches on (defaults to the platform Observer)
        """
        self.observer = observer or Observer()
        self.handler = _NotificationHandler(sink, self.is_watched)
        # read from the observer thread
        self._lock = threading.Lock()
        self._dirs: dict[str, None] = {}
        self._roots: dict[str, ObservedWatch] = {}

    def start(self) -> None:
        """Start the observer thread. Must be called before adding paths."""
        if not self.observer.is_alive():
            self.observer.start()
            logger.debug("Observer started")

    def is_watched(self, path: str) -> bool:
        with self._lock:
            return path in self._dirs

    def add(self, path: str) -> None:
        if self.is_watched(path):
            return
        if not os.path.isdir(path):
            raise PathGoneError(path)
        if not any(path == root or _is_below(path, root) for root in self._roots):
            self._schedule(path)
        with self._lock:
            self._dirs[path] = None

    def _schedule(self, path: str) -> None:
        try:
            watch = self.observer.schedule(self.handler, path, recursive=True)
        except OSError as e:
            if e.errno == errno.ENOENT:
                raise PathGoneError(path) from e
            raise WatchRegistrationError(f"cannot watch {path}: {e}") from e

        # the new watch covers any earlier roots below it
        for root in [r for r in self._roots if _is_below(r, path)]:
            try:
                self.observer.unschedule(self._roots.pop(root))
            except KeyError:
                pass
        self._roots[path] = watch
        logger.debug(f"Scheduled recursive watch on {path}")

    def remove(self, path: str) -> None:
        with self._lock:
            if path not in self._dirs:
                raise NotWatchedError(path)
            del self._dirs[path]

        watch = self._roots.pop(path, None)
        if watch is None:
            return
        try:
            self.observer.unschedule(watch)
        except KeyError as e:
            raise NotWatchedError(path) from e
        except OSError as e:
            raise WatchRegistrationError(f"cannot stop watching {path}: {e}") from e

    @property
    def watched(self) -> list[str]:
        with self._lock:
            return list(self._dirs)

    @property
    def roots(self) -> list[str]:
        """Directories holding an observer watch."""
        return list(self._roots)

    def close(self) -> None:
        """Stop the observer and drop every watch."""
        if self.observer.is_alive():
            self.observer.stop()
            self.observer.join(timeout=2.0)
            logger.debug("Observer stopped")
        with self._lock:
            self._dirs.clear()
        self._roots.clear()
