"""Event classifier: turns raw notifications into watch set changes and modification flags."""

import logging
import os
import stat

from autotest_engine.errors import PathGoneError, WatchError
from autotest_engine.models import EventKind, Notification
from autotest_engine.watch_set import WatchSet

logger = logging.getLogger(__name__)


class EventClassifier:
    """Classify notifications against the current watch set and ignore policy."""

    def __init__(self, watch_set: WatchSet):
        self.watch_set = watch_set

    @property
    def ignore(self):
        return self.watch_set.ignore

    def classify(self, event: Notification) -> tuple[bool, Exception | None]:
        """Apply one notification.

        Every kind bit present is handled, even after an earlier bit failed.

        Args:
            event: Notification to classify

        Returns:
            Tuple of (counts as modification, first error encountered or None)
        """
        modified = False
        first_error: Exception | None = None

        for kind, handler in (
            (EventKind.CREATED, self._on_created),
            (EventKind.REMOVED, self._on_removed),
            (EventKind.WRITTEN, self._on_written),
        ):
            if not event.kinds & kind:
                continue
            if kind is EventKind.REMOVED:
                modified = True
            try:
                if handler(event.path):
                    modified = True
            except (OSError, WatchError) as e:
                if first_error is None:
                    first_error = e

        return modified, first_error

    def _on_created(self, path: str) -> bool:
        try:
            info = os.stat(path)
        except FileNotFoundError:
            # editors create and delete temp files in quick succession
            logger.debug(f"created path already gone: {path}")
            return False

        if stat.S_ISDIR(info.st_mode):
            if self.ignore.is_ignored_dir(os.path.basename(path)):
                logger.debug(f"skipping ignored directory: {path}")
            else:
                try:
                    self.watch_set.add_recursive(path)
                except PathGoneError:
                    logger.debug(f"created directory already gone: {path}")
            return False

        logger.debug(f"created: {path}")
        return True

    def _on_removed(self, path: str) -> bool:
        logger.debug(f"removed: {path}")
        self.watch_set.remove(path)
        return True

    def _on_written(self, path: str) -> bool:
        if self.ignore.is_ignored_file(os.path.basename(path)):
            logger.debug(f"skipping: {path}")
            return False
        logger.debug(f"modified: {path}")
        return True
