"""Watch set: the directories currently receiving change notifications."""

import logging
import os
from collections.abc import Iterator
from typing import Protocol

from autotest_engine.errors import (
    NotWatchedError,
    PathGoneError,
    WalkError,
    WatchError,
    WatchRegistrationError,
)
from autotest_engine.ignore import IgnorePolicy

logger = logging.getLogger(__name__)


class NotificationSource(Protocol):
    """OS-level notification registration.

    ``add`` raises ``PathGoneError`` when the path vanished before it could be
    registered. ``remove`` raises ``NotWatchedError`` for a path that is not
    registered.
    """

    def add(self, path: str) -> None:
        """Start receiving notifications for ``path``."""
        ...

    def remove(self, path: str) -> None:
        """Stop receiving notifications for ``path``."""
        ...


class WatchSet:
    """Ordered, duplicate-free list of watched directories.

    Only touched from the session loop, so no locking is done here.
    """

    def __init__(self, source: NotificationSource, ignore: IgnorePolicy | None = None):
        """Initialize watch set.

        Args:
            source: Notification source that paths are registered with
            ignore: Policy applied while descending directory trees
        """
        self.source = source
        self.ignore = ignore or IgnorePolicy()
        self._paths: list[str] = []

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and os.path.abspath(path) in self._paths

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._paths))

    def __len__(self) -> int:
        return len(self._paths)

    @property
    def paths(self) -> list[str]:
        """Copy of the watched paths in insertion order."""
        return list(self._paths)

    def add(self, path: str) -> None:
        """Register a single directory.

        Raises:
            WatchRegistrationError: If the source refuses the path
        """
        path = os.path.abspath(path)
        if path in self._paths:
            return
        try:
            self.source.add(path)
        except PathGoneError:
            logger.debug(f"directory vanished before it could be watched: {path}")
            return
        except WatchRegistrationError:
            raise
        except (OSError, WatchError) as e:
            raise WatchRegistrationError(f"cannot watch {path}: {e}") from e
        self._paths.append(path)
        logger.info(f"watching for changes: {path}")

    def add_recursive(self, root: str) -> None:
        """Watch ``root`` and every non-ignored directory below it.

        The ignore policy applies to descendants only; ``root`` itself is
        always added.

        Raises:
            PathGoneError: If ``root`` does not exist (or vanished before it was read)
            WalkError: If the tree cannot be walked
            WatchRegistrationError: If a directory cannot be registered
        """
        root = os.path.abspath(root)
        if not os.path.exists(root):
            raise PathGoneError(root)
        if not os.path.isdir(root):
            raise WalkError(f"not a directory: {root}")

        def on_error(err: OSError) -> None:
            if isinstance(err, FileNotFoundError) and err.filename is not None:
                if os.path.abspath(os.fsdecode(err.filename)) == root:
                    raise PathGoneError(root) from err
            raise WalkError(f"walk of {root} failed: {err}") from err

        for dirpath, dirnames, _ in os.walk(root, topdown=True, onerror=on_error):
            # prune in place so os.walk skips ignored subtrees
            dirnames[:] = [d for d in dirnames if not self.ignore.is_ignored_dir(d)]
            self.add(dirpath)

    def remove(self, path: str) -> None:
        """Stop watching ``path`` and every watched directory below it.

        Removing an unwatched path is a no-op. Every directory is dropped
        from the list even if unregistering one of them fails.

        Raises:
            WatchRegistrationError: If the source fails for another reason
        """
        path = os.path.abspath(path)
        prefix = os.path.join(path, "")
        doomed = [path] + [p for p in self._paths if p.startswith(prefix)]

        first_error: WatchRegistrationError | None = None
        for target in doomed:
            if target in self._paths:
                self._paths.remove(target)
                logger.debug(f"stopped watching: {target}")
            try:
                self.source.remove(target)
            except NotWatchedError:
                pass
            except WatchRegistrationError as e:
                first_error = first_error or e
            except (OSError, WatchError) as e:
                if first_error is None:
                    first_error = WatchRegistrationError(f"cannot stop watching {target}: {e}")
                    first_error.__cause__ = e
        if first_error is not None:
            raise first_error
