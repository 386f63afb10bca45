"""Resolve command-line targets (directories or package names) to directories."""

import importlib.util
import logging
import os

logger = logging.getLogger(__name__)


def find_target(target: str, cwd: str | None = None) -> str | None:
    """Look for ``target`` as a directory, then as an importable package.

    Args:
        target: Directory path (relative to ``cwd``) or dotted package name
        cwd: Base for relative paths (defaults to the current directory)

    Returns:
        Absolute directory path, or None if the target was not found
    """
    cwd = cwd or os.getcwd()
    candidate = target if os.path.isabs(target) else os.path.join(cwd, target)
    if os.path.isdir(candidate):
        return os.path.abspath(candidate)

    try:
        spec = importlib.util.find_spec(target)
    except (ImportError, TypeError, ValueError) as e:
        logger.debug(f"find_spec({target!r}) failed: {e}")
        spec = None

    if spec is not None and spec.submodule_search_locations:
        for location in spec.submodule_search_locations:
            if os.path.isdir(location):
                return os.path.abspath(location)

    logger.warning(f"package not found: {target}")
    return None
