"""Pytest configuration and fixtures."""

import asyncio
import os
import sys
from pathlib import Path

import pytest

# Add src directory to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from autotest_engine.errors import NotWatchedError, PathGoneError  # noqa: E402
from autotest_engine.models import RunOutcome  # noqa: E402


class FakeSource:
    """In-memory notification source recording registrations."""

    def __init__(self):
        self.registered: list[str] = []
        self.calls: list[tuple[str, str]] = []
        self.fail_add: dict[str, Exception] = {}
        self.fail_remove: dict[str, Exception] = {}

    def add(self, path):
        self.calls.append(("add", path))
        if path in self.fail_add:
            raise self.fail_add[path]
        if not os.path.isdir(path):
            raise PathGoneError(path)
        if path not in self.registered:
            self.registered.append(path)

    def remove(self, path):
        self.calls.append(("remove", path))
        if path in self.fail_remove:
            raise self.fail_remove[path]
        if path not in self.registered:
            raise NotWatchedError(path)
        self.registered.remove(path)


class FakeRunner:
    """Command runner returning scripted outcomes."""

    def __init__(self, outcomes=None, delay: float = 0.0):
        self.outcomes = list(outcomes or [])
        self.delay = delay
        self.calls: list[list[str]] = []
        self.on_run = None

    async def run(self, watched):
        self.calls.append(list(watched))
        if self.on_run:
            self.on_run()
        if self.delay:
            await asyncio.sleep(self.delay)
        success = self.outcomes.pop(0) if self.outcomes else True
        return RunOutcome(success=success, reason="" if success else "exit status 1")


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def tree(tmp_path):
    """Create a small source tree.

    tmp_path/
        pkg/
            __init__.py
            sub/
                mod.py
        tests/
            test_mod.py
        .git/
            objects/
        node_modules/
            dep/
    """
    (tmp_path / "pkg" / "sub").mkdir(parents=True)
    (tmp_path / "pkg" / "__init__.py").write_text("")
    (tmp_path / "pkg" / "sub" / "mod.py").write_text("x = 1\n")
    (tmp_path / "tests").mkdir()
    (tmp_path / "tests" / "test_mod.py").write_text("def test_x():\n    pass\n")
    (tmp_path / ".git" / "objects").mkdir(parents=True)
    (tmp_path / "node_modules" / "dep").mkdir(parents=True)
    return tmp_path
