"""Tests for AutotestController."""

import asyncio
import os
from unittest.mock import MagicMock

import pytest

from autotest_engine.config import AutotestConfig
from autotest_engine.errors import WatchError
from cmdorc_autotest.controller import AutotestController
from conftest import FakeRunner


def make_controller(tree, runner=None, paths=None, **config):
    config.setdefault("run_on_start", False)
    controller = AutotestController(
        AutotestConfig(paths=paths if paths is not None else (str(tree),), **config),
        runner=runner or FakeRunner(),
        cwd=str(tree),
    )
    return controller


def mock_observer(controller):
    observer = MagicMock()
    observer.is_alive.return_value = False
    controller.source.observer = observer
    return observer


async def wait_until(predicate, timeout=5.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.02)


@pytest.mark.asyncio
async def test_attach_watches_tree(tree):
    controller = make_controller(tree)
    observer = mock_observer(controller)

    assert controller.attach(asyncio.get_running_loop()) == 1

    observer.start.assert_called_once()
    watched = controller.session.watch_set.paths
    assert str(tree) in watched
    assert os.path.join(str(tree), "pkg", "sub") in watched
    assert os.path.join(str(tree), ".git") not in watched
    assert controller.source.watched == watched
    controller.detach()


@pytest.mark.asyncio
async def test_attach_is_idempotent(tree):
    controller = make_controller(tree)
    observer = mock_observer(controller)
    loop = asyncio.get_running_loop()

    controller.attach(loop)
    calls = observer.schedule.call_count
    controller.attach(loop)

    assert observer.schedule.call_count == calls
    controller.detach()


def test_attach_requires_running_loop(tree):
    controller = make_controller(tree)
    loop = asyncio.new_event_loop()
    try:
        with pytest.raises(RuntimeError, match="must be running"):
            controller.attach(loop)
    finally:
        loop.close()


@pytest.mark.asyncio
async def test_relative_target_resolved_against_cwd(tree):
    controller = make_controller(tree, paths=("tests",))
    mock_observer(controller)

    controller.attach(asyncio.get_running_loop())

    assert controller.session.watch_set.paths == [os.path.join(str(tree), "tests")]
    controller.detach()


@pytest.mark.asyncio
async def test_no_paths_to_watch(tree):
    controller = make_controller(tree, paths=("no_such_dir_or_package_xyz",))
    observer = mock_observer(controller)
    observer.is_alive.return_value = True

    with pytest.raises(WatchError, match="no paths to watch"):
        controller.attach(asyncio.get_running_loop())
    observer.stop.assert_called_once()


@pytest.mark.asyncio
async def test_missing_target_is_skipped(tree):
    controller = make_controller(tree, paths=("no_such_dir_or_package_xyz", "pkg"))
    mock_observer(controller)

    assert controller.attach(asyncio.get_running_loop()) == 1
    assert os.path.join(str(tree), "pkg") in controller.session.watch_set
    controller.detach()


def test_signal_handlers_require_attach(tree):
    controller = make_controller(tree)
    with pytest.raises(RuntimeError, match="attach"):
        controller.install_signal_handlers()


@pytest.mark.asyncio
async def test_request_stop_ends_run(tree):
    controller = make_controller(tree)
    mock_observer(controller)

    task = asyncio.create_task(controller.run())
    await wait_until(lambda: controller.session.watch_set.paths)
    controller.request_stop()
    await asyncio.wait_for(task, timeout=2.0)

    assert controller.session.runs == 0


@pytest.mark.asyncio
async def test_change_on_disk_runs_command(tree):
    """End to end: a real observer sees a write and the command runs once."""
    runner = FakeRunner()
    controller = make_controller(tree, runner=runner, settle_time=0.05)

    task = asyncio.create_task(controller.run())
    try:
        await wait_until(lambda: controller.session.watch_set.paths)
        (tree / "pkg" / "sub" / "mod.py").write_text("x = 2\n")
        await wait_until(lambda: runner.calls)
    finally:
        controller.request_stop()
        await asyncio.wait_for(task, timeout=5.0)

    assert runner.calls[0] == controller.session.watch_set.paths


@pytest.mark.asyncio
async def test_run_on_start(tree):
    runner = FakeRunner()
    controller = make_controller(tree, runner=runner, run_on_start=True)
    mock_observer(controller)

    task = asyncio.create_task(controller.run())
    await wait_until(lambda: runner.calls)
    controller.request_stop()
    await asyncio.wait_for(task, timeout=2.0)

    assert controller.session.runs == 1
