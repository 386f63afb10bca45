#!/usr/bin/env python3
"""
Example: Headless Autotest
Shows how to embed AutotestController in another asyncio program.

This example demonstrates:
- Building a controller from an AutotestConfig
- Observing run outcomes through on_run_finished
- Stopping the session programmatically after a few runs
"""

import asyncio
import sys

from autotest_engine import AutotestConfig, LoggingNotifier, RunOutcome
from cmdorc_autotest import AutotestController


class RunCounter:
    """Stop the controller after ``limit`` runs."""

    def __init__(self, controller: AutotestController, limit: int = 3):
        self.controller = controller
        self.limit = limit
        self.history: list[RunOutcome] = []

    def on_run_finished(self, outcome: RunOutcome, message: str | None) -> None:
        self.history.append(outcome)
        print(f"run {len(self.history)}: {'ok' if outcome.success else outcome.reason}")
        if message:
            print(f"  status: {message}")
        if len(self.history) >= self.limit:
            self.controller.request_stop()


async def main(paths: list[str]) -> None:
    config = AutotestConfig(paths=tuple(paths) or (".",), settle_time=1.0, extra_args=("-q",))
    controller = AutotestController(config, notifier=LoggingNotifier())

    counter = RunCounter(controller)
    controller.session.on_run_finished = counter.on_run_finished

    print("Edit a file under the watched paths; stopping after 3 runs (Ctrl+C to quit early)")
    await controller.run()

    passed = sum(1 for outcome in counter.history if outcome.success)
    print(f"{passed}/{len(counter.history)} runs passed")


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1:]))
