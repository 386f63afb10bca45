"""Command runner backed by cmdorc's CommandOrchestrator."""

import logging
import os
import shlex
import sys
from collections.abc import Iterable
from typing import TextIO

from cmdorc import CommandConfig, CommandOrchestrator, RunnerConfig, RunState

from autotest_engine.errors import CommandExecutionError
from autotest_engine.models import RunOutcome

logger = logging.getLogger(__name__)

COMMAND_NAME = "autotest"


def _has_watched_ancestor(path: str, watched: set[str]) -> bool:
    parent = os.path.dirname(path)
    while parent != path:
        if parent in watched:
            return True
        path, parent = parent, os.path.dirname(parent)
    return False


def resolve_units(paths: Iterable[str], source_root: str) -> list[str]:
    """Map watched directories to the arguments the command is run with.

    Only top-most directories are kept (a watched directory below another
    watched directory is covered by its ancestor). Directories under
    ``source_root`` are made relative to it.

    Args:
        paths: Watched absolute directory paths, in watch order
        source_root: Directory the command runs from

    Returns:
        Unit identifiers in watch order
    """
    paths = list(paths)
    watched = set(paths)
    root = os.path.abspath(source_root)
    units = []
    for path in paths:
        if _has_watched_ancestor(path, watched):
            continue
        try:
            under_root = os.path.commonpath([path, root]) == root
        except ValueError:
            # different drives on Windows
            under_root = False
        units.append(os.path.relpath(path, root) if under_root else path)
    return units


class OrchestratorRunner:
    """Run one shell command through cmdorc and wait for it to finish.

    The command template is ``<command> {{ args }}``; ``args`` is filled on
    every run with the extra arguments followed by the resolved units.
    """

    def __init__(
        self,
        command: str,
        extra_args: Iterable[str] = (),
        source_root: str | None = None,
        orchestrator: CommandOrchestrator | None = None,
        stream: TextIO | None = None,
    ):
        """Initialize runner.

        Args:
            command: Command to run (e.g. "pytest")
            extra_args: Arguments placed before the resolved units
            source_root: Directory units are made relative to (defaults to cwd)
            orchestrator: Preconfigured orchestrator (built from ``command`` if omitted)
            stream: Where captured command output is relayed (defaults to stdout)
        """
        self.command = command
        self.extra_args = list(extra_args)
        self.source_root = source_root or os.getcwd()
        self.stream = stream or sys.stdout

        if orchestrator is None:
            runner_config = RunnerConfig(
                commands=[
                    CommandConfig(
                        name=COMMAND_NAME,
                        command=f"{command} {{{{ args }}}}",
                        triggers=[],
                    )
                ],
                vars={"args": ""},
            )
            orchestrator = CommandOrchestrator(runner_config)
        self.orchestrator = orchestrator

    async def run(self, watched: list[str]) -> RunOutcome:
        """Run the command for the watched directories.

        Raises:
            CommandExecutionError: If the command could not be launched
        """
        units = resolve_units(watched, self.source_root)
        args = shlex.join([*self.extra_args, *units])
        logger.info(f"running {self.command} with {len(units)} paths")

        try:
            handle = await self.orchestrator.run_command(COMMAND_NAME, {"args": args})
            await handle.wait()
        except Exception as e:
            logger.error(f"Error running '{self.command}': {e}")
            raise CommandExecutionError(f"failed to launch {self.command}: {e}") from e

        self._relay_output(handle)

        if handle.state == RunState.SUCCESS:
            return RunOutcome(success=True, units=units)
        return RunOutcome(success=False, reason=self._failure_reason(handle), units=units)

    def _relay_output(self, handle) -> None:
        output = getattr(handle, "output", None)
        if isinstance(output, str) and output:
            self.stream.write(output if output.endswith("\n") else output + "\n")
            self.stream.flush()

    def _failure_reason(self, handle) -> str:
        """Describe a finished, unsuccessful run."""
        error = getattr(handle, "error", None)
        if error:
            return str(error)
        reason = handle.state.name.lower()
        exit_code = getattr(handle, "exit_code", None)
        if exit_code is not None:
            reason += f" (exit status {exit_code})"
        return reason
