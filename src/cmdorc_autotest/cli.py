"""CLI entry point for cmdorc-autotest: watches directories and reruns a command on changes."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.logging import RichHandler

from autotest_engine.config import AutotestConfig, load_autotest_config
from autotest_engine.errors import ConfigError, WatchError
from autotest_engine.notifier import ConsoleNotifier
from cmdorc_autotest import __version__
from cmdorc_autotest.controller import AutotestController

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "autotest.toml"


def parse_args(argv: list[str] | None = None) -> tuple[argparse.Namespace, list[str]]:
    """
    Parse command-line arguments.

    Arguments that look like flags but are not recognized are passed on to
    the command, in order. Command flags that take a value must use the
    ``--flag=value`` form.

    Returns:
        Tuple of (parsed arguments, extra command arguments)
    """
    parser = argparse.ArgumentParser(
        prog="cmdorc-autotest",
        description="Monitors the file system and automatically reruns a command on changes.",
        epilog="Examples:\n"
        "  cmdorc-autotest                       # Watch . and run pytest\n"
        "  cmdorc-autotest src tests -x          # Watch src and tests, run 'pytest -x src tests'\n"
        "  cmdorc-autotest mypkg --settle 2000   # Watch an installed package, 2s settle time\n"
        "  cmdorc-autotest --command 'make test' # Run a different command",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "targets",
        nargs="*",
        metavar="path|package",
        help="Directory (watched recursively) or importable package name",
    )

    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help=f"Path to config file (default: {DEFAULT_CONFIG_NAME} if present)",
    )

    parser.add_argument(
        "--settle",
        type=int,
        default=None,
        metavar="MS",
        help="Milliseconds to wait after the last change before running",
    )

    parser.add_argument(
        "--command",
        default=None,
        help="Command to run (default: pytest)",
    )

    parser.add_argument(
        "--no-initial-run",
        dest="run_on_start",
        action="store_false",
        default=None,
        help="Do not run the command before the first change",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log every filesystem event (same as debug = true in the config file)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    args, unknown = parser.parse_known_args(argv)
    extra: list[str] = []
    for arg in unknown:
        if arg.startswith("-"):
            extra.append(arg)
        else:
            args.targets.append(arg)
    return args, extra


def build_config(args: argparse.Namespace, extra: list[str], cwd: Path | None = None) -> AutotestConfig:
    """
    Combine the config file (if any) with command-line overrides.

    Raises:
        FileNotFoundError: If an explicitly named config file does not exist
        ConfigError: If the config file or an option value is invalid
    """
    cwd = cwd or Path.cwd()
    config = AutotestConfig()

    if args.config is not None:
        config = load_autotest_config(cwd / args.config)
    elif (cwd / DEFAULT_CONFIG_NAME).exists():
        config = load_autotest_config(cwd / DEFAULT_CONFIG_NAME)

    return config.merged(
        settle_time=args.settle / 1000.0 if args.settle is not None else None,
        command=args.command,
        run_on_start=args.run_on_start,
        debug=args.debug or None,
        paths=tuple(args.targets) or None,
        extra_args=(*config.extra_args, *extra) if extra else None,
    )


def configure_logging(debug: bool = False) -> None:
    """Install a rich log handler; package loggers go to DEBUG with ``debug``."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False, rich_tracebacks=True)],
        force=True,
    )
    level = logging.DEBUG if debug else logging.INFO
    for name in ("autotest_engine", "cmdorc_autotest"):
        logging.getLogger(name).setLevel(level)
    if not debug:
        # Suppress noisy loggers
        logging.getLogger("watchdog").setLevel(logging.WARNING)
        logging.getLogger("cmdorc").setLevel(logging.WARNING)


def main(argv: list[str] | None = None) -> None:
    """
    Main entry point for cmdorc-autotest CLI.

    Handles:
    - Argument parsing and config loading
    - Watching targets and running the command loop
    - Error handling and exit codes
    """
    args, extra = parse_args(argv)

    try:
        config = build_config(args, extra)
    except (FileNotFoundError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(config.debug)

    controller = AutotestController(config, notifier=ConsoleNotifier())

    try:
        asyncio.run(controller.run())
    except KeyboardInterrupt:
        # Gracefully handle Ctrl+C
        sys.exit(130)
    except WatchError as e:
        logger.error(str(e))
        sys.exit(1)

    logger.info("exiting")


if __name__ == "__main__":
    main()
