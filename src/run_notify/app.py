"""run-notify application entry point.

Parses the command line, configures logging, runs the program and sends
the completion notification.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
from collections.abc import Sequence

from . import __version__
from .config import Config, get_config
from .errors import RunNotifyError
from .notifications import NotificationSink, create_sink
from .notifier import Notifier
from .runtime import ProcessRunner, ProcessSpec, RunResult, write_console
from .runtime.capture import ConsoleSink

__all__ = ["build_parser", "run_program", "exit_code_for", "main"]

logger = logging.getLogger(__name__)

PROG = "run-notify"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description=(
            "Run a program, mirror its stderr, and show a desktop notification "
            "with its output (on success) or its last error lines (on failure)."
        ),
    )
    parser.add_argument(
        "--propagate-exit-code",
        action="store_true",
        help="exit with the program's own exit code",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("program", help="the program to execute")
    parser.add_argument("args", nargs=argparse.REMAINDER, help="arguments passed to the program")
    return parser


async def run_program(
    argv: Sequence[str],
    config: Config,
    *,
    sink: NotificationSink | None = None,
    console: ConsoleSink | None = None,
) -> RunResult:
    """Run ``argv`` to completion and send its notification.

    Args:
        argv: Program followed by its arguments
        config: Runtime configuration
        sink: Notification sink (default: built from config.backend)
        console: Where mirrored stderr lines go (default: our own stderr)

    Returns:
        The finished run

    Raises:
        RunNotifyError: On startup, stream or notification failure
    """
    if sink is None:
        sink = create_sink(config.backend, app_name=config.app_name, timeout=config.notify_timeout)

    runner = ProcessRunner(console=console or write_console, decode_errors=config.decode_errors)
    result = await runner.run(ProcessSpec(argv=list(argv)))
    logger.info(f"{argv[0]} finished: outcome={result.outcome.value} returncode={result.returncode}")

    await Notifier(sink, tail_lines=config.tail_lines).notify(result)
    return result


def exit_code_for(result: RunResult, propagate: bool) -> int:
    """Our own exit status for a completed run."""
    if not propagate:
        return 0
    if result.returncode < 0:
        # Killed by a signal, report it the way shells do
        return 128 + abs(result.returncode)
    return result.returncode


def _configure_logging(config: Config) -> None:
    log_handlers: list[logging.Handler] = []

    if config.log_debug and config.log_file:
        file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        log_handlers.append(file_handler)
        log_level = logging.DEBUG
    else:
        # stderr is shared with the program's mirrored output, keep it quiet
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        log_handlers.append(stderr_handler)
        log_level = logging.WARNING

    logging.basicConfig(level=logging.WARNING, handlers=log_handlers)
    logging.getLogger("run_notify").setLevel(log_level)


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    config = get_config()
    _configure_logging(config)
    logger.debug(f"Starting {PROG} {__version__}: {config}")

    command = [args.program, *args.args]
    try:
        result = asyncio.run(run_program(command, config))
    except RunNotifyError as e:
        logger.debug(f"Run failed: {type(e).__name__}: {e}")
        # stderr itself may be the broken pipe
        with contextlib.suppress(OSError):
            print(f"{PROG}: error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(128 + signal.SIGINT)

    sys.exit(exit_code_for(result, args.propagate_exit_code or config.propagate_exit))


if __name__ == "__main__":
    main()
