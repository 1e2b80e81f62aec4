"""Process supervisor: spawn the child, drain both pipes, wait for exit.

This module provides:
- Child spawning with stdout/stderr piped and stdin inherited
- Concurrent draining of both pipes plus the exit wait (anyio task group)
- Fatal-error teardown: the child is terminated if a drain fails
- Cancel-safe cleanup (SIGTERM -> timeout -> SIGKILL)

Key design points:
- The task group exit is the barrier; results are read only after it
- Neither pipe can block the other, so a chatty child never deadlocks
- Errors from the drains surface unwrapped, not as an ExceptionGroup
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import subprocess
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import anyio

from ..errors import RunNotifyError, StartupError, StreamReadError
from .capture import ConsoleSink, LineBuffer, StderrTap, StdoutCollector, write_console
from .line_reader import DecodeErrorPolicy, LineReader

__all__ = [
    "ExitOutcome",
    "ProcessRunner",
    "ProcessSpec",
    "RunResult",
]

logger = logging.getLogger(__name__)

# Platform detection
IS_WINDOWS = sys.platform == "win32"

# Default timeouts
DEFAULT_TERM_TIMEOUT = 2.0  # seconds to wait after SIGTERM
DEFAULT_KILL_TIMEOUT = 1.0  # seconds to wait after SIGKILL
KILL_SIGNAL = getattr(signal, "SIGKILL", signal.SIGTERM)


class ExitOutcome(Enum):
    """How the child finished."""

    SUCCESS = "success"
    FAILURE = "failure"

    @classmethod
    def from_returncode(cls, returncode: int) -> "ExitOutcome":
        """0 is success; any other code, including signal deaths, is failure."""
        return cls.SUCCESS if returncode == 0 else cls.FAILURE


@dataclass(frozen=True)
class ProcessSpec:
    """Specification for a child process to run.

    Attributes:
        argv: Command line arguments (first element is the executable)
        cwd: Working directory for the process (None = inherit)
        env: Environment variables (None = inherit parent)
        new_session: Start the child in its own session/process group
    """

    argv: list[str]
    cwd: Path | None = None
    env: Mapping[str, str] | None = None
    new_session: bool = False


@dataclass(frozen=True)
class RunResult:
    """Everything the notifier needs from a finished run.

    Attributes:
        outcome: SUCCESS or FAILURE
        returncode: Raw child return code (negative = killed by signal)
        stderr_lines: Stderr lines in emission order
        stdout: Stdout lines joined with newlines
    """

    outcome: ExitOutcome
    returncode: int
    stderr_lines: tuple[str, ...]
    stdout: str


@dataclass
class ProcessRunner:
    """Run a child to completion while capturing both output streams.

    Example:
        runner = ProcessRunner()
        result = await runner.run(ProcessSpec(argv=["make", "test"]))
        if result.outcome is ExitOutcome.FAILURE:
            print(result.stderr_lines[-3:])
    """

    console: ConsoleSink = write_console
    decode_errors: DecodeErrorPolicy = DecodeErrorPolicy.DROP
    term_timeout: float = DEFAULT_TERM_TIMEOUT
    kill_timeout: float = DEFAULT_KILL_TIMEOUT

    async def run(self, spec: ProcessSpec) -> RunResult:
        """Spawn the child and return once it exited and both pipes drained.

        Args:
            spec: Process specification

        Returns:
            RunResult with exit outcome and both captured streams

        Raises:
            StartupError: If the program cannot be spawned
            StreamReadError: If reading either pipe fails
        """
        process = await self._spawn(spec)
        stderr_buffer = LineBuffer()
        tap = StderrTap(stderr_buffer, self.console)
        collector = StdoutCollector()
        exit_status: dict[str, int] = {}

        async def wait_exit() -> None:
            exit_status["returncode"] = await process.wait()

        try:
            try:
                async with anyio.create_task_group() as tg:
                    tg.start_soon(tap.run, self._reader(process.stderr, "stderr"))
                    tg.start_soon(collector.run, self._reader(process.stdout, "stdout"))
                    tg.start_soon(wait_exit)
            except BaseExceptionGroup as group:
                error = _find_run_error(group)
                if error is None:
                    raise
                raise error from None
        finally:
            await self._safe_cleanup(process)

        returncode = exit_status["returncode"]
        logger.debug(
            f"Subprocess completed pid={process.pid} returncode={returncode} "
            f"stderr_lines={len(stderr_buffer)}"
        )
        return RunResult(
            outcome=ExitOutcome.from_returncode(returncode),
            returncode=returncode,
            stderr_lines=stderr_buffer.snapshot(),
            stdout=collector.text(),
        )

    async def _spawn(self, spec: ProcessSpec) -> asyncio.subprocess.Process:
        if not spec.argv:
            raise StartupError(spec.argv, OSError("empty command line"))

        kwargs = self._build_subprocess_kwargs(spec)
        try:
            process = await asyncio.create_subprocess_exec(
                *spec.argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=spec.cwd,
                **kwargs,
            )
        except OSError as e:
            raise StartupError(spec.argv, e) from e

        logger.debug(f"Started subprocess pid={process.pid} argv={spec.argv}")
        return process

    def _reader(self, stream: asyncio.StreamReader | None, name: str) -> LineReader:
        if stream is None:
            raise StreamReadError(name, OSError(f"{name} was not piped"))
        return LineReader(stream, name=name, decode_errors=self.decode_errors)

    def _build_subprocess_kwargs(self, spec: ProcessSpec) -> dict[str, Any]:
        """Build platform-specific subprocess kwargs."""
        kwargs: dict[str, Any] = {}

        if spec.env is not None:
            kwargs["env"] = dict(spec.env)

        if spec.new_session:
            if IS_WINDOWS:
                kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP
            else:
                kwargs["start_new_session"] = True

        return kwargs

    async def _safe_cleanup(self, process: asyncio.subprocess.Process) -> None:
        """Terminate the child if it is still running, shielded from cancellation."""
        if process.returncode is not None:
            return
        with anyio.CancelScope(shield=True):
            await self._terminate_process(process, group=process_group_of(process))

    async def _terminate_process(
        self,
        process: asyncio.subprocess.Process,
        group: int | None = None,
    ) -> None:
        """Terminate the child gracefully, then forcefully if needed.

        Termination strategy:
        1. Send SIGTERM (to the process group when the child has its own)
        2. Wait up to term_timeout for graceful exit
        3. If still running, send SIGKILL
        4. Wait up to kill_timeout for forced exit
        """
        pid = process.pid
        logger.debug(f"Terminating subprocess pid={pid} pgid={group}")

        try:
            _send(process, signal.SIGTERM, group)
            try:
                await asyncio.wait_for(process.wait(), timeout=self.term_timeout)
                logger.debug(f"Subprocess terminated pid={pid} returncode={process.returncode}")
                return
            except asyncio.TimeoutError:
                pass

            logger.debug(f"Force killing subprocess pid={pid}")
            _send(process, KILL_SIGNAL, group)
            try:
                await asyncio.wait_for(process.wait(), timeout=self.kill_timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Subprocess did not exit after kill pid={pid}")

        except ProcessLookupError:
            logger.debug(f"Subprocess already exited pid={pid}")


def process_group_of(process: asyncio.subprocess.Process) -> int | None:
    """Return the child's own process group id, or None if it shares ours."""
    if IS_WINDOWS:
        return None
    try:
        pgid = os.getpgid(process.pid)
    except ProcessLookupError:
        return None
    return pgid if pgid != os.getpgrp() else None


def _send(process: asyncio.subprocess.Process, sig: int, group: int | None) -> None:
    if group is not None:
        try:
            os.killpg(group, sig)
            logger.debug(f"Sent {signal.Signals(sig).name} to process group pgid={group}")
            return
        except OSError as e:
            logger.debug(f"killpg failed, falling back to process signal: {e}")
    if sig == signal.SIGTERM:
        process.terminate()
    else:
        process.kill()


def _find_run_error(group: BaseExceptionGroup) -> RunNotifyError | None:
    for exc in group.exceptions:
        if isinstance(exc, RunNotifyError):
            return exc
        if isinstance(exc, BaseExceptionGroup):
            found = _find_run_error(exc)
            if found is not None:
                return found
    return None
