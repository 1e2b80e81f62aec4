"""Runtime module for child process supervision and output capture.

This module spawns the child, drains stdout and stderr concurrently and
hands back a RunResult once the child exited and both pipes are empty.
"""

from __future__ import annotations

from .capture import LineBuffer, StderrTap, StdoutCollector, write_console
from .line_reader import DecodeErrorPolicy, LineReader
from .process_runner import ExitOutcome, ProcessRunner, ProcessSpec, RunResult

__all__ = [
    "DecodeErrorPolicy",
    "ExitOutcome",
    "LineBuffer",
    "LineReader",
    "ProcessRunner",
    "ProcessSpec",
    "RunResult",
    "StderrTap",
    "StdoutCollector",
    "write_console",
]
