"""Line buffers and the two stream consumers.

- StderrTap: mirrors each stderr line to the console, then buffers it
- StdoutCollector: buffers stdout lines privately, no forwarding
"""

from __future__ import annotations

import sys
import threading
from collections.abc import AsyncIterable, Callable

from ..errors import ConsoleWriteError

__all__ = [
    "ConsoleSink",
    "LineBuffer",
    "StderrTap",
    "StdoutCollector",
    "write_console",
]

ConsoleSink = Callable[[str], None]


def write_console(line: str) -> None:
    """Write one line to our own stderr and flush it."""
    sys.stderr.write(line + "\n")
    sys.stderr.flush()


class LineBuffer:
    """Ordered, lock-guarded list of lines.

    Appends may come from a drain task while other code reads; readers
    always get a copy.
    """

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._lock = threading.Lock()

    def append(self, line: str) -> None:
        with self._lock:
            self._lines.append(line)

    def snapshot(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._lines)

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)


class StderrTap:
    """Forward stderr lines to the console as they arrive and keep them.

    The console write happens before the append and before the next line
    is read, so the user sees child errors in real time.
    """

    def __init__(self, buffer: LineBuffer, console: ConsoleSink = write_console) -> None:
        self.buffer = buffer
        self._console = console

    async def run(self, lines: AsyncIterable[str]) -> None:
        async for line in lines:
            try:
                self._console(line)
            except OSError as e:
                raise ConsoleWriteError(e) from e
            self.buffer.append(line)


class StdoutCollector:
    """Collect stdout lines for the final notification."""

    def __init__(self) -> None:
        self._buffer = LineBuffer()

    async def run(self, lines: AsyncIterable[str]) -> None:
        async for line in lines:
            self._buffer.append(line)

    def text(self) -> str:
        """Collected lines joined with newlines (empty string if none)."""
        return "\n".join(self._buffer.snapshot())
