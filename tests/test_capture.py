"""LineBuffer, StderrTap and StdoutCollector tests."""

from __future__ import annotations

import pytest

from run_notify.errors import ConsoleWriteError
from run_notify.runtime.capture import LineBuffer, StderrTap, StdoutCollector


async def lines_of(*items: str):
    for item in items:
        yield item


class TestLineBuffer:
    def test_preserves_order(self):
        buffer = LineBuffer()
        for line in ["a", "b", "c"]:
            buffer.append(line)
        assert buffer.snapshot() == ("a", "b", "c")
        assert len(buffer) == 3


class TestStderrTap:
    @pytest.mark.asyncio
    async def test_mirrors_and_buffers(self, console):
        buffer = LineBuffer()
        tap = StderrTap(buffer, console)

        await tap.run(lines_of("warn 1", "warn 2"))

        assert console.lines == ["warn 1", "warn 2"]
        assert buffer.snapshot() == ("warn 1", "warn 2")

    @pytest.mark.asyncio
    async def test_console_written_before_append(self):
        buffer = LineBuffer()
        seen_by_console: list[int] = []

        def console(line: str) -> None:
            # Buffer size at the moment the line is mirrored
            seen_by_console.append(len(buffer))

        await StderrTap(buffer, console).run(lines_of("x", "y", "z"))

        assert seen_by_console == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_console_failure_raises_console_write_error(self):
        buffer = LineBuffer()

        def closed_console(line: str) -> None:
            raise BrokenPipeError(32, "Broken pipe")

        with pytest.raises(ConsoleWriteError) as exc_info:
            await StderrTap(buffer, closed_console).run(lines_of("lost"))

        assert isinstance(exc_info.value.cause, BrokenPipeError)
        assert "Broken pipe" in str(exc_info.value)
        assert buffer.snapshot() == ()

    @pytest.mark.asyncio
    async def test_default_console_is_stderr(self, capsys):
        buffer = LineBuffer()
        await StderrTap(buffer).run(lines_of("boom"))

        captured = capsys.readouterr()
        assert captured.err == "boom\n"
        assert captured.out == ""


class TestStdoutCollector:
    @pytest.mark.asyncio
    async def test_joins_with_newlines(self):
        collector = StdoutCollector()
        await collector.run(lines_of("result: 42", "done"))
        assert collector.text() == "result: 42\ndone"

    @pytest.mark.asyncio
    async def test_empty(self):
        collector = StdoutCollector()
        await collector.run(lines_of())
        assert collector.text() == ""
