"""Notification sink tests."""

from __future__ import annotations

import logging
import sys

import pytest

from run_notify.errors import NotificationError
from run_notify.notifications import (
    CommandNotificationSink,
    LoggingSink,
    NotificationRequest,
    NotificationSink,
    NotifySendSink,
    OsascriptSink,
    create_sink,
)
from run_notify.notifications.command import applescript_quote


class PythonSink(CommandNotificationSink):
    """Runs a Python snippet instead of a desktop helper."""

    def __init__(self, code: str, timeout: float = 5.0) -> None:
        super().__init__(timeout)
        self.code = code

    def build_argv(self, request: NotificationRequest) -> list[str]:
        return [sys.executable, "-c", self.code, request.title, request.body]


class MissingSink(CommandNotificationSink):
    def build_argv(self, request: NotificationRequest) -> list[str]:
        return ["no-such-notifier-binary-xyz", request.title]


REQUEST = NotificationRequest(title="Program Error", body="line 1\nline 2")


class TestArgv:
    """Test helper command lines."""

    def test_notify_send(self):
        argv = NotifySendSink(app_name="demo").build_argv(REQUEST)
        assert argv == ["notify-send", "--app-name=demo", "--", "Program Error", "line 1\nline 2"]

    def test_osascript(self):
        argv = OsascriptSink().build_argv(NotificationRequest(title="T", body='say "hi"'))
        assert argv[:2] == ["osascript", "-e"]
        assert argv[2] == 'display notification "say \\"hi\\"" with title "T"'

    @pytest.mark.parametrize(
        ("text", "quoted"),
        [
            ("plain", '"plain"'),
            ('a "b"', '"a \\"b\\""'),
            ("back\\slash", '"back\\\\slash"'),
            ("", '""'),
        ],
    )
    def test_applescript_quote(self, text, quoted):
        assert applescript_quote(text) == quoted


class TestCommandSink:
    """Test helper command execution."""

    @pytest.mark.asyncio
    async def test_success(self):
        await PythonSink("import sys; sys.exit(0)").send(REQUEST)

    @pytest.mark.asyncio
    async def test_nonzero_exit_raises_with_stderr(self):
        sink = PythonSink("import sys; sys.stderr.write('no daemon'); sys.exit(2)")
        with pytest.raises(NotificationError, match="exited with code 2: no daemon"):
            await sink.send(REQUEST)

    @pytest.mark.asyncio
    async def test_missing_helper_raises(self):
        with pytest.raises(NotificationError, match="cannot run"):
            await MissingSink().send(REQUEST)

    @pytest.mark.asyncio
    async def test_timeout_raises(self):
        sink = PythonSink("import time; time.sleep(30)", timeout=0.5)
        with pytest.raises(NotificationError, match="timed out"):
            await sink.send(REQUEST)

    def test_base_class_needs_argv_builder(self):
        with pytest.raises(TypeError):
            CommandNotificationSink(timeout=1)


class TestLoggingSink:
    @pytest.mark.asyncio
    async def test_logs_request(self, caplog):
        with caplog.at_level(logging.WARNING, logger="run_notify.notifications.command"):
            await LoggingSink().send(REQUEST)
        assert "Program Error: line 1\nline 2" in caplog.text


class TestCreateSink:
    """Test backend selection."""

    def test_explicit_backends(self):
        assert isinstance(create_sink("notify-send"), NotifySendSink)
        assert isinstance(create_sink("osascript"), OsascriptSink)
        assert isinstance(create_sink("log"), LoggingSink)

    def test_options_forwarded(self):
        sink = create_sink("notify-send", app_name="builds", timeout=3.0)
        assert sink.app_name == "builds"
        assert sink.timeout == 3.0

    def test_auto_on_macos(self, monkeypatch):
        monkeypatch.setattr(sys, "platform", "darwin")
        assert isinstance(create_sink("auto"), OsascriptSink)

    def test_auto_on_linux(self, monkeypatch):
        monkeypatch.setattr(sys, "platform", "linux")
        assert isinstance(create_sink("auto"), NotifySendSink)

    def test_auto_on_windows_fails(self, monkeypatch):
        monkeypatch.setattr(sys, "platform", "win32")
        with pytest.raises(NotificationError):
            create_sink("auto")

    def test_unknown_backend(self):
        with pytest.raises(NotificationError, match="unknown"):
            create_sink("pigeon")

    def test_sinks_satisfy_protocol(self):
        for backend in ("notify-send", "osascript", "log"):
            assert isinstance(create_sink(backend), NotificationSink)
