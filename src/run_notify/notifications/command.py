"""Notification sinks backed by desktop helper commands.

- NotifySendSink: libnotify's ``notify-send`` (Linux, BSD)
- OsascriptSink: AppleScript ``display notification`` (macOS)
- LoggingSink: writes the notification to the log (headless machines)
"""

from __future__ import annotations

import asyncio
import logging
import sys
from abc import ABC, abstractmethod

from ..errors import NotificationError
from .base import NotificationRequest, NotificationSink

__all__ = [
    "CommandNotificationSink",
    "NotifySendSink",
    "OsascriptSink",
    "LoggingSink",
    "create_sink",
    "SUPPORTED_BACKENDS",
]

logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = frozenset({"auto", "notify-send", "osascript", "log"})

DEFAULT_TIMEOUT = 10.0


class CommandNotificationSink(ABC):
    """Run a helper command per notification.

    Subclasses implement ``build_argv``. A helper that cannot be started,
    exits non-zero or outlives ``timeout`` raises NotificationError.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.timeout = timeout

    @abstractmethod
    def build_argv(self, request: NotificationRequest) -> list[str]:
        """Command line that shows ``request`` on the desktop."""

    async def send(self, request: NotificationRequest) -> None:
        argv = self.build_argv(request)
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise NotificationError(f"cannot run {argv[0]!r}: {e.strerror or e}") from e

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise NotificationError(f"{argv[0]} timed out after {self.timeout}s") from None

        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            message = f"{argv[0]} exited with code {process.returncode}"
            raise NotificationError(f"{message}: {detail}" if detail else message)

        logger.debug(f"Notification delivered via {argv[0]}: title={request.title!r}")


class NotifySendSink(CommandNotificationSink):
    def __init__(self, app_name: str = "run-notify", timeout: float = DEFAULT_TIMEOUT) -> None:
        super().__init__(timeout)
        self.app_name = app_name

    def build_argv(self, request: NotificationRequest) -> list[str]:
        # "--" keeps a title starting with "-" from being read as an option
        return ["notify-send", f"--app-name={self.app_name}", "--", request.title, request.body]


class OsascriptSink(CommandNotificationSink):
    def build_argv(self, request: NotificationRequest) -> list[str]:
        script = (
            f"display notification {applescript_quote(request.body)} "
            f"with title {applescript_quote(request.title)}"
        )
        return ["osascript", "-e", script]


def applescript_quote(text: str) -> str:
    """Quote text as an AppleScript string literal."""
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


class LoggingSink:
    """Send notifications to the log instead of the desktop."""

    def __init__(self, level: int = logging.WARNING) -> None:
        self.level = level

    async def send(self, request: NotificationRequest) -> None:
        logger.log(self.level, f"{request.title}: {request.body}")


def create_sink(
    backend: str = "auto",
    *,
    app_name: str = "run-notify",
    timeout: float = DEFAULT_TIMEOUT,
) -> NotificationSink:
    """Build the sink for a backend name.

    Args:
        backend: auto/notify-send/osascript/log
        app_name: Application name passed to notify-send
        timeout: Helper command timeout in seconds

    Raises:
        NotificationError: Unknown backend, or no desktop backend for this platform
    """
    if backend == "auto":
        if sys.platform == "darwin":
            backend = "osascript"
        elif sys.platform == "win32":
            raise NotificationError("no desktop notification backend for Windows; set RUN_NOTIFY_BACKEND=log")
        else:
            backend = "notify-send"

    if backend == "notify-send":
        return NotifySendSink(app_name=app_name, timeout=timeout)
    if backend == "osascript":
        return OsascriptSink(timeout=timeout)
    if backend == "log":
        return LoggingSink()
    raise NotificationError(f"unknown notification backend: {backend!r}")
