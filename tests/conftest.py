"""Pytest configuration and fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Project root
PROJECT_ROOT = Path(__file__).parent.parent

# Add src to the Python path (development checkouts)
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from run_notify.notifications import NotificationRequest  # noqa: E402

FAKE_CLI = Path(__file__).parent / "fixtures" / "fake_cli.py"


class RecordingSink:
    """Notification sink that remembers what it was asked to send."""

    def __init__(self, error: Exception | None = None) -> None:
        self.sent: list[NotificationRequest] = []
        self.error = error

    async def send(self, request: NotificationRequest) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append(request)


class RecordingConsole:
    """Console sink that records mirrored lines."""

    def __init__(self) -> None:
        self.lines: list[str] = []

    def __call__(self, line: str) -> None:
        self.lines.append(line)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def console() -> RecordingConsole:
    return RecordingConsole()


@pytest.fixture
def fake_cli() -> list[str]:
    """argv prefix that runs the fake child with the current interpreter."""
    return [sys.executable, str(FAKE_CLI)]
