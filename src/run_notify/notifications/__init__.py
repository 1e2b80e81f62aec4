"""Notification delivery backends."""

from __future__ import annotations

from .base import NotificationRequest, NotificationSink
from .command import (
    SUPPORTED_BACKENDS,
    CommandNotificationSink,
    LoggingSink,
    NotifySendSink,
    OsascriptSink,
    create_sink,
)

__all__ = [
    "NotificationRequest",
    "NotificationSink",
    "CommandNotificationSink",
    "NotifySendSink",
    "OsascriptSink",
    "LoggingSink",
    "create_sink",
    "SUPPORTED_BACKENDS",
]
