"""Notification sink interface."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

__all__ = [
    "NotificationRequest",
    "NotificationSink",
]


@dataclass(frozen=True)
class NotificationRequest:
    """A single desktop notification.

    Attributes:
        title: Notification summary line
        body: Notification text (may be empty)
    """

    title: str
    body: str


@runtime_checkable
class NotificationSink(Protocol):
    """Delivers a notification or raises NotificationError."""

    async def send(self, request: NotificationRequest) -> None: ...
