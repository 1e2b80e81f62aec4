"""Turn a finished run into at most one desktop notification.

- Failure: the last few stderr lines, always sent (even if empty)
- Success: the full stdout, sent only when it is not blank
"""

from __future__ import annotations

import logging

from .errors import NotificationError
from .notifications import NotificationRequest, NotificationSink
from .runtime import ExitOutcome, RunResult

__all__ = [
    "Notifier",
    "ERROR_TITLE",
    "OUTPUT_TITLE",
    "DEFAULT_TAIL_LINES",
]

logger = logging.getLogger(__name__)

ERROR_TITLE = "Program Error"
OUTPUT_TITLE = "Program Output"
DEFAULT_TAIL_LINES = 3


class Notifier:
    """Build and dispatch the completion notification."""

    def __init__(self, sink: NotificationSink, tail_lines: int = DEFAULT_TAIL_LINES) -> None:
        self.sink = sink
        self.tail_lines = tail_lines

    def build_request(self, result: RunResult) -> NotificationRequest | None:
        """Pick title and body for a run, or None if there is nothing to say."""
        if result.outcome is ExitOutcome.FAILURE:
            tail = result.stderr_lines[-self.tail_lines:] if self.tail_lines > 0 else ()
            return NotificationRequest(title=ERROR_TITLE, body="\n".join(tail))

        if result.stdout.strip():
            return NotificationRequest(title=OUTPUT_TITLE, body=result.stdout)
        return None

    async def notify(self, result: RunResult) -> NotificationRequest | None:
        """Send the notification for a run.

        Returns:
            The request that was sent, or None when nothing was sent

        Raises:
            NotificationError: If the sink fails
        """
        request = self.build_request(result)
        if request is None:
            logger.debug("Program succeeded with blank stdout, no notification")
            return None

        try:
            await self.sink.send(request)
        except NotificationError:
            raise
        except OSError as e:
            raise NotificationError(f"notification delivery failed: {e}") from e
        return request
