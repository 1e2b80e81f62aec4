"""run-notify exception classes."""

from __future__ import annotations

from collections.abc import Sequence

__all__ = [
    "RunNotifyError",
    "StartupError",
    "StreamReadError",
    "ConsoleWriteError",
    "NotificationError",
]


class RunNotifyError(Exception):
    """Base class for fatal run errors."""
    pass


class StartupError(RunNotifyError):
    """The child process could not be spawned.

    Attributes:
        argv: Command line that failed to start
        cause: Underlying OS error
    """

    def __init__(self, argv: Sequence[str], cause: OSError) -> None:
        self.argv = list(argv)
        self.cause = cause
        program = self.argv[0] if self.argv else "<empty>"
        super().__init__(f"cannot start {program!r}: {cause.strerror or cause}")


class StreamReadError(RunNotifyError):
    """A child output stream failed mid-read.

    Attributes:
        stream_name: "stdout" or "stderr"
        cause: Underlying OS error
    """

    def __init__(self, stream_name: str, cause: OSError) -> None:
        self.stream_name = stream_name
        self.cause = cause
        super().__init__(f"failed reading child {stream_name}: {cause}")


class ConsoleWriteError(RunNotifyError):
    """Mirroring a child stderr line to our own stderr failed (e.g. closed pipe)."""

    def __init__(self, cause: OSError) -> None:
        self.cause = cause
        super().__init__(f"cannot write to console: {cause.strerror or cause}")


class NotificationError(RunNotifyError):
    """The notification sink failed to deliver a request."""
    pass
