"""run-notify environment configuration.

Environment variables:
    RUN_NOTIFY_BACKEND: notification backend
        - auto = osascript on macOS, notify-send elsewhere (default)
        - notify-send / osascript = force a helper command
        - log = write the notification to the log instead

    RUN_NOTIFY_APP_NAME: application name shown by the notification daemon
        - default "run-notify"

    RUN_NOTIFY_TAIL_LINES: stderr lines shown when the program fails
        - default 3, clamped to 1-50

    RUN_NOTIFY_TIMEOUT: notification helper timeout in seconds
        - default 10, clamped to 0.5-60

    RUN_NOTIFY_DECODE_ERRORS: handling of output lines that are not UTF-8
        - drop = skip the line (default)
        - replace = keep it with U+FFFD substitutions

    RUN_NOTIFY_PROPAGATE_EXIT: exit with the program's own exit code
        - true/1/yes = on
        - false/0/no = off (default, run-notify exits 0 after a completed run)

    RUN_NOTIFY_LOG_DEBUG: debug logging
        - true/1/yes = on (DEBUG log written to a temp file)
        - false/0/no = off (default, warnings only, to stderr)
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .notifications import SUPPORTED_BACKENDS
from .runtime import DecodeErrorPolicy

__all__ = ["Config", "load_config", "get_config", "reload_config"]

DEFAULT_APP_NAME = "run-notify"
DEFAULT_TAIL_LINES = 3
DEFAULT_TIMEOUT = 10.0


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse a boolean environment variable."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _parse_backend(value: str | None) -> str:
    if not value:
        return "auto"
    backend = value.strip().lower()
    return backend if backend in SUPPORTED_BACKENDS else "auto"


def _parse_tail_lines(value: str | None) -> int:
    if not value:
        return DEFAULT_TAIL_LINES
    try:
        return max(1, min(int(value), 50))
    except ValueError:
        return DEFAULT_TAIL_LINES


def _parse_timeout(value: str | None) -> float:
    if not value:
        return DEFAULT_TIMEOUT
    try:
        return max(0.5, min(float(value), 60.0))
    except ValueError:
        return DEFAULT_TIMEOUT


def _parse_decode_errors(value: str | None) -> DecodeErrorPolicy:
    if not value:
        return DecodeErrorPolicy.DROP
    return DecodeErrorPolicy.from_string(value)


@dataclass
class Config:
    """run-notify configuration.

    Attributes:
        backend: Notification backend name
        app_name: Application name for the notification daemon
        tail_lines: Stderr lines included in the failure notification
        notify_timeout: Helper command timeout (seconds)
        decode_errors: Policy for non-UTF-8 output lines
        propagate_exit: Mirror the child's exit code
        log_debug: Debug logging to a temp file
        log_file: Log file path (set when log_debug=True)
    """

    backend: str = "auto"
    app_name: str = DEFAULT_APP_NAME
    tail_lines: int = DEFAULT_TAIL_LINES
    notify_timeout: float = DEFAULT_TIMEOUT
    decode_errors: DecodeErrorPolicy = DecodeErrorPolicy.DROP
    propagate_exit: bool = False
    log_debug: bool = False
    log_file: str | None = None

    def __repr__(self) -> str:
        return (
            f"Config(backend={self.backend}, "
            f"app_name={self.app_name}, "
            f"tail_lines={self.tail_lines}, "
            f"notify_timeout={self.notify_timeout}, "
            f"decode_errors={self.decode_errors.value}, "
            f"propagate_exit={self.propagate_exit}, "
            f"log_debug={self.log_debug}, "
            f"log_file={self.log_file})"
        )


def _generate_log_file_path() -> str:
    """Return a timestamped log path under the system temp dir."""
    log_dir = Path(tempfile.gettempdir()) / "run-notify"
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"run_notify_debug_{timestamp}.log"

    return str(log_file.resolve())


def load_config() -> Config:
    """Load configuration from the environment."""
    log_debug = _parse_bool(os.environ.get("RUN_NOTIFY_LOG_DEBUG"), default=False)
    log_file = _generate_log_file_path() if log_debug else None

    return Config(
        backend=_parse_backend(os.environ.get("RUN_NOTIFY_BACKEND")),
        app_name=os.environ.get("RUN_NOTIFY_APP_NAME", "").strip() or DEFAULT_APP_NAME,
        tail_lines=_parse_tail_lines(os.environ.get("RUN_NOTIFY_TAIL_LINES")),
        notify_timeout=_parse_timeout(os.environ.get("RUN_NOTIFY_TIMEOUT")),
        decode_errors=_parse_decode_errors(os.environ.get("RUN_NOTIFY_DECODE_ERRORS")),
        propagate_exit=_parse_bool(os.environ.get("RUN_NOTIFY_PROPAGATE_EXIT"), default=False),
        log_debug=log_debug,
        log_file=log_file,
    )


# Global config instance (lazily loaded)
_config: Config | None = None


def get_config() -> Config:
    """Return the global config instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Reload configuration (used by tests)."""
    global _config
    _config = load_config()
    return _config
