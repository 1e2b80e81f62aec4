"""run-notify - run a program and get a desktop notification when it ends.

Environment variables:
    RUN_NOTIFY_BACKEND: notification backend (auto/notify-send/osascript/log)
    RUN_NOTIFY_TAIL_LINES: stderr lines shown on failure (default 3)
    RUN_NOTIFY_PROPAGATE_EXIT: mirror the program's exit code (default false)

Usage:
    run-notify make test
"""

__version__ = "0.1.0"

from .app import main

__all__ = ["__version__", "main"]
