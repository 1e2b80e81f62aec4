"""run-notify entry point.

Supports: python -m run_notify
"""

from .app import main

if __name__ == "__main__":
    main()
