"""Simple logging helper.

Everything goes to stderr: stdout may be carrying the rendered image.
"""

import sys
from datetime import datetime

from .env import get_config


def _ts() -> str:
    """Get current timestamp string."""
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def info(msg: str) -> None:
    """Print progress message unless running silent."""
    if not get_config().silent:
        print(f"[{_ts()}] {msg}", file=sys.stderr)


def debug(msg: str) -> None:
    """Print debug message if PROMPLOT_DEBUG is enabled."""
    if get_config().debug:
        print(f"[{_ts()}] DEBUG: {msg}", file=sys.stderr)


def error(msg: str) -> None:
    """Print error message to stderr."""
    print(f"[{_ts()}] ERROR: {msg}", file=sys.stderr)


def warn(msg: str) -> None:
    """Print warning message to stderr."""
    print(f"[{_ts()}] WARN: {msg}", file=sys.stderr)
