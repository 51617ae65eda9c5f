"""
Utility functions and performance helpers for fpstrack.

This module provides:
- Performance timing decorator and context manager
- Timestamp conversion between log text, ISO 8601 and epoch milliseconds
- Small formatting helpers used by the CLI
"""

import logging
import math
import time
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Any, TypeVar

from fpstrack.core.constants import LOG_TIMESTAMP_FORMAT

logger = logging.getLogger(__name__)

# Type variable for generic decorators
F = TypeVar("F", bound=Callable[..., Any])

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)


def timed(func: F) -> F:
    """
    Decorator to measure and log function execution time.

    Usage:
        @timed
        def my_function():
            ...
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = time.perf_counter() - start_time
        logger.debug(f"{func.__name__} completed in {elapsed:.3f}s")
        return result

    return wrapper  # type: ignore


class PerformanceMonitor:
    """
    Context manager for monitoring performance of code blocks.

    Usage:
        with PerformanceMonitor("parsing log"):
            parse_log(...)
    """

    def __init__(self, operation_name: str, log_level: int = logging.DEBUG):
        self.operation_name = operation_name
        self.log_level = log_level
        self.start_time: float | None = None
        self.elapsed: float = 0.0

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed = time.perf_counter() - (self.start_time or 0)
        if exc_type is not None:
            logger.error(f"{self.operation_name} failed after {self.elapsed:.3f}s: {exc_val}")
        else:
            logger.log(self.log_level, f"{self.operation_name} completed in {self.elapsed:.3f}s")
        return False


def parse_timestamp(text: Any) -> float:
    """
    Convert a timestamp string to epoch milliseconds.

    Accepts the client log format ("2025.04.04 23:42:13") and ISO 8601
    ("2025-04-04T23:42:13.000Z"). Naive values are read as UTC.

    Args:
        text: Timestamp text

    Returns:
        Milliseconds since the epoch, or NaN if the text is not a date
    """
    if not isinstance(text, str):
        return math.nan

    text = text.strip()
    try:
        dt = datetime.strptime(text, LOG_TIMESTAMP_FORMAT)
    except ValueError:
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return math.nan

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - _EPOCH) / _ONE_MS


def to_iso_timestamp(epoch_ms: float) -> str:
    """
    Format epoch milliseconds as ISO 8601 UTC with millisecond precision.

    Returns an empty string for non-finite input.
    """
    if not math.isfinite(epoch_ms):
        return ""
    dt = _EPOCH + timedelta(milliseconds=epoch_ms)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_clock(epoch_ms: float) -> str:
    """Format epoch milliseconds as HH:MM:SS (UTC)."""
    if not math.isfinite(epoch_ms):
        return ""
    dt = _EPOCH + timedelta(milliseconds=epoch_ms)
    return dt.strftime("%H:%M:%S")


def strip_brackets(text: str) -> str:
    """Remove square brackets, so "[MWG_]" and "MWG_" mean the same prefix."""
    return text.replace("[", "").replace("]", "")


def format_duration(seconds: float) -> str:
    """
    Format a duration in seconds to a human-readable string.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string like "2m 30s" or "1.5s"
    """
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    else:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs}s"
