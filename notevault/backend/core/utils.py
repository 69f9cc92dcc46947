"""
Core Utilities.

Shared utility functions used across the backend.
All modules should import utilities from this module.
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-naive datetime.

    All datetime values in the application are timezone-naive and assumed
    to be UTC, which keeps comparisons against stored timestamps (trash
    retention, token expiry) consistent across database backends.

    Returns:
        Current UTC time with tzinfo stripped
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_days_ago(days: int) -> datetime:
    """Return the naive UTC timestamp `days` days before now."""
    return utc_now() - timedelta(days=days)


def utc_days_from_now(days: int) -> datetime:
    """Return the naive UTC timestamp `days` days after now."""
    return utc_now() + timedelta(days=days)
