"""
Core Utilities

Shared helpers used across the application.
"""
from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """
    Return timezone-aware UTC datetime.

    Use this instead of datetime.utcnow() which returns naive datetime.
    """
    return datetime.now(timezone.utc)


def utctoday() -> date:
    """Current UTC calendar date."""
    return utcnow().date()
