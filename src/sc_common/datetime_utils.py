"""UTC time utilities.

Settlement logic compares unix seconds (ints); datetimes only appear at the
persistence and API edges.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def unix_now() -> int:
    """Current unix timestamp in whole seconds."""
    return int(utc_now().timestamp())
