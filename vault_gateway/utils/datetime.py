"""Datetime helpers.

Provides UTC timestamp helpers without using deprecated ``datetime.utcnow()``.
"""

from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return current UTC time as a naive datetime.

    Timestamps are stored as naive UTC datetimes in the models. SQLite drops
    tzinfo on round-trip, so comparisons are kept naive throughout.
    """
    return datetime.now(UTC).replace(tzinfo=None)


def isoformat_utc(value: datetime | None) -> str | None:
    """Render a stored naive UTC datetime as an ISO 8601 string with ``Z``."""
    if value is None:
        return None
    return value.replace(tzinfo=None).isoformat() + "Z"
