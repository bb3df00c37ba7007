"""Expiry state shared by time-bound records."""

from __future__ import annotations

from datetime import datetime
from enum import Enum


class TokenState(str, Enum):
    """Read-time state of an expiring record.

    Issued records are ACTIVE until ``expires_at`` passes. Consumption is
    modelled by deleting the row, so it has no state of its own.
    """

    ACTIVE = "active"
    EXPIRED = "expired"


def state_at(expires_at: datetime | None, now: datetime) -> TokenState:
    """Evaluate the expiry transition at ``now``. ``None`` never expires."""
    if expires_at is not None and expires_at <= now:
        return TokenState.EXPIRED
    return TokenState.ACTIVE
