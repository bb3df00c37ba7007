"""Trusted device data model.

A trusted device lets a user skip the one-time code step on a browser
that already passed it. One live row per device_token.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from vault_gateway.models.lifecycle import TokenState, state_at
from vault_gateway.utils.datetime import utcnow

DEFAULT_DEVICE_NAME = "Unknown Device"


class TrustedDevice(SQLModel, table=True):
    """Device token bound to a user until expires_at."""

    __tablename__ = "trusted_devices"

    id: str = Field(primary_key=True)
    user_id: str = Field(index=True)
    device_token: str = Field(index=True, unique=True)
    device_name: str = Field(default=DEFAULT_DEVICE_NAME)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    expires_at: datetime = Field(index=True, sa_type=DateTime)
    last_used_at: Optional[datetime] = Field(default=None, sa_type=DateTime)

    def state(self, now: datetime | None = None) -> TokenState:
        return state_at(self.expires_at, now or utcnow())
