"""One-time verification code data model.

Codes are single use: a successful verification deletes the row, so
"used" and "deleted" are the same terminal state.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from vault_gateway.models.lifecycle import TokenState, state_at
from vault_gateway.utils.datetime import utcnow


class OneTimeCode(SQLModel, table=True):
    """Short-lived numeric code issued to a user."""

    __tablename__ = "one_time_codes"

    id: str = Field(primary_key=True)
    user_id: str = Field(index=True)
    email: Optional[str] = Field(default=None, index=True)
    code: str
    used: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    expires_at: datetime = Field(index=True, sa_type=DateTime)

    def state(self, now: datetime | None = None) -> TokenState:
        return state_at(self.expires_at, now or utcnow())
