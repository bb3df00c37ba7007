"""API Key data model.

Stores hashed API keys for gateway authentication.
Plaintext keys are never stored, only SHA-256 hashes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from vault_gateway.models.lifecycle import TokenState, state_at
from vault_gateway.utils.datetime import utcnow


class ApiKey(SQLModel, table=True):
    """API Key for the read-only gateway.

    Keys are stored as SHA-256 hashes. The key_prefix (first 12 chars)
    is stored for identification in logs and admin UIs.
    """

    __tablename__ = "api_keys"

    id: str = Field(primary_key=True)
    key_hash: str = Field(index=True, unique=True)  # SHA-256 hex digest
    key_prefix: str = Field(default="")  # e.g. "evk_1a2b3c4d"
    name: str = Field(default="default")
    user_id: Optional[str] = Field(default=None, index=True)
    is_active: bool = Field(default=True)
    expires_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    last_used_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)

    def state(self, now: datetime | None = None) -> TokenState:
        """Expiry state at ``now`` (activation is checked separately)."""
        return state_at(self.expires_at, now or utcnow())
