"""API Key service.

Handles key generation, hashing, lookup and request-time validation.
Raw keys are hashed before any store access; only digests are persisted
or compared.
"""

from __future__ import annotations

import hashlib
import hmac
import os
import secrets
import uuid
from datetime import datetime

import structlog
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from vault_gateway.config import Settings
from vault_gateway.errors import AuthInvalidError, AuthMissingError
from vault_gateway.models.api_key import ApiKey
from vault_gateway.models.lifecycle import TokenState
from vault_gateway.utils.datetime import utcnow

logger = structlog.get_logger()

# Key format: evk_{32 hex chars}
_KEY_PREFIX = "evk_"
_KEY_DISPLAY_LEN = 12  # chars to store as key_prefix for identification


def digest(raw_key: str) -> str:
    """SHA-256 hex digest of a raw key (64 chars, deterministic)."""
    return hashlib.sha256(raw_key.encode()).hexdigest()


class ApiKeyRepository:
    """Store access for API key records."""

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session

    async def find_by_hash(self, key_hash: str) -> ApiKey | None:
        result = await self._db.execute(
            select(ApiKey).where(ApiKey.key_hash == key_hash)
        )
        return result.scalars().first()

    async def touch(self, key_id: str, now: datetime) -> None:
        """Record a successful use."""
        await self._db.execute(
            update(ApiKey).where(ApiKey.id == key_id).values(last_used_at=now)
        )
        await self._db.commit()

    async def add(self, api_key: ApiKey) -> None:
        self._db.add(api_key)
        await self._db.flush()


class SecretValidator:
    """Admits gateway requests by API key."""

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session
        self._repo = ApiKeyRepository(db_session)
        self._log = logger.bind(service="secret_validator")

    async def validate(self, raw_key: str | None) -> ApiKey:
        """Validate a raw key and return its record.

        Raises:
            AuthMissingError: No key supplied
            AuthInvalidError: Unknown, inactive or expired key
        """
        if not raw_key:
            raise AuthMissingError()

        key_hash = digest(raw_key)
        api_key = await self._repo.find_by_hash(key_hash)
        now = utcnow()

        if api_key is None or not api_key.is_active:
            self._log.info("api_key.rejected", reason="invalid")
            raise AuthInvalidError("invalid")

        if api_key.state(now) is TokenState.EXPIRED:
            self._log.info(
                "api_key.rejected",
                reason="expired",
                key_prefix=api_key.key_prefix,
            )
            raise AuthInvalidError("expired")

        # Detach so a failed telemetry write cannot expire the returned record.
        self._db.expunge(api_key)
        await self._record_use(api_key, now)
        return api_key

    async def _record_use(self, api_key: ApiKey, now: datetime) -> None:
        """Update last_used_at; failures are telemetry-only."""
        try:
            await self._repo.touch(api_key.id, now)
        except SQLAlchemyError as e:
            await self._db.rollback()
            self._log.warning(
                "api_key.touch_failed",
                key_prefix=api_key.key_prefix,
                error=str(e),
            )
        else:
            api_key.last_used_at = now


class ApiKeyService:
    """Service for API key issuance."""

    @staticmethod
    def generate_key() -> tuple[str, str, str]:
        """Generate a new API key.

        Returns:
            Tuple of (plaintext, key_hash, key_prefix)
        """
        random_part = secrets.token_hex(16)  # 32 hex chars
        plaintext = f"{_KEY_PREFIX}{random_part}"
        return plaintext, ApiKeyService.hash_key(plaintext), plaintext[:_KEY_DISPLAY_LEN]

    @staticmethod
    def hash_key(plaintext: str) -> str:
        """Hash a plaintext key using SHA-256."""
        return digest(plaintext)

    @staticmethod
    def verify_key(plaintext: str, key_hash: str) -> bool:
        """Verify a plaintext key against a stored hash in constant time."""
        return hmac.compare_digest(digest(plaintext), key_hash)

    @staticmethod
    async def issue(
        db: AsyncSession,
        name: str,
        *,
        user_id: str | None = None,
        expires_at: datetime | None = None,
    ) -> tuple[str, ApiKey]:
        """Create a key record and return the plaintext once.

        Returns:
            Tuple of (plaintext, stored record)
        """
        plaintext, key_hash, key_prefix = ApiKeyService.generate_key()
        api_key = ApiKey(
            id=str(uuid.uuid4()),
            key_hash=key_hash,
            key_prefix=key_prefix,
            name=name,
            user_id=user_id,
            is_active=True,
            expires_at=expires_at,
        )
        await ApiKeyRepository(db).add(api_key)
        logger.info("api_key.issued", key_prefix=key_prefix, name=name, user_id=user_id)
        return plaintext, api_key

    @staticmethod
    async def seed_configured_key(db: AsyncSession, settings: Settings) -> ApiKey | None:
        """Seed a configured key on startup.

        Precedence: VAULT_API_KEY env var > security.api_key from config.
        Nothing is generated when neither is set; keys are otherwise issued
        out-of-band.
        """
        configured_key = os.environ.get("VAULT_API_KEY")
        source = "env_var"
        if not configured_key and settings.security.api_key:
            configured_key = settings.security.api_key
            source = "config"

        if not configured_key:
            logger.debug("api_key.seed.skip", reason="no configured key")
            return None

        repo = ApiKeyRepository(db)
        key_hash = digest(configured_key)
        existing = await repo.find_by_hash(key_hash)
        if existing is not None:
            return existing

        api_key = ApiKey(
            id=str(uuid.uuid4()),
            key_hash=key_hash,
            key_prefix=configured_key[:_KEY_DISPLAY_LEN],
            name="configured",
            is_active=True,
        )
        await repo.add(api_key)
        logger.info(
            "api_key.seed.configured",
            source=source,
            key_prefix=api_key.key_prefix,
        )
        return api_key

