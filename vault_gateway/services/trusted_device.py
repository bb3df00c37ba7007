"""Trusted device service.

Registration is an upsert-by-delete on device_token. Expiry is lazy: a
check that observes an expired row deletes it.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from vault_gateway.config import StepUpConfig
from vault_gateway.errors import NotFoundError
from vault_gateway.models.lifecycle import TokenState
from vault_gateway.models.trusted_device import DEFAULT_DEVICE_NAME, TrustedDevice
from vault_gateway.utils.datetime import utcnow

logger = structlog.get_logger()


class TrustedDeviceService:
    """Registers, checks and lists trusted devices."""

    def __init__(self, db_session: AsyncSession, config: StepUpConfig | None = None) -> None:
        self._db = db_session
        self._config = config or StepUpConfig()
        self._log = logger.bind(service="trusted_device")

    async def register(
        self,
        user_id: str,
        device_token: str,
        device_name: str | None = None,
    ) -> datetime:
        """Bind a device token to a user for device_ttl_days.

        Any existing row for the token is removed first, so a token belongs
        to at most one user/name at a time.

        Returns:
            The new expires_at
        """
        now = utcnow()
        expires_at = now + timedelta(days=self._config.device_ttl_days)

        await self._db.execute(
            delete(TrustedDevice).where(TrustedDevice.device_token == device_token)
        )
        self._db.add(
            TrustedDevice(
                id=str(uuid.uuid4()),
                user_id=user_id,
                device_token=device_token,
                device_name=device_name or DEFAULT_DEVICE_NAME,
                created_at=now,
                expires_at=expires_at,
            )
        )
        await self._db.commit()

        self._log.info("device.register", user_id=user_id, expires_at=expires_at.isoformat())
        return expires_at

    async def check(self, user_id: str, device_token: str) -> bool:
        """Whether the token is a live trusted device of this user."""
        result = await self._db.execute(
            select(TrustedDevice).where(
                TrustedDevice.user_id == user_id,
                TrustedDevice.device_token == device_token,
            )
        )
        device = result.scalars().first()
        if device is None:
            return False

        now = utcnow()
        if device.state(now) is TokenState.EXPIRED:
            await self._db.delete(device)
            await self._db.commit()
            self._log.info("device.expired", user_id=user_id, device_id=device.id)
            return False

        device.last_used_at = now
        await self._db.commit()
        return True

    async def list(self, user_id: str) -> list[TrustedDevice]:
        """Unexpired devices of a user, newest first."""
        now = utcnow()
        result = await self._db.execute(
            select(TrustedDevice)
            .where(TrustedDevice.user_id == user_id)
            .order_by(TrustedDevice.created_at.desc())
        )
        return [d for d in result.scalars().all() if d.state(now) is TokenState.ACTIVE]

    async def revoke(self, user_id: str, device_id: str) -> None:
        """Remove one of the user's devices.

        Raises:
            NotFoundError: No such device for this user
        """
        result = await self._db.execute(
            delete(TrustedDevice).where(
                TrustedDevice.id == device_id,
                TrustedDevice.user_id == user_id,
            )
        )
        if result.rowcount == 0:
            raise NotFoundError(f"Trusted device not found: {device_id}")
        await self._db.commit()
        self._log.info("device.revoke", user_id=user_id, device_id=device_id)
