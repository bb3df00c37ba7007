"""ExpiredDeviceGC - remove trusted devices past their expiry."""

from __future__ import annotations

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from vault_gateway.models.trusted_device import TrustedDevice
from vault_gateway.services.gc.base import GCResult, GCTask
from vault_gateway.utils.datetime import utcnow

logger = structlog.get_logger()


class ExpiredDeviceGC(GCTask):
    """Trigger condition: trusted_device.expires_at <= now."""

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session
        self._log = logger.bind(gc_task="expired_device")

    @property
    def name(self) -> str:
        return "expired_device"

    async def run(self) -> GCResult:
        result = GCResult(task_name=self.name)
        db_result = await self._db.execute(
            delete(TrustedDevice).where(TrustedDevice.expires_at <= utcnow())
        )
        await self._db.commit()
        result.cleaned_count = db_result.rowcount or 0
        self._log.info("gc.expired_device.cleaned", count=result.cleaned_count)
        return result
