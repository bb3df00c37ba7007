"""ExpiredCodeGC - remove one-time codes past their expiry."""

from __future__ import annotations

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from vault_gateway.models.one_time_code import OneTimeCode
from vault_gateway.services.gc.base import GCResult, GCTask
from vault_gateway.utils.datetime import utcnow

logger = structlog.get_logger()


class ExpiredCodeGC(GCTask):
    """Trigger condition: one_time_code.expires_at <= now."""

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session
        self._log = logger.bind(gc_task="expired_code")

    @property
    def name(self) -> str:
        return "expired_code"

    async def run(self) -> GCResult:
        result = GCResult(task_name=self.name)
        db_result = await self._db.execute(
            delete(OneTimeCode).where(OneTimeCode.expires_at <= utcnow())
        )
        await self._db.commit()
        result.cleaned_count = db_result.rowcount or 0
        self._log.info("gc.expired_code.cleaned", count=result.cleaned_count)
        return result
