"""GC lifecycle management for FastAPI lifespan integration."""

from __future__ import annotations

import structlog

from vault_gateway.config import GCConfig, get_settings
from vault_gateway.db.session import get_async_session
from vault_gateway.services.gc.base import GCResult, GCTask
from vault_gateway.services.gc.scheduler import GCScheduler
from vault_gateway.services.gc.tasks import ExpiredCodeGC, ExpiredDeviceGC

logger = structlog.get_logger()

_gc_scheduler: GCScheduler | None = None


class SessionPerCycleGCScheduler(GCScheduler):
    """GC Scheduler that opens a fresh db session for each cycle."""

    def __init__(self, config: GCConfig) -> None:
        super().__init__(tasks=[], config=config)

    async def _run_cycle(self) -> list[GCResult]:
        self._log.info("gc.cycle.start")
        results: list[GCResult] = []

        async with get_async_session() as db_session:
            tasks: list[GCTask] = []
            if self._config.expired_device.enabled:
                tasks.append(ExpiredDeviceGC(db_session))
            if self._config.expired_code.enabled:
                tasks.append(ExpiredCodeGC(db_session))

            for task in tasks:
                results.append(await self._run_task(task))

        self._log_cycle(results)
        return results


async def init_gc_scheduler() -> GCScheduler | None:
    """Create the scheduler; start the loop only when gc.enabled.

    Called during FastAPI lifespan startup, after database initialization.
    """
    global _gc_scheduler

    gc_config = get_settings().gc
    logger.info(
        "gc.init",
        enabled=gc_config.enabled,
        interval_seconds=gc_config.interval_seconds,
        run_on_startup=gc_config.run_on_startup,
    )

    _gc_scheduler = SessionPerCycleGCScheduler(config=gc_config)

    if not gc_config.enabled:
        logger.info("gc.background_disabled", reason="gc.enabled=false")
        return _gc_scheduler

    if gc_config.run_on_startup:
        try:
            await _gc_scheduler.run_once()
        except Exception as e:
            # Don't fail startup due to GC errors
            logger.exception("gc.run_on_startup.failed", error=str(e))

    await _gc_scheduler.start()
    return _gc_scheduler


async def shutdown_gc_scheduler() -> None:
    """Stop the GC scheduler gracefully."""
    global _gc_scheduler

    if _gc_scheduler is not None:
        await _gc_scheduler.stop()
        _gc_scheduler = None


def get_gc_scheduler() -> GCScheduler | None:
    """Get the current GC scheduler instance (for testing/monitoring)."""
    return _gc_scheduler
