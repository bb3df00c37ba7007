"""GC Scheduler - periodic execution of sweep tasks."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from vault_gateway.services.gc.base import GCResult, GCTask

if TYPE_CHECKING:
    from vault_gateway.config import GCConfig

logger = structlog.get_logger()


class GCScheduler:
    """Scheduler for GC tasks.

    Tasks run serially in the given order. A failing task is logged and
    reported in its GCResult; it never stops the loop.

    Usage:
        scheduler = GCScheduler(tasks=[...], config=settings.gc)
        await scheduler.run_once()
        await scheduler.start()
        await scheduler.stop()
    """

    def __init__(self, tasks: list[GCTask], config: "GCConfig") -> None:
        self._tasks = tasks
        self._config = config
        self._log = logger.bind(service="gc_scheduler")

        self._running = False
        self._task: asyncio.Task | None = None

        # Prevents run_once and the background loop from overlapping
        self._run_lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._running

    async def run_once(self) -> list[GCResult]:
        """Execute one GC cycle, waiting for any cycle in progress."""
        async with self._run_lock:
            return await self._run_cycle()

    async def _run_cycle(self) -> list[GCResult]:
        self._log.info("gc.cycle.start")
        results = [await self._run_task(task) for task in self._tasks]
        self._log_cycle(results)
        return results

    def _log_cycle(self, results: list[GCResult]) -> None:
        self._log.info(
            "gc.cycle.complete",
            total_cleaned=sum(r.cleaned_count for r in results),
            total_errors=sum(len(r.errors) for r in results),
        )

    async def _run_task(self, task: GCTask) -> GCResult:
        """Execute a single GC task with error handling."""
        try:
            result = await task.run()
            result.task_name = task.name
            self._log.info(
                "gc.task.complete",
                task=task.name,
                cleaned=result.cleaned_count,
                errors=len(result.errors),
            )
            return result
        except Exception as e:
            self._log.exception("gc.task.failed", task=task.name, error=str(e))
            result = GCResult(task_name=task.name)
            result.add_error(f"Task failed: {e}")
            return result

    async def start(self) -> None:
        """Start the background loop (every config.interval_seconds)."""
        if self._running:
            self._log.warning("gc.scheduler.already_running")
            return

        self._running = True
        self._task = asyncio.create_task(self._background_loop())
        self._log.info("gc.scheduler.started", interval_seconds=self._config.interval_seconds)

    async def stop(self) -> None:
        """Stop the background loop."""
        if not self._running:
            return

        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        self._log.info("gc.scheduler.stopped")

    async def _background_loop(self) -> None:
        while self._running:
            try:
                await self.run_once()
            except Exception as e:
                self._log.exception("gc.scheduler.cycle_error", error=str(e))

            try:
                await asyncio.sleep(self._config.interval_seconds)
            except asyncio.CancelledError:
                break
