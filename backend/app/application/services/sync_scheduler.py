"""Sync Scheduler — asyncio daemon firing the daily backup and release jobs."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Any

from app.application.services.backup_manager import BackupManager
from app.application.services.sync_coordinator import SyncCoordinator
from app.domain.schedule import BACKUP_AT, CUTOVER_AT, latest_occurrence, next_occurrence
from app.infrastructure.logging.colored_logger import SyncEventLogger, SyncStage

logger = logging.getLogger(__name__)
_log = SyncEventLogger(__name__)

# How late a slot may still be fired after its wall-clock instant
MISFIRE_GRACE = timedelta(seconds=60)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DailyJob:
    """A job pinned to one wall-clock time per day."""

    name: str
    at: time
    action: Callable[[], Awaitable[Any]]
    last_fired: datetime | None = None

    def is_due(self, now: datetime, grace: timedelta = MISFIRE_GRACE) -> bool:
        slot = latest_occurrence(self.at, now)
        if now - slot >= grace:
            return False
        return self.last_fired is None or self.last_fired < slot


class SyncScheduler:
    """Sleeps until the next daily slot, fires it, and repeats.

    Instead of polling every minute, the loop computes the exact delay to the
    next slot and sleeps once. Jobs are seeded from the persisted
    ``last_backup``/``last_release`` so a restart inside a slot's grace window
    does not run the same job twice on one day.
    """

    def __init__(
        self,
        coordinator: SyncCoordinator,
        backup_manager: BackupManager,
        *,
        clock: Callable[[], datetime] = _utc_now,
        backup_at: time = BACKUP_AT,
        release_at: time = CUTOVER_AT,
    ) -> None:
        state = coordinator.store.state
        self._clock = clock
        self._jobs = [
            DailyJob("backup", backup_at, backup_manager.create_backup, state.last_backup),
            DailyJob("release", release_at, coordinator.release_pending_changes, state.last_release),
        ]
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._running and self._task is not None and not self._task.done()

    async def start(self) -> None:
        self._running = True
        self._task = asyncio.create_task(self._loop())
        _log.event(
            SyncStage.SCHEDULER,
            "Scheduler started",
            **{job.name: job.at.strftime("%H:%M") for job in self._jobs},
        )

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Scheduler stopped")

    def next_fire_time(self, now: datetime) -> datetime:
        """Earliest instant at which some job should run."""
        candidates = [
            now if job.is_due(now) else next_occurrence(job.at, now)
            for job in self._jobs
        ]
        return min(candidates, key=lambda dt: dt.timestamp())

    async def run_due(self, now: datetime) -> list[str]:
        """Fire every job whose slot has arrived; returns the names fired."""
        fired = []
        for job in self._jobs:
            if not job.is_due(now):
                continue
            job.last_fired = now
            fired.append(job.name)
            _log.event(SyncStage.SCHEDULER, f"Running scheduled {job.name}")
            try:
                await job.action()
            except Exception as exc:
                _log.failure(SyncStage.ERROR, f"Scheduled {job.name} failed", exc)
        return fired

    async def _loop(self) -> None:
        while self._running:
            try:
                now = self._clock()
                target = self.next_fire_time(now)
                # timestamp() keeps the delay correct across DST transitions
                delay = max(target.timestamp() - now.timestamp(), 0.0)
                _log.detail(f"Next scheduler wake-up at {target.isoformat()}", delay=f"{delay:.0f}s")
                await asyncio.sleep(delay)
                await self.run_due(self._clock())
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Scheduler loop error, retrying in %ds", MISFIRE_GRACE.seconds)
                await asyncio.sleep(MISFIRE_GRACE.total_seconds())
