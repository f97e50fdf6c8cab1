"""
Snapshot Cache
==============

Holds the most recent dashboard snapshot for a fixed time-to-live.

Concurrent misses share a single in-flight aggregation. invalidate() starts
a new generation: callers arriving afterwards trigger their own pass, while
callers already waiting on the previous pass still receive its result.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta
from typing import Awaitable, Callable, Optional

from deskpulse.dashboard.domain import DashboardMetrics
from deskpulse.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

Producer = Callable[[datetime], Awaitable[DashboardMetrics]]


@dataclass(frozen=True)
class CacheEntry:
    """A snapshot paired with the instant it stops being served."""
    snapshot: DashboardMetrics
    expires_at: datetime

    def is_fresh(self, now: datetime) -> bool:
        return self.expires_at > now


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    refreshes: int = 0
    failures: int = 0


class CacheState(str):
    EMPTY = "empty"
    FRESH = "fresh"
    STALE = "stale"


class SnapshotCache:
    """Single-entry snapshot cache with single-flight refresh."""

    def __init__(
        self,
        producer: Producer,
        ttl_seconds: float,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._producer = producer
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._entry: Optional[CacheEntry] = None
        self._generation = 0
        self._inflight: Optional[asyncio.Task] = None
        self._inflight_generation = -1
        self.stats = CacheStats()

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    @property
    def state(self) -> str:
        if self._entry is None:
            return CacheState.EMPTY
        if self._entry.is_fresh(self._clock()):
            return CacheState.FRESH
        return CacheState.STALE

    @property
    def entry(self) -> Optional[CacheEntry]:
        return self._entry

    async def get(self) -> DashboardMetrics:
        """
        Return the cached snapshot, aggregating a new one when missing or expired.

        Cancelling the caller does not cancel a refresh other callers may be
        waiting on.
        """
        now = self._clock()
        entry = self._entry
        if entry is not None and entry.is_fresh(now):
            self.stats.hits += 1
            return entry.snapshot

        self.stats.misses += 1
        task = self._inflight
        if task is None or self._inflight_generation != self._generation:
            task = self._start_refresh(now)
        else:
            logger.debug("Joining in-flight dashboard refresh")
        return await asyncio.shield(task)

    def invalidate(self) -> None:
        """Drop the current entry; the next get() aggregates again."""
        self._generation += 1
        self._entry = None

    def _start_refresh(self, now: datetime) -> asyncio.Task:
        generation = self._generation
        task = asyncio.get_running_loop().create_task(self._refresh(now, generation))
        self._inflight = task
        self._inflight_generation = generation
        task.add_done_callback(self._on_refresh_done)
        return task

    async def _refresh(self, now: datetime, generation: int) -> DashboardMetrics:
        self.stats.refreshes += 1
        logger.info("Cache miss, aggregating dashboard metrics", extra={"generation": generation})
        snapshot = await self._producer(now)
        # A pass started before invalidate() must not repopulate the cache
        if generation == self._generation:
            self._entry = CacheEntry(snapshot=snapshot, expires_at=now + self._ttl)
        return snapshot

    def _on_refresh_done(self, task: asyncio.Task) -> None:
        if self._inflight is task:
            self._inflight = None
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.stats.failures += 1
            logger.error(
                "Dashboard refresh failed",
                extra={"error": str(exc), "error_type": type(exc).__name__}
            )
