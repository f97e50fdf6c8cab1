"""
Dashboard Application Services
==============================

Application services orchestrate business logic and coordinate between
domain logic and the ticket source.

Following SOLID principles:
- Single Responsibility: the aggregator builds snapshots, the cache serves them
- Dependency Inversion: depend on the ITicketSource abstraction, not on Zammad
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Any, Awaitable, Callable, Generic, List, Optional, Sequence, TypeVar

from deskpulse.config import MetricName, StepStatus, OPEN_STATE_NAMES
from deskpulse.core import TicketFetchException
from deskpulse.dashboard.application.cache import SnapshotCache
from deskpulse.dashboard.domain import (
    DashboardMetrics,
    DayWindow,
    TicketClassifier,
    TicketRecord,
)
from deskpulse.shared.infrastructure.logging import get_logger, log_latency

logger = get_logger(__name__)

T = TypeVar("T")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ========== Ticket Source Interface (Dependency Inversion) ==========

class ITicketSource(ABC):
    """Interface for the external ticket system of record."""

    @abstractmethod
    async def search_by_state_filter(self, states: Sequence[str], limit: int) -> List[TicketRecord]:
        """Tickets whose state name is one of states."""

    @abstractmethod
    async def search_by_created_window(self, start: datetime, end: datetime, limit: int) -> List[TicketRecord]:
        """Tickets created in [start, end); bounds are timezone aware instants."""

    @abstractmethod
    async def search_by_close_window(self, start: datetime, end: datetime, limit: int) -> List[TicketRecord]:
        """Tickets closed in [start, end); bounds are timezone aware instants."""

    @abstractmethod
    async def list_all(self) -> List[TicketRecord]:
        """Every ticket the source knows about."""


# ========== Step results ==========

@dataclass(frozen=True)
class StepResult(Generic[T]):
    """
    Outcome of one fetch step of an aggregation pass.

    status is fresh when the primary query answered, fallback when a
    secondary path supplied the value, degraded when the step contributes
    an empty value.
    """
    metric: str
    value: T
    status: str
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != StepStatus.DEGRADED

    @classmethod
    def fresh(cls, metric: str, value: T) -> "StepResult[T]":
        return cls(metric=metric, value=value, status=StepStatus.FRESH)

    @classmethod
    def fallback(cls, metric: str, value: T, reason: str) -> "StepResult[T]":
        return cls(metric=metric, value=value, status=StepStatus.FALLBACK, reason=reason)

    @classmethod
    def degraded(cls, metric: str, value: T, reason: str) -> "StepResult[T]":
        return cls(metric=metric, value=value, status=StepStatus.DEGRADED, reason=reason)


# ========== Application Services ==========

class MetricsAggregator:
    """
    Produces one dashboard snapshot per call.

    The four fetch steps run concurrently, each bounded by a timeout. A
    failing step falls back or contributes an empty value; produce() never
    raises for a ticket source failure.
    """

    def __init__(
        self,
        source: ITicketSource,
        classifier: TicketClassifier,
        tz: tzinfo = timezone.utc,
        fetch_timeout_seconds: float = 15.0,
        search_limit: int = 1000,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._source = source
        self._classifier = classifier
        self._tz = tz
        self._fetch_timeout = fetch_timeout_seconds
        self._search_limit = search_limit
        self._clock = clock

    async def produce(self, now: Optional[datetime] = None) -> DashboardMetrics:
        """
        Run one full aggregation pass.

        Args:
            now: Evaluation instant (timezone aware); defaults to the clock

        Returns:
            DashboardMetrics, possibly degraded but never missing
        """
        now = now or self._clock()
        today = DayWindow.containing(now, self._tz)
        yesterday = today.previous()

        with log_latency(logger, "aggregation_pass"):
            open_step, today_step, closed_step, yesterday_step = await asyncio.gather(
                self._fetch_open_tickets(),
                self._fetch_created(MetricName.TODAY_CREATED, today),
                self._fetch_closed(today),
                self._fetch_created(MetricName.YESTERDAY_CREATED, yesterday),
            )

        buckets = self._classifier.classify_open(open_step.value, now)
        steps = (open_step, today_step, closed_step, yesterday_step)

        metrics = DashboardMetrics(
            last_updated=now.astimezone(self._tz),
            sla_breach_tickets=buckets.sla_breach,
            sla_at_risk_tickets=buckets.sla_at_risk,
            p1_tickets=buckets.p1,
            p1_on_hold_tickets=buckets.p1_on_hold,
            aged_tickets=buckets.aged,
            today_all_tickets=self._classifier.created_views(today_step.value, now),
            today_closed_tickets=self._classifier.closed_views(closed_step.value),
            yesterday_ticket_count=len(yesterday_step.value),
            sources={step.metric: step.status for step in steps},
        )

        logger.info(
            "Dashboard metrics calculated",
            extra={
                "open_tickets": len(open_step.value),
                "sla_breaches": metrics.sla_breaches,
                "sla_at_risk": metrics.sla_at_risk,
                "open_p1": metrics.open_p1_tickets,
                "p1_on_hold": metrics.p1_on_hold_count,
                "aged": metrics.aged_ticket_count,
                "today_created": metrics.today_ticket_count,
                "today_closed": metrics.today_closed_count,
                "yesterday_created": metrics.yesterday_ticket_count,
                "degraded": [step.metric for step in steps if not step.ok],
            }
        )
        return metrics

    async def _call(self, operation: str, fetch: Callable[[], Awaitable[List[TicketRecord]]]) -> List[TicketRecord]:
        """Run one source query under the per-fetch timeout."""
        try:
            result = await asyncio.wait_for(fetch(), timeout=self._fetch_timeout)
        except asyncio.TimeoutError:
            raise TicketFetchException(operation, f"timed out after {self._fetch_timeout}s")
        return list(result or [])

    async def _fetch_open_tickets(self) -> StepResult[List[TicketRecord]]:
        metric = MetricName.OPEN_TICKETS
        try:
            tickets = await self._call(
                "search_by_state_filter",
                lambda: self._source.search_by_state_filter(OPEN_STATE_NAMES, self._search_limit),
            )
            if tickets:
                return StepResult.fresh(metric, tickets)
            reason = "state search returned no tickets"
            logger.warning("Open ticket search returned no results, falling back to full listing")
        except Exception as e:
            reason = str(e)
            logger.error(
                "Open ticket search failed, falling back to full listing",
                extra={"error": reason, "error_type": type(e).__name__}
            )

        try:
            all_tickets = await self._call("list_all", self._source.list_all)
        except Exception as e:
            logger.error(
                "Open ticket fallback also failed, continuing with no open tickets",
                extra={"error": str(e), "error_type": type(e).__name__}
            )
            return StepResult.degraded(metric, [], f"{reason}; list_all: {e}")

        return StepResult.fallback(metric, self._classifier.filter_open(all_tickets), reason)

    async def _fetch_created(self, metric: str, window: DayWindow) -> StepResult[List[TicketRecord]]:
        try:
            tickets = await self._call(
                "search_by_created_window",
                lambda: self._source.search_by_created_window(
                    window.start, window.end, self._search_limit
                ),
            )
        except Exception as e:
            logger.error(
                "Created ticket search failed",
                extra={"metric": metric, "day": window.day.isoformat(), "error": str(e)}
            )
            return StepResult.degraded(metric, [], str(e))
        return StepResult.fresh(metric, tickets)

    async def _fetch_closed(self, window: DayWindow) -> StepResult[List[TicketRecord]]:
        metric = MetricName.TODAY_CLOSED
        try:
            tickets = await self._call(
                "search_by_close_window",
                lambda: self._source.search_by_close_window(
                    window.start, window.end, self._search_limit
                ),
            )
            return StepResult.fresh(metric, tickets)
        except Exception as e:
            reason = str(e)
            logger.error(
                "Closed ticket search failed, falling back to full listing",
                extra={"error": reason}
            )

        try:
            all_tickets = await self._call("list_all", self._source.list_all)
        except Exception as e:
            logger.error("Closed ticket fallback also failed", extra={"error": str(e)})
            return StepResult.degraded(metric, [], f"{reason}; list_all: {e}")

        return StepResult.fallback(metric, self._classifier.filter_closed_in(all_tickets, window), reason)


class DashboardService:
    """
    Facade offered to the presentation layer.

    Snapshots come from the cache; the health check never touches the
    ticket source.
    """

    def __init__(self, cache: SnapshotCache, clock: Callable[[], datetime] = utc_now):
        self._cache = cache
        self._clock = clock

    @property
    def cache(self) -> SnapshotCache:
        return self._cache

    async def get_snapshot(self) -> DashboardMetrics:
        return await self._cache.get()

    async def force_refresh(self) -> DashboardMetrics:
        """Discard the cached snapshot and aggregate a new one."""
        logger.info("Force refresh requested")
        self._cache.invalidate()
        return await self._cache.get()

    def health_check(self) -> dict[str, Any]:
        return {
            "status": "healthy",
            "timestamp": self._clock(),
        }
