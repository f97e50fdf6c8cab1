import asyncio
from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

import pytest

from deskpulse.dashboard.application import ITicketSource, MetricsAggregator
from deskpulse.dashboard.domain import DashboardThresholds, TicketClassifier, TicketRecord
from deskpulse.core import TicketFetchException


NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)

OPEN = 2
ON_HOLD = 3
CLOSED = 4
PENDING_REMINDER = 6


def make_ticket(ticket_id: int, created_at: Optional[datetime] = None, **overrides) -> TicketRecord:
    """Build a ticket with sensible defaults: open, P2, created an hour ago, no SLA."""
    fields = {
        "id": ticket_id,
        "number": str(10000 + ticket_id),
        "title": f"Ticket {ticket_id}",
        "created_at": created_at or NOW - timedelta(hours=1),
        "priority_id": 2,
        "state_id": OPEN,
    }
    fields.update(overrides)
    return TicketRecord(**fields)


class FakeTicketSource(ITicketSource):
    """
    In-memory ticket source.

    created and closed are keyed by the local date the queried window starts
    on. failures maps a method name to the exception it raises; delays maps
    a method name to seconds it sleeps before answering.
    """

    def __init__(
        self,
        open_tickets: Optional[List[TicketRecord]] = None,
        all_tickets: Optional[List[TicketRecord]] = None,
        created: Optional[Dict[date, List[TicketRecord]]] = None,
        closed: Optional[Dict[date, List[TicketRecord]]] = None,
    ):
        self.open_tickets = open_tickets or []
        self.all_tickets = all_tickets or []
        self.created = created or {}
        self.closed = closed or {}
        self.failures: Dict[str, Exception] = {}
        self.delays: Dict[str, float] = {}
        self.calls: Counter = Counter()
        self.windows: List[tuple] = []

    async def _answer(self, method: str, result: List[TicketRecord]) -> List[TicketRecord]:
        self.calls[method] += 1
        if method in self.delays:
            await asyncio.sleep(self.delays[method])
        if method in self.failures:
            raise self.failures[method]
        return list(result)

    async def search_by_state_filter(self, states: Sequence[str], limit: int) -> List[TicketRecord]:
        return await self._answer("search_by_state_filter", self.open_tickets)

    async def search_by_created_window(self, start: datetime, end: datetime, limit: int) -> List[TicketRecord]:
        self.windows.append(("created", start, end))
        return await self._answer("search_by_created_window", self.created.get(start.date(), []))

    async def search_by_close_window(self, start: datetime, end: datetime, limit: int) -> List[TicketRecord]:
        self.windows.append(("closed", start, end))
        return await self._answer("search_by_close_window", self.closed.get(start.date(), []))

    async def list_all(self) -> List[TicketRecord]:
        return await self._answer("list_all", self.all_tickets)

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())


def fetch_error(operation: str = "search") -> TicketFetchException:
    return TicketFetchException(operation, "boom")


@pytest.fixture
def thresholds() -> DashboardThresholds:
    return DashboardThresholds(
        sla_warning_threshold_minutes=60,
        p1_priority_id=1,
        closed_state_id=CLOSED,
        on_hold_state_ids=frozenset({ON_HOLD, PENDING_REMINDER, 7}),
        aged_ticket_hours=48,
    )


@pytest.fixture
def classifier(thresholds: DashboardThresholds) -> TicketClassifier:
    return TicketClassifier(thresholds)


@pytest.fixture
def source() -> FakeTicketSource:
    return FakeTicketSource()


@pytest.fixture
def aggregator(source: FakeTicketSource, classifier: TicketClassifier) -> MetricsAggregator:
    return MetricsAggregator(
        source,
        classifier,
        tz=timezone.utc,
        fetch_timeout_seconds=0.5,
        clock=lambda: NOW,
    )
