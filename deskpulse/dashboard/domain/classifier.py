"""
Ticket Classifier
=================

Maps open tickets into the dashboard categories. Every category is computed
independently from the full open set, so a ticket can appear in several.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from deskpulse.dashboard.domain.entities import TicketRecord, TicketView
from deskpulse.dashboard.domain.formatting import format_age, format_resolution, format_sla
from deskpulse.dashboard.domain.value_objects import (
    DashboardThresholds,
    DayWindow,
    DisplayNames,
    SLAEvaluator,
)


@dataclass(frozen=True)
class OpenTicketBuckets:
    """Categories derived from the open ticket set."""
    sla_breach: Tuple[TicketView, ...] = ()
    sla_at_risk: Tuple[TicketView, ...] = ()
    p1: Tuple[TicketView, ...] = ()
    p1_on_hold: Tuple[TicketView, ...] = ()
    aged: Tuple[TicketView, ...] = ()


class TicketClassifier:
    """Classifies tickets against the configured thresholds."""

    def __init__(self, thresholds: DashboardThresholds, display_names: Optional[DisplayNames] = None):
        self._thresholds = thresholds
        self._names = display_names or DisplayNames()

    @property
    def thresholds(self) -> DashboardThresholds:
        return self._thresholds

    def to_view(
        self,
        ticket: TicketRecord,
        time_remaining: str,
        escalation_at: Optional[datetime] = None
    ) -> TicketView:
        """Build the display record for a ticket."""
        return TicketView(
            id=ticket.id,
            number=ticket.number,
            title=ticket.title,
            created_at=ticket.created_at,
            updated_at=ticket.updated_at,
            close_at=ticket.close_at,
            escalation_at=escalation_at if escalation_at is not None else SLAEvaluator.resolve_deadline(ticket),
            priority_id=ticket.priority_id,
            priority_name=self._names.priority_name(ticket.priority_id),
            state_id=ticket.state_id,
            state_name=self._names.state_name(ticket.state_id),
            time_remaining=time_remaining,
            customer_id=ticket.customer_id,
            group_id=ticket.group_id,
            owner_id=ticket.owner_id,
        )

    # ========== Open ticket categories ==========

    def classify_sla(
        self,
        tickets: Iterable[TicketRecord],
        now: datetime
    ) -> Tuple[Tuple[TicketView, ...], Tuple[TicketView, ...]]:
        """
        Split tickets into breached and at-risk views.

        Both lists keep source order. Tickets without a deadline or still
        on track land in neither.
        """
        breached: List[TicketView] = []
        at_risk: List[TicketView] = []

        for ticket in tickets:
            evaluation = SLAEvaluator.evaluate(
                ticket, now, self._thresholds.sla_warning_threshold_minutes
            )
            if evaluation.is_breached:
                breached.append(self.to_view(ticket, format_sla(evaluation), evaluation.deadline))
            elif evaluation.is_at_risk:
                at_risk.append(self.to_view(ticket, format_sla(evaluation), evaluation.deadline))

        return tuple(breached), tuple(at_risk)

    def is_p1(self, ticket: TicketRecord) -> bool:
        return ticket.priority_id == self._thresholds.p1_priority_id

    def classify_p1(self, tickets: Iterable[TicketRecord], now: datetime) -> Tuple[TicketView, ...]:
        return tuple(
            self.to_view(ticket, format_age(ticket.created_at, now))
            for ticket in tickets
            if self.is_p1(ticket)
        )

    def classify_p1_on_hold(self, tickets: Iterable[TicketRecord], now: datetime) -> Tuple[TicketView, ...]:
        """P1 tickets parked in an on-hold or pending state."""
        on_hold = self._thresholds.on_hold_state_ids
        return tuple(
            self.to_view(ticket, format_age(ticket.created_at, now))
            for ticket in tickets
            if self.is_p1(ticket) and ticket.state_id in on_hold
        )

    def classify_aged(self, tickets: Iterable[TicketRecord], now: datetime) -> Tuple[TicketView, ...]:
        cutoff = now - self._thresholds.aged_after
        return tuple(
            self.to_view(ticket, format_age(ticket.created_at, now))
            for ticket in tickets
            if ticket.created_at < cutoff
        )

    def classify_open(self, tickets: List[TicketRecord], now: datetime) -> OpenTicketBuckets:
        breached, at_risk = self.classify_sla(tickets, now)
        return OpenTicketBuckets(
            sla_breach=breached,
            sla_at_risk=at_risk,
            p1=self.classify_p1(tickets, now),
            p1_on_hold=self.classify_p1_on_hold(tickets, now),
            aged=self.classify_aged(tickets, now),
        )

    # ========== Day scoped lists ==========

    def created_views(self, tickets: Iterable[TicketRecord], now: datetime) -> Tuple[TicketView, ...]:
        """Tickets created in a day window, newest first."""
        ordered = sorted(tickets, key=lambda t: t.created_at, reverse=True)
        return tuple(self.to_view(ticket, format_age(ticket.created_at, now)) for ticket in ordered)

    def closed_views(self, tickets: Iterable[TicketRecord]) -> Tuple[TicketView, ...]:
        """Tickets closed in a day window with their resolution time, latest close first."""
        closed = [ticket for ticket in tickets if ticket.close_at is not None]
        closed.sort(key=lambda t: t.close_at, reverse=True)
        return tuple(
            self.to_view(ticket, format_resolution(ticket.close_at - ticket.created_at))
            for ticket in closed
        )

    # ========== Local filters for fallback paths ==========

    def filter_open(self, tickets: Iterable[TicketRecord]) -> List[TicketRecord]:
        closed_state = self._thresholds.closed_state_id
        return [ticket for ticket in tickets if ticket.state_id != closed_state]

    def filter_closed_in(self, tickets: Iterable[TicketRecord], window: DayWindow) -> List[TicketRecord]:
        closed_state = self._thresholds.closed_state_id
        return [
            ticket for ticket in tickets
            if ticket.state_id == closed_state and window.contains(ticket.close_at)
        ]
