"""
Dashboard Domain Entities
=========================

Pure Python domain entities for the helpdesk dashboard.

Tickets are read-only records handed over by the ticket source; views and
snapshots are derived per aggregation pass and never mutated afterwards.
"""

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from deskpulse.config import StepStatus


@dataclass(frozen=True)
class TicketRecord:
    """
    Ticket as supplied by the ticket source.

    created_at is always present; every deadline field may be absent when
    the ticket has no active SLA.
    """

    id: int
    number: str
    title: str
    created_at: datetime

    updated_at: Optional[datetime] = None
    close_at: Optional[datetime] = None

    # Escalation deadlines
    escalation_at: Optional[datetime] = None
    first_response_escalation_at: Optional[datetime] = None
    update_escalation_at: Optional[datetime] = None
    close_escalation_at: Optional[datetime] = None

    priority_id: Optional[int] = None
    state_id: Optional[int] = None
    customer_id: Optional[int] = None
    group_id: Optional[int] = None
    owner_id: Optional[int] = None


@dataclass(frozen=True)
class TicketView:
    """
    Display record for one ticket inside a dashboard category.

    time_remaining carries SLA remaining/overdue text for the SLA buckets,
    the ticket age for the P1 and aged buckets, and the resolution time for
    tickets closed today.
    """

    id: int
    number: str
    title: str
    created_at: datetime
    updated_at: Optional[datetime]
    close_at: Optional[datetime]
    escalation_at: Optional[datetime]
    priority_id: Optional[int]
    priority_name: str
    state_id: Optional[int]
    state_name: str
    time_remaining: str
    customer_id: Optional[int] = None
    group_id: Optional[int] = None
    owner_id: Optional[int] = None


@dataclass(frozen=True)
class DashboardMetrics:
    """
    One immutable aggregation result.

    Every count is derived from the matching ticket list, so a count and
    its list can never disagree. Yesterday only keeps a count.
    """

    last_updated: datetime

    sla_breach_tickets: Tuple[TicketView, ...] = ()
    sla_at_risk_tickets: Tuple[TicketView, ...] = ()
    p1_tickets: Tuple[TicketView, ...] = ()
    p1_on_hold_tickets: Tuple[TicketView, ...] = ()
    aged_tickets: Tuple[TicketView, ...] = ()
    today_all_tickets: Tuple[TicketView, ...] = ()
    today_closed_tickets: Tuple[TicketView, ...] = ()
    yesterday_ticket_count: int = 0

    # metric name -> StepStatus, read-only once constructed
    sources: Mapping[str, str] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "sources", MappingProxyType(dict(self.sources)))

    @property
    def sla_breaches(self) -> int:
        return len(self.sla_breach_tickets)

    @property
    def sla_at_risk(self) -> int:
        return len(self.sla_at_risk_tickets)

    @property
    def open_p1_tickets(self) -> int:
        return len(self.p1_tickets)

    @property
    def p1_on_hold_count(self) -> int:
        return len(self.p1_on_hold_tickets)

    @property
    def aged_ticket_count(self) -> int:
        return len(self.aged_tickets)

    @property
    def today_ticket_count(self) -> int:
        return len(self.today_all_tickets)

    @property
    def today_closed_count(self) -> int:
        return len(self.today_closed_tickets)

    @property
    def ticket_change(self) -> int:
        """Tickets created today minus tickets created yesterday."""
        return self.today_ticket_count - self.yesterday_ticket_count

    @property
    def change_percent(self) -> float:
        """Day over day change in percent; 0 when yesterday had no tickets."""
        if self.yesterday_ticket_count <= 0:
            return 0.0
        return self.ticket_change / self.yesterday_ticket_count * 100

    @property
    def is_degraded(self) -> bool:
        return any(status == StepStatus.DEGRADED for status in self.sources.values())
