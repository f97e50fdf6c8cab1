"""
Dashboard Application DTOs
==========================

Data Transfer Objects for the dashboard API layer.

These Pydantic models handle serialization of snapshots for the HTTP
surface. Following YAGNI - response models only, the API takes no bodies.
"""

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from deskpulse.dashboard.domain import DashboardMetrics, TicketView


StepStatusStr = Literal["fresh", "fallback", "degraded"]


class TicketViewResponse(BaseModel):
    """One ticket inside a dashboard category."""
    id: int
    number: str
    title: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    close_at: Optional[datetime] = None
    escalation_at: Optional[datetime] = Field(None, description="Effective escalation deadline")
    priority_id: Optional[int] = None
    priority_name: str
    state_id: Optional[int] = None
    state_name: str
    time_remaining: str = Field(..., description="SLA remaining/overdue, age, or resolution time")
    customer_id: Optional[int] = None
    group_id: Optional[int] = None
    owner_id: Optional[int] = None
    url: Optional[str] = Field(None, description="Link to the ticket in the helpdesk UI")

    @classmethod
    def from_view(cls, view: TicketView, base_url: str = "") -> "TicketViewResponse":
        return cls(
            id=view.id,
            number=view.number,
            title=view.title,
            created_at=view.created_at,
            updated_at=view.updated_at,
            close_at=view.close_at,
            escalation_at=view.escalation_at,
            priority_id=view.priority_id,
            priority_name=view.priority_name,
            state_id=view.state_id,
            state_name=view.state_name,
            time_remaining=view.time_remaining,
            customer_id=view.customer_id,
            group_id=view.group_id,
            owner_id=view.owner_id,
            url=f"{base_url}/#ticket/zoom/{view.id}" if base_url else None,
        )


class DashboardMetricsResponse(BaseModel):
    """Response model for one dashboard snapshot."""
    # Counts
    sla_breaches: int
    sla_at_risk: int
    open_p1_tickets: int
    p1_on_hold_count: int
    tickets_open_more_than_48_hours: int
    today_ticket_count: int
    today_closed_count: int
    yesterday_ticket_count: int

    # Derived
    ticket_change: int = Field(..., description="Today's created count minus yesterday's")
    change_percent: float = Field(..., description="Day over day change, 0 when yesterday is 0")
    last_updated: datetime

    # Ticket lists
    sla_breach_tickets: List[TicketViewResponse] = Field(default_factory=list)
    sla_at_risk_tickets: List[TicketViewResponse] = Field(default_factory=list)
    p1_tickets: List[TicketViewResponse] = Field(default_factory=list)
    p1_on_hold_tickets: List[TicketViewResponse] = Field(default_factory=list)
    tickets_48_hours_plus: List[TicketViewResponse] = Field(default_factory=list)
    today_all_tickets: List[TicketViewResponse] = Field(default_factory=list)
    today_closed_tickets: List[TicketViewResponse] = Field(default_factory=list)

    # Provenance
    sources: Dict[str, StepStatusStr] = Field(default_factory=dict)
    degraded: bool = False

    @classmethod
    def from_snapshot(cls, snapshot: DashboardMetrics, base_url: str = "") -> "DashboardMetricsResponse":
        def views(items) -> List[TicketViewResponse]:
            return [TicketViewResponse.from_view(view, base_url) for view in items]

        return cls(
            sla_breaches=snapshot.sla_breaches,
            sla_at_risk=snapshot.sla_at_risk,
            open_p1_tickets=snapshot.open_p1_tickets,
            p1_on_hold_count=snapshot.p1_on_hold_count,
            tickets_open_more_than_48_hours=snapshot.aged_ticket_count,
            today_ticket_count=snapshot.today_ticket_count,
            today_closed_count=snapshot.today_closed_count,
            yesterday_ticket_count=snapshot.yesterday_ticket_count,
            ticket_change=snapshot.ticket_change,
            change_percent=round(snapshot.change_percent, 2),
            last_updated=snapshot.last_updated,
            sla_breach_tickets=views(snapshot.sla_breach_tickets),
            sla_at_risk_tickets=views(snapshot.sla_at_risk_tickets),
            p1_tickets=views(snapshot.p1_tickets),
            p1_on_hold_tickets=views(snapshot.p1_on_hold_tickets),
            tickets_48_hours_plus=views(snapshot.aged_tickets),
            today_all_tickets=views(snapshot.today_all_tickets),
            today_closed_tickets=views(snapshot.today_closed_tickets),
            sources=dict(snapshot.sources),
            degraded=snapshot.is_degraded,
        )


class HealthResponse(BaseModel):
    """Liveness response; never reflects ticket source reachability."""
    status: str
    timestamp: datetime
