"""
Dashboard Value Objects
=======================

Immutable value objects for the dashboard domain.

Value objects are defined by their attributes rather than an identity.
They are immutable and can be freely shared between aggregation passes.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Dict, FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field

from deskpulse.config import SLAState
from deskpulse.dashboard.domain.entities import TicketRecord


UNKNOWN_NAME = "Unknown"

DEFAULT_PRIORITY_NAMES: Dict[int, str] = {
    1: "P1",
    2: "P2",
    3: "P3",
    4: "P4",
}

DEFAULT_STATE_NAMES: Dict[int, str] = {
    1: "New",
    2: "Open",
    3: "On Hold",
    4: "Closed",
    5: "Merged",
    6: "Pending Reminder",
    7: "Pending Close",
}


class DashboardThresholds(BaseModel):
    """
    Thresholds the classifier and SLA evaluator work against.

    Built once from Settings at startup; immutable afterwards.
    """
    model_config = ConfigDict(frozen=True)

    sla_warning_threshold_minutes: int = Field(default=60, ge=0)
    p1_priority_id: int = 1
    closed_state_id: int = 4
    on_hold_state_ids: FrozenSet[int] = frozenset({3, 6, 7})
    aged_ticket_hours: int = Field(default=48, ge=1)

    @property
    def warning_window(self) -> timedelta:
        return timedelta(minutes=self.sla_warning_threshold_minutes)

    @property
    def aged_after(self) -> timedelta:
        return timedelta(hours=self.aged_ticket_hours)


class DisplayNames(BaseModel):
    """
    Id to display name lookup for priorities and states.

    The ids are deployment specific, so the defaults are only a starting
    point; a YAML file can override either table.
    """
    model_config = ConfigDict(frozen=True)

    priority_names: Dict[int, str] = Field(default_factory=lambda: dict(DEFAULT_PRIORITY_NAMES))
    state_names: Dict[int, str] = Field(default_factory=lambda: dict(DEFAULT_STATE_NAMES))

    def priority_name(self, priority_id: Optional[int]) -> str:
        return self.priority_names.get(priority_id, UNKNOWN_NAME)

    def state_name(self, state_id: Optional[int]) -> str:
        return self.state_names.get(state_id, UNKNOWN_NAME)


@dataclass(frozen=True)
class SLAEvaluation:
    """
    Outcome of evaluating one ticket against its escalation deadline.

    duration is the overdue magnitude when breached, the time remaining when
    at risk or on track, and None when the ticket has no deadline.
    """
    state: str
    deadline: Optional[datetime] = None
    duration: Optional[timedelta] = None

    @property
    def is_breached(self) -> bool:
        return self.state == SLAState.BREACHED

    @property
    def is_at_risk(self) -> bool:
        return self.state == SLAState.AT_RISK


class SLAEvaluator:
    """
    Pure functions for escalation deadline evaluation.

    Stateless utility class - all SLA classification logic in one place.
    """

    @staticmethod
    def resolve_deadline(ticket: TicketRecord) -> Optional[datetime]:
        """
        Effective escalation deadline for a ticket.

        The overall escalation deadline wins when present. Otherwise the
        earliest of the per-leg deadlines (first response, update, close)
        that are set; absent legs are ignored.
        """
        if ticket.escalation_at is not None:
            return ticket.escalation_at

        legs = [
            deadline for deadline in (
                ticket.first_response_escalation_at,
                ticket.update_escalation_at,
                ticket.close_escalation_at,
            )
            if deadline is not None
        ]
        return min(legs) if legs else None

    @staticmethod
    def evaluate(
        ticket: TicketRecord,
        now: datetime,
        warning_threshold_minutes: int
    ) -> SLAEvaluation:
        """
        Classify a ticket relative to now.

        Args:
            ticket: Ticket to evaluate
            now: Current instant (timezone aware)
            warning_threshold_minutes: Window before the deadline counted as at risk

        Returns:
            SLAEvaluation in one of the no_deadline/breached/at_risk/on_track states
        """
        deadline = SLAEvaluator.resolve_deadline(ticket)
        if deadline is None:
            return SLAEvaluation(state=SLAState.NO_DEADLINE)

        delta = deadline - now
        if delta < timedelta(0):
            return SLAEvaluation(state=SLAState.BREACHED, deadline=deadline, duration=-delta)
        if delta <= timedelta(minutes=warning_threshold_minutes):
            return SLAEvaluation(state=SLAState.AT_RISK, deadline=deadline, duration=delta)
        return SLAEvaluation(state=SLAState.ON_TRACK, deadline=deadline, duration=delta)


@dataclass(frozen=True)
class DayWindow:
    """Half-open calendar day window [start, end) in a given timezone."""
    day: date
    start: datetime
    end: datetime

    @classmethod
    def for_day(cls, day: date, tz: tzinfo) -> "DayWindow":
        start = datetime.combine(day, time.min, tzinfo=tz)
        end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
        return cls(day=day, start=start, end=end)

    @classmethod
    def containing(cls, instant: datetime, tz: tzinfo) -> "DayWindow":
        """Window of the local calendar day that instant falls on."""
        return cls.for_day(instant.astimezone(tz).date(), tz)

    def previous(self) -> "DayWindow":
        return DayWindow.for_day(self.day - timedelta(days=1), self.start.tzinfo)

    def contains(self, instant: Optional[datetime]) -> bool:
        if instant is None:
            return False
        return self.start <= instant < self.end
