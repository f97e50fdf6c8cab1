"""
Dashboard Domain Layer
======================

Contains:
- Entities: TicketRecord, TicketView, DashboardMetrics (the snapshot)
- Value Objects: DashboardThresholds, DisplayNames, SLAEvaluation, DayWindow
- Domain Services: SLAEvaluator, TicketClassifier, duration formatting

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from deskpulse.dashboard.domain.entities import TicketRecord, TicketView, DashboardMetrics
from deskpulse.dashboard.domain.value_objects import (
    DashboardThresholds,
    DisplayNames,
    SLAEvaluation,
    SLAEvaluator,
    DayWindow,
)
from deskpulse.dashboard.domain.classifier import TicketClassifier, OpenTicketBuckets
from deskpulse.dashboard.domain.formatting import (
    format_duration,
    format_age,
    format_resolution,
    format_sla,
)

__all__ = [
    # Entities
    "TicketRecord",
    "TicketView",
    "DashboardMetrics",
    # Value Objects & Services
    "DashboardThresholds",
    "DisplayNames",
    "SLAEvaluation",
    "SLAEvaluator",
    "DayWindow",
    "TicketClassifier",
    "OpenTicketBuckets",
    # Formatting
    "format_duration",
    "format_age",
    "format_resolution",
    "format_sla",
]
