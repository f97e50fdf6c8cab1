"""
Dashboard Application Layer
===========================

Contains:
- Services: MetricsAggregator (one aggregation pass), DashboardService (facade)
- Cache: SnapshotCache with single-flight refresh
- DTOs: Response models for API serialization

This layer depends on the domain layer and the ticket source interface,
but not on concrete infrastructure implementations.
"""

from deskpulse.dashboard.application.cache import (
    SnapshotCache,
    CacheEntry,
    CacheStats,
    CacheState,
)
from deskpulse.dashboard.application.services import (
    ITicketSource,
    StepResult,
    MetricsAggregator,
    DashboardService,
)
from deskpulse.dashboard.application.dto import (
    TicketViewResponse,
    DashboardMetricsResponse,
    HealthResponse,
)

__all__ = [
    # Cache
    "SnapshotCache",
    "CacheEntry",
    "CacheStats",
    "CacheState",
    # Services
    "ITicketSource",
    "StepResult",
    "MetricsAggregator",
    "DashboardService",
    # DTOs
    "TicketViewResponse",
    "DashboardMetricsResponse",
    "HealthResponse",
]
