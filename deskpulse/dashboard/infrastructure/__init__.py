"""
Dashboard Infrastructure Layer
==============================

Infrastructure implementations for the dashboard:
- External: Zammad ticket source, circuit breaker, refresh scheduler
- Providers: YAML display name tables
"""

from deskpulse.dashboard.infrastructure.external import (
    CircuitBreaker,
    CircuitState,
    ZammadTicketSource,
    DashboardRefreshScheduler,
    parse_ticket,
    parse_datetime,
)
from deskpulse.dashboard.infrastructure.providers import YAMLDisplayNamesProvider

__all__ = [
    "CircuitBreaker",
    "CircuitState",
    "ZammadTicketSource",
    "DashboardRefreshScheduler",
    "parse_ticket",
    "parse_datetime",
    "YAMLDisplayNamesProvider",
]
