"""
Dashboard Controllers (API Routes)
==================================

FastAPI routes for the live dashboard.

Controllers are thin - they delegate to the DashboardService.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status

from deskpulse.dashboard.application import (
    DashboardService,
    DashboardMetricsResponse,
    HealthResponse,
)
from deskpulse.shared.infrastructure.logging import get_context_logger

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


# ========== Example payloads for Swagger ==========

METRICS_RESPONSE_EXAMPLE = {
    "sla_breaches": 1,
    "sla_at_risk": 0,
    "open_p1_tickets": 1,
    "p1_on_hold_count": 0,
    "tickets_open_more_than_48_hours": 1,
    "today_ticket_count": 15,
    "today_closed_count": 4,
    "yesterday_ticket_count": 10,
    "ticket_change": 5,
    "change_percent": 50.0,
    "last_updated": "2024-01-15T10:00:00+00:00",
    "sla_breach_tickets": [
        {
            "id": 42,
            "number": "20042",
            "title": "VPN down for branch office",
            "created_at": "2024-01-12T08:00:00Z",
            "escalation_at": "2024-01-15T09:50:00Z",
            "priority_id": 1,
            "priority_name": "P1",
            "state_id": 2,
            "state_name": "Open",
            "time_remaining": "10m overdue",
            "url": "https://support.example.com/#ticket/zoom/42"
        }
    ],
    "sources": {
        "open_tickets": "fresh",
        "today_created": "fresh",
        "today_closed": "fresh",
        "yesterday_created": "fresh"
    },
    "degraded": False
}


# ========== Dependencies ==========

def get_dashboard_service(request: Request) -> DashboardService:
    """Get the process-wide dashboard service from app state."""
    service = getattr(request.app.state, "dashboard_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Dashboard service not initialized"
        )
    return service


def _ticket_base_url(request: Request) -> str:
    return getattr(request.app.state, "ticket_base_url", "") or ""


# ========== Route Handlers ==========

@router.get(
    "/metrics",
    response_model=DashboardMetricsResponse,
    summary="Current dashboard metrics",
    description="""
    Returns the current dashboard snapshot, served from cache while it is fresh.

    A snapshot with zero counts and a recent `last_updated` means the ticket
    source could not be queried this cycle; `sources` shows which metrics
    were degraded.
    """,
    responses={
        200: {
            "description": "Dashboard snapshot",
            "content": {"application/json": {"example": METRICS_RESPONSE_EXAMPLE}}
        }
    }
)
async def get_metrics(
    request: Request,
    service: DashboardService = Depends(get_dashboard_service)
):
    logger = get_context_logger(__name__, getattr(request.state, "correlation_id", None))
    snapshot = await service.get_snapshot()
    logger.debug("Serving dashboard snapshot", extra={"last_updated": snapshot.last_updated.isoformat()})
    return DashboardMetricsResponse.from_snapshot(snapshot, _ticket_base_url(request))


@router.post(
    "/refresh",
    response_model=DashboardMetricsResponse,
    summary="Force a fresh aggregation",
    description="Discards the cached snapshot and aggregates a new one regardless of its age."
)
async def refresh_metrics(
    request: Request,
    service: DashboardService = Depends(get_dashboard_service)
):
    snapshot = await service.force_refresh()
    return DashboardMetricsResponse.from_snapshot(snapshot, _ticket_base_url(request))


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness check",
    description="Reports liveness only; never queries the ticket source."
)
async def health(service: DashboardService = Depends(get_dashboard_service)):
    return service.health_check()
