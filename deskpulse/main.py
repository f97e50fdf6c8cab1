"""
DeskPulse - Main Application
============================

Live operational health dashboard for a Zammad helpdesk.

Modules:
- Dashboard: SLA breach/at-risk tracking, P1 and aged backlog, daily throughput

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Aggregator, snapshot cache, DTOs
- Domain: Ticket records, SLA evaluation, classification
- Infrastructure: Zammad REST client, display names, scheduler
"""

from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import AsyncGenerator, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

# Configuration and Core
from deskpulse.config import Settings, get_settings
from deskpulse.core import ConfigurationException

# Dashboard Module
from deskpulse.dashboard.application import (
    DashboardService,
    ITicketSource,
    MetricsAggregator,
    SnapshotCache,
)
from deskpulse.dashboard.domain import DisplayNames, TicketClassifier
from deskpulse.dashboard.infrastructure import (
    DashboardRefreshScheduler,
    YAMLDisplayNamesProvider,
    ZammadTicketSource,
)
from deskpulse.dashboard.interfaces import dashboard_router

# Shared
from deskpulse.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    global_exception_handler,
)
from deskpulse.shared.infrastructure.logging import setup_logging, get_logger

logger = get_logger(__name__)


def build_dashboard_service(
    settings: Settings,
    source: ITicketSource,
    display_names: Optional[DisplayNames] = None,
) -> DashboardService:
    """Wire classifier, aggregator and cache around a ticket source."""
    try:
        tz = ZoneInfo(settings.dashboard_timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationException(f"Unknown dashboard timezone: {settings.dashboard_timezone}") from e

    classifier = TicketClassifier(settings.to_thresholds(), display_names)
    aggregator = MetricsAggregator(
        source,
        classifier,
        tz=tz,
        fetch_timeout_seconds=settings.fetch_timeout_seconds,
        search_limit=settings.zammad_search_limit,
    )
    cache = SnapshotCache(aggregator.produce, ttl_seconds=settings.cache_expiration_seconds)
    return DashboardService(cache)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Connect to Zammad (aborts startup when unreachable)
    3. Load display names
    4. Build the dashboard service
    5. Start the refresh scheduler

    SHUTDOWN:
    1. Stop the refresh scheduler
    2. Close the Zammad client
    """
    settings: Settings = app.state.settings

    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting DeskPulse", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    if not settings.zammad_url:
        raise ConfigurationException("ZAMMAD_URL is not configured")

    source = ZammadTicketSource.from_settings(settings)
    try:
        await source.verify_connection()
    except Exception:
        await source.close()
        raise

    display_names = YAMLDisplayNamesProvider(settings.display_names_path).load()
    service = build_dashboard_service(settings, source, display_names)

    scheduler = DashboardRefreshScheduler(interval_seconds=settings.refresh_interval_seconds)

    async def dashboard_refresh_job():
        """Background tick keeping the snapshot cache warm."""
        await service.get_snapshot()

    await scheduler.start(dashboard_refresh_job)

    # Store services in app state for dependency injection
    app.state.dashboard_service = service
    app.state.ticket_base_url = settings.zammad_url
    app.state.scheduler = scheduler

    logger.info("DeskPulse started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down DeskPulse")
    await scheduler.stop()
    await source.close()
    logger.info("DeskPulse shutdown complete")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="DeskPulse API",
        description="""
        ## Live helpdesk health metrics

        **Endpoints:**
        - `GET /api/dashboard/metrics` - Current snapshot (cached)
        - `POST /api/dashboard/refresh` - Force a fresh aggregation
        - `GET /api/dashboard/health` - Liveness

        **Metrics:** SLA breaches and at-risk tickets, open P1 and P1 on hold,
        tickets open longer than the aged threshold, tickets created today and
        yesterday, tickets closed today with resolution times.
        """,
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.settings = settings

    # === CORS Middleware ===
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(CorrelationIDMiddleware)
    app.add_exception_handler(Exception, global_exception_handler)

    app.include_router(dashboard_router)

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """
        Health check endpoint for load balancers and orchestrators.

        Reports cache state, cache hit/miss counters and scheduler state
        without touching Zammad.
        """
        service = getattr(request.app.state, "dashboard_service", None)
        scheduler = getattr(request.app.state, "scheduler", None)
        checks = {
            "dashboard_service": "ready" if service else "not_initialized",
            "snapshot_cache": service.cache.state if service else "unavailable",
            "snapshot_cache_stats": asdict(service.cache.stats) if service else None,
            "refresh_scheduler": "running" if scheduler and scheduler.is_running else "stopped",
        }
        return {
            "status": "healthy",
            "version": settings.app_version,
            "environment": settings.environment,
            "checks": checks
        }

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs",
            "health": "/health",
            "endpoints": [
                "GET /api/dashboard/metrics - Current dashboard snapshot",
                "POST /api/dashboard/refresh - Force refresh",
                "GET /api/dashboard/health - Liveness"
            ]
        }

    return app


app = create_app()


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "deskpulse.main:app",
        host=_settings.host,
        port=_settings.port,
        reload=_settings.environment == "development",
        log_level="info"
    )
