"""
Dashboard External Service Integrations
=======================================

External services for the dashboard:
- Zammad REST API ticket source (httpx)
- Circuit breaker guarding the ticket source
- APScheduler job keeping the snapshot cache warm
"""

import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from deskpulse.config import Settings
from deskpulse.core import SourceUnavailableException, TicketFetchException
from deskpulse.dashboard.application.services import ITicketSource
from deskpulse.dashboard.domain import TicketRecord
from deskpulse.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class CircuitState:
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """
    Circuit breaker for preventing hammering a backend that is down.

    States:
    - CLOSED: Normal operation, requests pass through
    - OPEN: After N failures, reject all requests for M seconds
    - HALF_OPEN: After timeout, allow one test request
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time: Optional[float] = None

    @property
    def state(self) -> str:
        """Get current circuit state."""
        if self._state == CircuitState.OPEN and self._last_failure_time is not None:
            if self._clock() - self._last_failure_time >= self.recovery_timeout:
                self._state = CircuitState.HALF_OPEN
        return self._state

    def allow_request(self) -> bool:
        """Check if request should be allowed."""
        return self.state in (CircuitState.CLOSED, CircuitState.HALF_OPEN)

    def record_success(self) -> None:
        """Record successful request."""
        self._failure_count = 0
        self._state = CircuitState.CLOSED

    def record_failure(self) -> None:
        """Record failed request."""
        self._failure_count += 1
        self._last_failure_time = self._clock()

        if self._failure_count >= self.failure_threshold or self._state == CircuitState.HALF_OPEN:
            self._state = CircuitState.OPEN
            logger.warning(
                "Circuit breaker opened",
                extra={
                    "failure_count": self._failure_count,
                    "recovery_timeout": self.recovery_timeout
                }
            )


def parse_datetime(raw: Any) -> Optional[datetime]:
    """Parse a Zammad timestamp ("2024-01-15T10:00:00.000Z") into an aware UTC datetime."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        value = raw
    else:
        value = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _optional_int(raw: Any) -> Optional[int]:
    return int(raw) if raw is not None else None


def parse_ticket(data: Dict[str, Any]) -> TicketRecord:
    """
    Build a TicketRecord from a Zammad ticket payload.

    Raises:
        KeyError, ValueError, TypeError: id or created_at missing or malformed
    """
    created_at = parse_datetime(data["created_at"])
    if created_at is None:
        raise ValueError("created_at is empty")

    return TicketRecord(
        id=int(data["id"]),
        number=str(data.get("number") or ""),
        title=str(data.get("title") or ""),
        created_at=created_at,
        updated_at=parse_datetime(data.get("updated_at")),
        close_at=parse_datetime(data.get("close_at")),
        escalation_at=parse_datetime(data.get("escalation_at")),
        first_response_escalation_at=parse_datetime(data.get("first_response_escalation_at")),
        update_escalation_at=parse_datetime(data.get("update_escalation_at")),
        close_escalation_at=parse_datetime(data.get("close_escalation_at")),
        priority_id=_optional_int(data.get("priority_id")),
        state_id=_optional_int(data.get("state_id")),
        customer_id=_optional_int(data.get("customer_id")),
        group_id=_optional_int(data.get("group_id")),
        owner_id=_optional_int(data.get("owner_id")),
    )


def _format_instant(instant: datetime) -> str:
    return instant.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _time_range(field: str, start: datetime, end: datetime) -> str:
    """Search syntax for a half-open range between two instants, rendered in UTC."""
    return f"{field}:[{_format_instant(start)} TO {_format_instant(end)}}}"


class ZammadTicketSource(ITicketSource):
    """
    Ticket source backed by the Zammad REST API.

    Handles:
    - Token or basic authentication
    - Search with expanded ticket payloads
    - Paged full listing for fallback paths
    - Circuit breaker to stop querying a backend that keeps failing
    """

    SERVICE_NAME = "Zammad"

    def __init__(
        self,
        base_url: str,
        username: str = "",
        password: str = "",
        token: Optional[str] = None,
        verify_ssl: bool = True,
        timeout_seconds: float = 10.0,
        page_size: int = 100,
        max_pages: int = 50,
        client: Optional[httpx.AsyncClient] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._page_size = page_size
        self._max_pages = max_pages
        self._circuit_breaker = circuit_breaker or CircuitBreaker()

        if client is None:
            headers = {"Accept": "application/json"}
            auth = None
            if token:
                headers["Authorization"] = f"Token token={token}"
            elif username:
                auth = httpx.BasicAuth(username, password)
            client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=headers,
                auth=auth,
                verify=verify_ssl,
                timeout=timeout_seconds,
            )
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "ZammadTicketSource":
        return cls(
            base_url=settings.zammad_url,
            username=settings.zammad_username,
            password=settings.zammad_password,
            token=settings.zammad_token,
            verify_ssl=settings.zammad_verify_ssl,
            timeout_seconds=settings.zammad_timeout_seconds,
            page_size=settings.zammad_page_size,
            max_pages=settings.zammad_max_pages,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._circuit_breaker

    async def verify_connection(self) -> None:
        """
        Check that Zammad answers with the configured credentials.

        Raises:
            SourceUnavailableException: Zammad is unreachable or rejects the credentials
        """
        try:
            response = await self._client.get("/api/v1/users/me")
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(
                "Failed to initialize Zammad connection",
                extra={"url": self._base_url, "error": str(e)}
            )
            raise SourceUnavailableException(str(e), {"url": self._base_url})
        logger.info("Successfully connected to Zammad", extra={"url": self._base_url})

    async def search_by_state_filter(self, states: Sequence[str], limit: int) -> List[TicketRecord]:
        query = " OR ".join(f"state.name:{state}" for state in states)
        return await self._search("search_by_state_filter", query, limit)

    async def search_by_created_window(self, start: datetime, end: datetime, limit: int) -> List[TicketRecord]:
        return await self._search("search_by_created_window", _time_range("created_at", start, end), limit)

    async def search_by_close_window(self, start: datetime, end: datetime, limit: int) -> List[TicketRecord]:
        return await self._search("search_by_close_window", _time_range("close_at", start, end), limit)

    async def list_all(self) -> List[TicketRecord]:
        tickets: List[TicketRecord] = []
        for page in range(1, self._max_pages + 1):
            payload = await self._get(
                "list_all",
                "/api/v1/tickets",
                {"page": page, "per_page": self._page_size, "expand": "true"},
            )
            if not isinstance(payload, list):
                raise TicketFetchException("list_all", "expected a JSON list of tickets")
            tickets.extend(self._parse_tickets(payload))
            if len(payload) < self._page_size:
                break
        else:
            logger.warning(
                "Ticket listing hit the page cap",
                extra={"max_pages": self._max_pages, "page_size": self._page_size}
            )
        return tickets

    async def close(self) -> None:
        """Close HTTP client."""
        await self._client.aclose()

    # ========== Internals ==========

    async def _search(self, operation: str, query: str, limit: int) -> List[TicketRecord]:
        payload = await self._get(
            operation,
            "/api/v1/tickets/search",
            {"query": query, "limit": limit, "expand": "true"},
        )
        return self._parse_tickets(self._search_items(operation, payload))

    def _search_items(self, operation: str, payload: Any) -> Iterable[Dict[str, Any]]:
        if isinstance(payload, list):
            return payload
        # Non-expanded search answers with ids plus an asset table
        if isinstance(payload, dict) and "tickets" in payload:
            assets = payload.get("assets", {}).get("Ticket", {})
            return [assets[str(ticket_id)] for ticket_id in payload["tickets"] if str(ticket_id) in assets]
        raise TicketFetchException(operation, "unexpected search payload")

    async def _get(self, operation: str, path: str, params: Dict[str, Any]) -> Any:
        if not self._circuit_breaker.allow_request():
            raise TicketFetchException(operation, "circuit breaker open")

        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            self._circuit_breaker.record_failure()
            raise TicketFetchException(operation, str(e), {"path": path}) from e

        self._circuit_breaker.record_success()
        return payload

    def _parse_tickets(self, items: Iterable[Any]) -> List[TicketRecord]:
        tickets = []
        for item in items:
            try:
                tickets.append(parse_ticket(item))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(
                    "Skipping malformed ticket payload",
                    extra={"ticket_id": item.get("id") if isinstance(item, dict) else None, "error": str(e)}
                )
        return tickets


class DashboardRefreshScheduler:
    """
    Wrapper for APScheduler that keeps the snapshot cache warm.

    Manages the lifecycle of the scheduler and its single job.
    """

    def __init__(self, interval_seconds: int = 60):
        self.interval_seconds = interval_seconds
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    async def start(self, job_func) -> None:
        """Start the scheduler with the given job function."""
        if self._running:
            logger.warning("Dashboard refresh scheduler already running")
            return
        if self.interval_seconds <= 0:
            logger.info("Dashboard refresh scheduler disabled")
            return

        self._scheduler = AsyncIOScheduler()

        self._scheduler.add_job(
            job_func,
            "interval",
            seconds=self.interval_seconds,
            id="dashboard_refresh",
            name="Dashboard Refresh Job",
            misfire_grace_time=self.interval_seconds,
            max_instances=1,
            coalesce=True,
            replace_existing=True
        )

        self._scheduler.start()
        self._running = True

        logger.info(
            "Dashboard refresh scheduler started",
            extra={"interval_seconds": self.interval_seconds}
        )

    async def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if not self._running:
            return

        if self._scheduler:
            self._scheduler.shutdown(wait=False)

        self._running = False
        logger.info("Dashboard refresh scheduler stopped")

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._running
