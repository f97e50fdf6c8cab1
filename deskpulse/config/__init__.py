"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache
from pathlib import Path
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety. Loaded once per process
    and never renegotiated afterwards.
    """

    # ========== Application ==========
    app_name: str = Field(default="deskpulse", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Zammad (ticket source) ==========
    zammad_url: str = Field(default="", description="Zammad base URL, e.g. https://support.example.com")
    zammad_username: str = Field(default="", description="Zammad basic auth user")
    zammad_password: str = Field(default="", description="Zammad basic auth password")
    zammad_token: Optional[str] = Field(
        default=None,
        description="Zammad API token (takes precedence over basic auth)"
    )
    zammad_verify_ssl: bool = Field(default=True, description="Verify Zammad TLS certificate")
    zammad_timeout_seconds: float = Field(
        default=10.0,
        description="HTTP timeout for a single Zammad request",
        ge=0.1,
        le=120
    )
    zammad_search_limit: int = Field(default=1000, description="Max results per search", ge=1)
    zammad_page_size: int = Field(default=100, description="Page size for full ticket listing", ge=1, le=500)
    zammad_max_pages: int = Field(default=50, description="Page cap for full ticket listing", ge=1)

    # ========== Dashboard Thresholds ==========
    sla_warning_threshold_minutes: int = Field(
        default=60,
        description="Minutes before an escalation deadline a ticket counts as at risk",
        ge=0
    )
    p1_priority_id: int = Field(default=1, description="Priority id designating P1")
    closed_state_id: int = Field(default=4, description="State id designating closed")
    on_hold_state_id: int = Field(default=3, description="State id for on hold")
    pending_reminder_state_id: int = Field(default=6, description="State id for pending reminder")
    pending_close_state_id: int = Field(default=7, description="State id for pending close")
    aged_ticket_hours: int = Field(default=48, description="Age after which an open ticket is aged", ge=1)

    # ========== Engine ==========
    cache_expiration_seconds: int = Field(
        default=30,
        description="Seconds a dashboard snapshot is served from cache",
        ge=1
    )
    fetch_timeout_seconds: float = Field(
        default=15.0,
        description="Upper bound for one fetch step of an aggregation pass",
        gt=0
    )
    refresh_interval_seconds: int = Field(
        default=60,
        description="Seconds between background refresh ticks (0 disables)",
        ge=0
    )
    dashboard_timezone: str = Field(
        default="UTC",
        description="IANA timezone for today/yesterday windows and display timestamps"
    )
    display_names_path: Path = Field(
        default=Path("display_names.yaml"),
        description="Path to priority/state display name YAML file"
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("zammad_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")

    @property
    def on_hold_state_ids(self) -> frozenset:
        """State ids that count as on hold / awaiting."""
        return frozenset({
            self.on_hold_state_id,
            self.pending_reminder_state_id,
            self.pending_close_state_id,
        })

    def to_thresholds(self):
        """Build the immutable domain thresholds from these settings."""
        from deskpulse.dashboard.domain.value_objects import DashboardThresholds

        return DashboardThresholds(
            sla_warning_threshold_minutes=self.sla_warning_threshold_minutes,
            p1_priority_id=self.p1_priority_id,
            closed_state_id=self.closed_state_id,
            on_hold_state_ids=self.on_hold_state_ids,
            aged_ticket_hours=self.aged_ticket_hours,
        )


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class SLAState(str):
    """SLA status states."""
    NO_DEADLINE = "no_deadline"
    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    BREACHED = "breached"


class StepStatus(str):
    """Provenance of one metric within an aggregation pass."""
    FRESH = "fresh"
    FALLBACK = "fallback"
    DEGRADED = "degraded"


class MetricName(str):
    """Names of the fetch steps that feed a snapshot."""
    OPEN_TICKETS = "open_tickets"
    TODAY_CREATED = "today_created"
    TODAY_CLOSED = "today_closed"
    YESTERDAY_CREATED = "yesterday_created"


# Server-side search filter for the open ticket set
OPEN_STATE_NAMES = ("new", "open", "pending")

VALID_SLA_STATES = [SLAState.NO_DEADLINE, SLAState.ON_TRACK, SLAState.AT_RISK, SLAState.BREACHED]
VALID_STEP_STATUSES = [StepStatus.FRESH, StepStatus.FALLBACK, StepStatus.DEGRADED]
METRIC_NAMES = [
    MetricName.OPEN_TICKETS, MetricName.TODAY_CREATED,
    MetricName.TODAY_CLOSED, MetricName.YESTERDAY_CREATED
]
