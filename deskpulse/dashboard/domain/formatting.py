"""
Duration formatting for dashboard display.

All components are truncated, never rounded.
"""

from datetime import datetime, timedelta

from deskpulse.dashboard.domain.value_objects import SLAEvaluation


def _whole_minutes(duration: timedelta) -> int:
    return max(0, int(duration.total_seconds() // 60))


def format_duration(duration: timedelta) -> str:
    """
    Render a duration at day, hour or minute granularity.

    >>> format_duration(timedelta(minutes=90))
    '1h 30m'
    >>> format_duration(timedelta(hours=25))
    '1d 1h'
    >>> format_duration(timedelta(seconds=45))
    '0m'
    """
    minutes = _whole_minutes(duration)
    days, remainder = divmod(minutes, 24 * 60)
    hours, minutes = divmod(remainder, 60)

    if days >= 1:
        return f"{days}d {hours}h"
    if hours >= 1:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_age(created_at: datetime, now: datetime) -> str:
    """Age of a ticket; clock skew that puts created_at in the future reads as 0m."""
    return format_duration(now - created_at)


def format_resolution(duration: timedelta) -> str:
    return f"Resolved in {format_duration(duration)}"


def format_sla(evaluation: SLAEvaluation) -> str:
    """
    SLA remaining/overdue text at hour and minute granularity only.

    Durations up to an hour stay in minutes ("60m remaining"); longer ones
    render as total hours plus minutes without a day component.
    """
    if evaluation.duration is None:
        return ""

    minutes = _whole_minutes(evaluation.duration)
    text = f"{minutes // 60}h {minutes % 60}m" if minutes > 60 else f"{minutes}m"
    suffix = "overdue" if evaluation.is_breached else "remaining"
    return f"{text} {suffix}"
