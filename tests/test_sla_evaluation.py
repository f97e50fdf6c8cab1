from datetime import timedelta

import pytest

from deskpulse.config import SLAState
from deskpulse.dashboard.domain import (
    SLAEvaluator,
    format_duration,
    format_resolution,
    format_sla,
)
from deskpulse.dashboard.domain.value_objects import SLAEvaluation
from tests.conftest import NOW, make_ticket


# ---------------------------------------------------------------------------
# Deadline resolution
# ---------------------------------------------------------------------------


def test_ticket_without_deadlines_has_no_deadline():
    ticket = make_ticket(1)

    assert SLAEvaluator.resolve_deadline(ticket) is None
    evaluation = SLAEvaluator.evaluate(ticket, NOW, 60)
    assert evaluation.state == SLAState.NO_DEADLINE
    assert evaluation.duration is None


def test_overall_escalation_wins_over_earlier_legs():
    ticket = make_ticket(
        1,
        escalation_at=NOW + timedelta(hours=3),
        first_response_escalation_at=NOW - timedelta(hours=1),
    )

    assert SLAEvaluator.resolve_deadline(ticket) == NOW + timedelta(hours=3)
    assert SLAEvaluator.evaluate(ticket, NOW, 60).state == SLAState.ON_TRACK


def test_earliest_present_leg_is_used_when_no_overall_deadline():
    ticket = make_ticket(
        1,
        first_response_escalation_at=NOW + timedelta(minutes=50),
        update_escalation_at=NOW + timedelta(minutes=5),
    )

    evaluation = SLAEvaluator.evaluate(ticket, NOW, 60)

    assert evaluation.deadline == NOW + timedelta(minutes=5)
    assert evaluation.state == SLAState.AT_RISK
    assert format_sla(evaluation) == "5m remaining"


# ---------------------------------------------------------------------------
# Classification relative to now
# ---------------------------------------------------------------------------


def test_passed_deadline_is_breached_with_overdue_magnitude():
    ticket = make_ticket(1, escalation_at=NOW - timedelta(minutes=10))

    evaluation = SLAEvaluator.evaluate(ticket, NOW, 60)

    assert evaluation.state == SLAState.BREACHED
    assert evaluation.duration == timedelta(minutes=10)
    assert format_sla(evaluation) == "10m overdue"


def test_deadline_beyond_warning_window_is_on_track():
    ticket = make_ticket(1, escalation_at=NOW + timedelta(minutes=200))

    assert SLAEvaluator.evaluate(ticket, NOW, 60).state == SLAState.ON_TRACK


@pytest.mark.parametrize("minutes_left", [0, 30, 60])
def test_deadline_inside_warning_window_is_at_risk(minutes_left):
    ticket = make_ticket(1, escalation_at=NOW + timedelta(minutes=minutes_left))

    evaluation = SLAEvaluator.evaluate(ticket, NOW, 60)

    assert evaluation.state == SLAState.AT_RISK
    assert evaluation.duration == timedelta(minutes=minutes_left)


def test_deadline_a_second_ago_is_breached():
    ticket = make_ticket(1, escalation_at=NOW - timedelta(seconds=1))

    evaluation = SLAEvaluator.evaluate(ticket, NOW, 60)

    assert evaluation.is_breached
    assert format_sla(evaluation) == "0m overdue"


# ---------------------------------------------------------------------------
# Duration formatting
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "duration, expected",
    [
        (timedelta(minutes=90), "1h 30m"),
        (timedelta(hours=25), "1d 1h"),
        (timedelta(seconds=45), "0m"),
        (timedelta(days=3, hours=5, minutes=59), "3d 5h"),
        (timedelta(minutes=59, seconds=59), "59m"),
        (timedelta(minutes=-5), "0m"),
    ],
)
def test_format_duration(duration, expected):
    assert format_duration(duration) == expected


def test_format_resolution_prefixes_duration():
    assert format_resolution(timedelta(hours=2, minutes=5)) == "Resolved in 2h 5m"


def test_sla_text_drops_day_component():
    evaluation = SLAEvaluation(state=SLAState.BREACHED, duration=timedelta(hours=26, minutes=3))

    assert format_sla(evaluation) == "26h 3m overdue"


def test_sla_text_keeps_exactly_one_hour_in_minutes():
    evaluation = SLAEvaluation(state=SLAState.AT_RISK, duration=timedelta(minutes=60))

    assert format_sla(evaluation) == "60m remaining"
