from datetime import date, timedelta, timezone

from deskpulse.dashboard.domain import DayWindow, DisplayNames, TicketClassifier
from tests.conftest import CLOSED, NOW, ON_HOLD, OPEN, PENDING_REMINDER, make_ticket


def test_sla_buckets_keep_source_order_and_skip_untracked(classifier):
    tickets = [
        make_ticket(1, escalation_at=NOW - timedelta(minutes=5)),
        make_ticket(2),
        make_ticket(3, escalation_at=NOW - timedelta(hours=3)),
        make_ticket(4, escalation_at=NOW + timedelta(minutes=30)),
        make_ticket(5, escalation_at=NOW + timedelta(hours=5)),
    ]

    breached, at_risk = classifier.classify_sla(tickets, NOW)

    assert [view.id for view in breached] == [1, 3]
    assert [view.time_remaining for view in breached] == ["5m overdue", "3h 0m overdue"]
    assert [view.id for view in at_risk] == [4]
    assert at_risk[0].time_remaining == "30m remaining"


def test_sla_view_carries_resolved_deadline(classifier):
    ticket = make_ticket(1, close_escalation_at=NOW - timedelta(minutes=1))

    breached, _ = classifier.classify_sla([ticket], NOW)

    assert breached[0].escalation_at == NOW - timedelta(minutes=1)


def test_p1_bucket_shows_ticket_age(classifier):
    tickets = [
        make_ticket(1, created_at=NOW - timedelta(minutes=90), priority_id=1),
        make_ticket(2, priority_id=2),
    ]

    p1 = classifier.classify_p1(tickets, NOW)

    assert [view.id for view in p1] == [1]
    assert p1[0].time_remaining == "1h 30m"
    assert p1[0].priority_name == "P1"


def test_p1_on_hold_is_subset_of_p1(classifier):
    tickets = [
        make_ticket(1, priority_id=1, state_id=OPEN),
        make_ticket(2, priority_id=1, state_id=ON_HOLD),
        make_ticket(3, priority_id=2, state_id=ON_HOLD),
        make_ticket(4, priority_id=1, state_id=PENDING_REMINDER),
    ]

    p1_ids = {view.id for view in classifier.classify_p1(tickets, NOW)}
    on_hold = classifier.classify_p1_on_hold(tickets, NOW)

    assert [view.id for view in on_hold] == [2, 4]
    assert {view.id for view in on_hold} <= p1_ids


def test_aged_bucket_uses_strict_cutoff(classifier):
    tickets = [
        make_ticket(1, created_at=NOW - timedelta(hours=48)),
        make_ticket(2, created_at=NOW - timedelta(hours=48, minutes=1)),
        make_ticket(3, created_at=NOW - timedelta(hours=72), priority_id=1),
    ]

    aged = classifier.classify_aged(tickets, NOW)

    assert [view.id for view in aged] == [2, 3]
    assert aged[1].time_remaining == "3d 0h"


def test_ticket_can_sit_in_several_buckets(classifier):
    ticket = make_ticket(
        1,
        created_at=NOW - timedelta(days=3),
        priority_id=1,
        state_id=ON_HOLD,
        escalation_at=NOW - timedelta(minutes=15),
    )

    buckets = classifier.classify_open([ticket], NOW)

    assert len(buckets.sla_breach) == 1
    assert len(buckets.p1) == 1
    assert len(buckets.p1_on_hold) == 1
    assert len(buckets.aged) == 1
    assert buckets.sla_at_risk == ()


def test_created_views_newest_first(classifier):
    tickets = [
        make_ticket(1, created_at=NOW - timedelta(hours=3)),
        make_ticket(2, created_at=NOW - timedelta(minutes=5)),
        make_ticket(3, created_at=NOW - timedelta(hours=1)),
    ]

    views = classifier.created_views(tickets, NOW)

    assert [view.id for view in views] == [2, 3, 1]
    assert views[0].time_remaining == "5m"


def test_closed_views_sorted_by_close_with_resolution_time(classifier):
    tickets = [
        make_ticket(1, created_at=NOW - timedelta(hours=5), close_at=NOW - timedelta(hours=3), state_id=CLOSED),
        make_ticket(2, created_at=NOW - timedelta(hours=2), close_at=NOW - timedelta(minutes=30), state_id=CLOSED),
    ]

    views = classifier.closed_views(tickets)

    assert [view.id for view in views] == [2, 1]
    assert views[0].time_remaining == "Resolved in 1h 30m"
    assert views[1].time_remaining == "Resolved in 2h 0m"


def test_local_filters(classifier):
    today = DayWindow.for_day(date(2026, 10, 18), timezone.utc)
    tickets = [
        make_ticket(1, state_id=OPEN),
        make_ticket(2, state_id=CLOSED, close_at=NOW - timedelta(hours=1)),
        make_ticket(3, state_id=CLOSED, close_at=NOW - timedelta(days=1)),
        make_ticket(4, state_id=OPEN, close_at=NOW - timedelta(hours=1)),
    ]

    assert [t.id for t in classifier.filter_open(tickets)] == [1, 4]
    assert [t.id for t in classifier.filter_closed_in(tickets, today)] == [2]


def test_display_names_are_injected(thresholds):
    names = DisplayNames(priority_names={1: "Critical"}, state_names={2: "In Progress"})
    classifier = TicketClassifier(thresholds, names)

    view = classifier.to_view(make_ticket(1, priority_id=1, state_id=9), "1m")

    assert view.priority_name == "Critical"
    assert view.state_name == "Unknown"
