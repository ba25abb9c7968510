"""
Tests for status derivation from seat counts.
"""

import pytest

from club_events_platform.models.event import Event, EventStatus, derive_status


@pytest.mark.parametrize(
    "current, count, capacity, expected",
    [
        (EventStatus.OPEN, 0, 3, EventStatus.OPEN),
        (EventStatus.OPEN, 3, 3, EventStatus.FULL),
        (EventStatus.FULL, 2, 3, EventStatus.OPEN),
        (EventStatus.FULL, 5, 3, EventStatus.FULL),
        (EventStatus.CLOSED, 0, 3, EventStatus.CLOSED),
        (EventStatus.CLOSED, 3, 3, EventStatus.CLOSED),
        (EventStatus.COMPLETED, 1, 3, EventStatus.COMPLETED),
    ],
)
def test_derive_status(current, count, capacity, expected):
    assert derive_status(current, count, capacity) == expected


def test_remaining_capacity_never_negative():
    # Capacity lowered below the number of registrations
    event = Event(title="Hackathon", max_capacity=2, current_count=4, status=EventStatus.FULL)

    assert event.remaining_capacity == 0
    assert event.is_full


def test_terminal_statuses_do_not_accept_registrations():
    assert Event(status=EventStatus.OPEN).accepts_registrations
    assert Event(status=EventStatus.FULL).accepts_registrations
    assert not Event(status=EventStatus.CLOSED).accepts_registrations
    assert not Event(status=EventStatus.COMPLETED).accepts_registrations
