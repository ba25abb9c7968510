"""
Tests for the registration engine: sign-up, cancellation and their failure modes.
"""

import asyncio
from unittest.mock import patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from club_events_platform.models.event import EventStatus
from club_events_platform.models.registration import RegistrationStatus
from club_events_platform.services.event_store import EventStore
from club_events_platform.services.profile_store import ProfileStore
from club_events_platform.services.registration_engine import (
    CancellationOutcome,
    RegistrationEngine,
    RegistrationOutcome,
)
from club_events_platform.utils.exceptions import (
    ErrorCode,
    EventFullError,
    OptimisticLockError,
    StoreUnavailableError,
)


@pytest.fixture
def register(session_factory):
    """Run one registration in its own session, like one API request."""

    async def _register(event_id, user_id, email=None):
        async with session_factory() as session:
            return await RegistrationEngine(session).register(
                event_id, user_id, email or f"{user_id}@clubmail.edu"
            )

    return _register


@pytest.fixture
def cancel(session_factory):
    async def _cancel(registration_id):
        async with session_factory() as session:
            return await RegistrationEngine(session).cancel(registration_id)

    return _cancel


@pytest.mark.asyncio
async def test_capacity_walkthrough(create_user, create_event, register, cancel, load_event):
    """Fill an event, bounce a third member, free a seat and give it away again."""
    for user_id in ("u1", "u2", "u3"):
        await create_user(user_id)
    event_id = await create_event(max_capacity=2)

    first = await register(event_id, "u1")
    assert first.outcome == RegistrationOutcome.CONFIRMED
    assert first.event.current_count == 1
    assert first.event.status == EventStatus.OPEN

    second = await register(event_id, "u2")
    assert second.ok
    assert second.event.current_count == 2
    assert second.event.status == EventStatus.FULL

    third = await register(event_id, "u3")
    assert third.outcome == RegistrationOutcome.EVENT_FULL
    assert third.error_code == ErrorCode.EVENT_FULL
    assert (await load_event(event_id)).current_count == 2

    again = await register(event_id, "u1")
    assert again.outcome == RegistrationOutcome.ALREADY_REGISTERED

    cancelled = await cancel(first.registration.id)
    assert cancelled.outcome == CancellationOutcome.CANCELLED
    assert cancelled.event.current_count == 1
    assert cancelled.event.status == EventStatus.OPEN

    retry = await register(event_id, "u3")
    assert retry.ok
    event = await load_event(event_id)
    assert event.current_count == 2
    assert event.status == EventStatus.FULL


@pytest.mark.asyncio
async def test_registration_snapshots_profile(create_user, create_event, register, load_registration):
    await create_user("u1", year="4", dept="EEE", roll_no="EE20B007", mobile_number="9123456780")
    event_id = await create_event()

    result = await register(event_id, "u1", "u1@altmail.edu")

    registration = await load_registration(result.registration.id)
    assert registration.status == RegistrationStatus.CONFIRMED
    assert registration.user_email == "u1@altmail.edu"
    assert (registration.year, registration.dept) == ("4", "EEE")
    assert (registration.roll_no, registration.mobile_number) == ("EE20B007", "9123456780")


@pytest.mark.asyncio
async def test_re_registration_after_cancel_creates_new_row(
    create_user, create_event, register, cancel, load_registration, load_event
):
    await create_user("u1")
    event_id = await create_event(max_capacity=3)

    first = await register(event_id, "u1")
    await cancel(first.registration.id)
    second = await register(event_id, "u1")

    assert second.ok
    assert second.registration.id != first.registration.id
    assert (await load_registration(first.registration.id)).status == RegistrationStatus.CANCELLED
    assert (await load_event(event_id)).current_count == 1


@pytest.mark.parametrize(
    "event_id, user_id, email",
    [
        (None, "u1", "u1@clubmail.edu"),
        ("not-a-uuid", "u1", "u1@clubmail.edu"),
        (uuid4(), "", "u1@clubmail.edu"),
        (uuid4(), "u1", None),
        (uuid4(), "u1", "not-an-email"),
    ],
)
@pytest.mark.asyncio
async def test_invalid_input(db_session, event_id, user_id, email):
    result = await RegistrationEngine(db_session).register(event_id, user_id, email)

    assert result.outcome == RegistrationOutcome.INVALID_INPUT
    assert result.error_code == ErrorCode.INVALID_INPUT
    assert result.details["field_errors"]


@pytest.mark.asyncio
async def test_profile_not_found(create_event, register):
    event_id = await create_event()

    result = await register(event_id, "never-synced")

    assert result.outcome == RegistrationOutcome.PROFILE_NOT_FOUND


@pytest.mark.asyncio
async def test_incomplete_profile_lists_missing_fields(create_user, create_event, register, confirmed_count):
    await create_user("u1", roll_no=None, mobile_number="  ")
    event_id = await create_event()

    result = await register(event_id, "u1")

    assert result.outcome == RegistrationOutcome.PROFILE_INCOMPLETE
    assert result.details["missing_fields"] == ["roll_no", "mobile_number"]
    assert await confirmed_count(event_id) == 0


@pytest.mark.asyncio
async def test_profile_is_checked_before_event(create_user, register):
    await create_user("u1", year=None)

    result = await register(uuid4(), "u1")

    assert result.outcome == RegistrationOutcome.PROFILE_INCOMPLETE


@pytest.mark.asyncio
async def test_event_not_found(create_user, register):
    await create_user("u1")

    result = await register(uuid4(), "u1")

    assert result.outcome == RegistrationOutcome.EVENT_NOT_FOUND


@pytest.mark.parametrize("status", [EventStatus.CLOSED, EventStatus.COMPLETED])
@pytest.mark.asyncio
async def test_terminal_event_rejects_registration(create_user, create_event, register, status):
    await create_user("u1")
    event_id = await create_event(max_capacity=10, status=status)

    result = await register(event_id, "u1")

    assert result.outcome == RegistrationOutcome.REGISTRATION_CLOSED


@pytest.mark.asyncio
async def test_cancel_is_idempotent(create_user, create_event, register, cancel, load_event):
    await create_user("u1")
    event_id = await create_event(max_capacity=2)
    registration_id = (await register(event_id, "u1")).registration.id

    first = await cancel(registration_id)
    second = await cancel(registration_id)

    assert first.outcome == CancellationOutcome.CANCELLED
    assert second.outcome == CancellationOutcome.ALREADY_CANCELLED
    assert second.ok
    event = await load_event(event_id)
    assert event.current_count == 0
    assert event.version == 3


@pytest.mark.asyncio
async def test_cancel_unknown_registration(cancel):
    result = await cancel(uuid4())

    assert result.outcome == CancellationOutcome.REGISTRATION_NOT_FOUND
    assert not result.ok


@pytest.mark.asyncio
async def test_cancel_with_malformed_id(cancel):
    result = await cancel("registration-42")

    assert result.outcome == CancellationOutcome.INVALID_INPUT
    assert result.error_code == ErrorCode.INVALID_INPUT


@pytest.mark.asyncio
async def test_cancel_keeps_closed_status(create_user, create_event, register, cancel, session_factory, load_event):
    await create_user("u1")
    event_id = await create_event(max_capacity=2)
    registration_id = (await register(event_id, "u1")).registration.id

    async with session_factory() as session:
        event = await EventStore(session).get_event(event_id)
        event.status = EventStatus.CLOSED
        event.version += 1
        await session.commit()

    result = await cancel(registration_id)

    assert result.outcome == CancellationOutcome.CANCELLED
    event = await load_event(event_id)
    assert event.current_count == 0
    assert event.status == EventStatus.CLOSED


@pytest.mark.asyncio
async def test_cancel_after_capacity_lowered(create_user, create_event, register, cancel, session_factory, load_event):
    for user_id in ("u1", "u2", "u3"):
        await create_user(user_id)
    event_id = await create_event(max_capacity=3)
    registrations = [(await register(event_id, user_id)).registration.id for user_id in ("u1", "u2", "u3")]

    async with session_factory() as session:
        event = await EventStore(session).get_event(event_id)
        event.max_capacity = 2
        event.version += 1
        await session.commit()

    await cancel(registrations[0])
    event = await load_event(event_id)
    assert event.current_count == 2
    assert event.status == EventStatus.FULL

    await cancel(registrations[1])
    event = await load_event(event_id)
    assert event.current_count == 1
    assert event.status == EventStatus.OPEN


@pytest.mark.parametrize(
    "failure",
    [StoreUnavailableError(), OptimisticLockError("Event", "e1")],
)
@pytest.mark.asyncio
async def test_count_failure_rolls_back_registration(
    create_user, create_event, session_factory, confirmed_count, load_event, failure
):
    await create_user("u1")
    event_id = await create_event(max_capacity=2)

    async with session_factory() as session:
        engine = RegistrationEngine(session)
        with patch.object(engine.events, "update_event_count", side_effect=failure):
            result = await engine.register(event_id, "u1", "u1@clubmail.edu")

    assert result.outcome == RegistrationOutcome.PARTIAL_FAILURE
    assert result.details["event_id"] == str(event_id)
    assert "registration_id" in result.details
    assert await confirmed_count(event_id) == 0
    assert (await load_event(event_id)).current_count == 0


@pytest.mark.asyncio
async def test_capacity_race_lost_at_count_update(create_user, create_event, session_factory, confirmed_count):
    """The pre-check saw a seat but the guarded update found none."""
    await create_user("u1")
    event_id = await create_event(max_capacity=2)

    async with session_factory() as session:
        engine = RegistrationEngine(session)
        with patch.object(
            engine.events,
            "update_event_count",
            side_effect=EventFullError(str(event_id), 2, 2)
        ):
            result = await engine.register(event_id, "u1", "u1@clubmail.edu")

    assert result.outcome == RegistrationOutcome.EVENT_FULL
    assert result.details["max_capacity"] == 2
    assert await confirmed_count(event_id) == 0


@pytest.mark.asyncio
async def test_event_deleted_before_insert(create_user, create_event, session_factory, load_event, confirmed_count):
    await create_user("u1")
    event_id = await create_event(max_capacity=2)
    event = await load_event(event_id)
    foreign_key_failure = IntegrityError(
        "INSERT INTO registrations", {}, Exception("FOREIGN KEY constraint failed")
    )

    async with session_factory() as session:
        engine = RegistrationEngine(session)
        with patch.object(engine.events, "get_event", side_effect=[event, None]), \
                patch.object(engine.ledger, "insert_registration", side_effect=foreign_key_failure):
            result = await engine.register(event_id, "u1", "u1@clubmail.edu")

    assert result.outcome == RegistrationOutcome.EVENT_NOT_FOUND
    assert result.details["event_id"] == str(event_id)
    assert await confirmed_count(event_id) == 0


@pytest.mark.asyncio
async def test_cancel_of_registration_removed_mid_flight(
    create_user, create_event, register, session_factory, load_registration
):
    await create_user("u1")
    event_id = await create_event(max_capacity=2)
    registration_id = (await register(event_id, "u1")).registration.id
    registration = await load_registration(registration_id)

    async with session_factory() as session:
        engine = RegistrationEngine(session)
        with patch.object(engine.ledger, "get_registration", side_effect=[registration, None]), \
                patch.object(engine.ledger, "set_registration_status", return_value=False):
            result = await engine.cancel(registration_id)

    assert result.outcome == CancellationOutcome.REGISTRATION_NOT_FOUND
    assert result.details["registration_id"] == str(registration_id)


@pytest.mark.asyncio
async def test_cancel_count_failure_keeps_seat(create_user, create_event, register, session_factory, load_registration):
    await create_user("u1")
    event_id = await create_event(max_capacity=2)
    registration_id = (await register(event_id, "u1")).registration.id

    async with session_factory() as session:
        engine = RegistrationEngine(session)
        with patch.object(engine.events, "update_event_count", side_effect=StoreUnavailableError()):
            result = await engine.cancel(registration_id)

    assert result.outcome == CancellationOutcome.PARTIAL_FAILURE
    assert (await load_registration(registration_id)).status == RegistrationStatus.CONFIRMED


@pytest.mark.asyncio
async def test_store_outage_is_raised(create_user, create_event, session_factory):
    await create_user("u1")
    event_id = await create_event()

    async with session_factory() as session:
        engine = RegistrationEngine(session)
        with patch.object(engine.profiles, "get_profile", side_effect=StoreUnavailableError()):
            with pytest.raises(StoreUnavailableError):
                await engine.register(event_id, "u1", "u1@clubmail.edu")


@pytest.mark.asyncio
async def test_connection_errors_become_store_unavailable(db_session):
    profiles = ProfileStore(db_session)
    outage = OperationalError("SELECT 1", {}, Exception("could not connect to server"))

    with patch.object(db_session, "execute", side_effect=outage):
        with pytest.raises(StoreUnavailableError):
            await profiles.get_profile("u1")


@pytest.mark.asyncio
async def test_concurrent_registrations_for_last_seat(create_user, create_event, register, load_event, confirmed_count):
    await create_user("u4")
    await create_user("u5")
    event_id = await create_event(max_capacity=3, current_count=2)

    results = await asyncio.gather(register(event_id, "u4"), register(event_id, "u5"))

    outcomes = sorted(result.outcome.value for result in results)
    assert outcomes == sorted([RegistrationOutcome.CONFIRMED.value, RegistrationOutcome.EVENT_FULL.value])
    event = await load_event(event_id)
    assert event.current_count == 3
    assert event.status == EventStatus.FULL
    assert await confirmed_count(event_id) == 1


@pytest.mark.asyncio
async def test_concurrent_duplicate_registration(create_user, create_event, register, load_event, confirmed_count):
    await create_user("u1")
    event_id = await create_event(max_capacity=5)

    results = await asyncio.gather(*(register(event_id, "u1") for _ in range(3)))

    outcomes = [result.outcome for result in results]
    assert outcomes.count(RegistrationOutcome.CONFIRMED) == 1
    assert outcomes.count(RegistrationOutcome.ALREADY_REGISTERED) == 2
    assert (await load_event(event_id)).current_count == 1
    assert await confirmed_count(event_id) == 1


@pytest.mark.asyncio
async def test_many_members_never_overfill(create_user, create_event, register, load_event, confirmed_count):
    user_ids = [f"member-{n}" for n in range(8)]
    for user_id in user_ids:
        await create_user(user_id)
    event_id = await create_event(max_capacity=5)

    results = await asyncio.gather(*(register(event_id, user_id) for user_id in user_ids))

    assert sum(result.ok for result in results) == 5
    assert all(
        result.outcome == RegistrationOutcome.EVENT_FULL
        for result in results if not result.ok
    )
    assert (await load_event(event_id)).current_count == 5
    assert await confirmed_count(event_id) == 5
