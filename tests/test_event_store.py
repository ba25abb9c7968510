"""
Tests for compare-and-swap count updates on events.
"""

from unittest.mock import patch
from uuid import uuid4

import pytest

from club_events_platform.models.event import EventStatus
from club_events_platform.services.event_store import EventStore
from club_events_platform.utils.exceptions import (
    EventFullError,
    EventNotFoundError,
    OptimisticLockError,
    RegistrationClosedError,
)


@pytest.mark.asyncio
async def test_increment_to_capacity_marks_event_full(session_factory, create_event):
    event_id = await create_event(max_capacity=2, current_count=1)

    async with session_factory() as session:
        event = await EventStore(session).update_event_count(event_id, 1)
        await session.commit()

    assert event.current_count == 2
    assert event.status == EventStatus.FULL
    assert event.version == 2


@pytest.mark.asyncio
async def test_increment_on_full_event_is_rejected(session_factory, create_event, load_event):
    event_id = await create_event(max_capacity=1, current_count=1, status=EventStatus.FULL)

    async with session_factory() as session:
        with pytest.raises(EventFullError):
            await EventStore(session).update_event_count(event_id, 1)

    event = await load_event(event_id)
    assert event.current_count == 1
    assert event.version == 1


@pytest.mark.parametrize("status", [EventStatus.CLOSED, EventStatus.COMPLETED])
@pytest.mark.asyncio
async def test_increment_on_terminal_event_is_rejected(session_factory, create_event, status):
    event_id = await create_event(max_capacity=5, current_count=1, status=status)

    async with session_factory() as session:
        with pytest.raises(RegistrationClosedError):
            await EventStore(session).update_event_count(event_id, 1)


@pytest.mark.asyncio
async def test_decrement_reopens_full_event(session_factory, create_event):
    event_id = await create_event(max_capacity=2, current_count=2, status=EventStatus.FULL)

    async with session_factory() as session:
        event = await EventStore(session).update_event_count(event_id, -1)
        await session.commit()

    assert event.current_count == 1
    assert event.status == EventStatus.OPEN


@pytest.mark.asyncio
async def test_decrement_keeps_closed_status(session_factory, create_event):
    event_id = await create_event(max_capacity=2, current_count=2, status=EventStatus.CLOSED)

    async with session_factory() as session:
        event = await EventStore(session).update_event_count(event_id, -1)
        await session.commit()

    assert event.current_count == 1
    assert event.status == EventStatus.CLOSED


@pytest.mark.asyncio
async def test_decrement_never_goes_below_zero(session_factory, create_event):
    event_id = await create_event(max_capacity=2, current_count=0)

    async with session_factory() as session:
        event = await EventStore(session).update_event_count(event_id, -1)
        await session.commit()

    assert event.current_count == 0
    assert event.status == EventStatus.OPEN


@pytest.mark.asyncio
async def test_update_count_of_missing_event(db_session):
    with pytest.raises(EventNotFoundError):
        await EventStore(db_session).update_event_count(uuid4(), 1)


@pytest.mark.asyncio
async def test_zero_delta_is_refused(db_session, create_event):
    event_id = await create_event()

    with pytest.raises(ValueError):
        await EventStore(db_session).update_event_count(event_id, 0)


@pytest.mark.asyncio
async def test_stale_version_loses_the_swap(session_factory, create_event, load_event):
    event_id = await create_event(max_capacity=5)

    async with session_factory() as session:
        store = EventStore(session)
        stale = await store.get_event(event_id)
        await session.commit()

        # Another writer moves the event to version 2
        async with session_factory() as other:
            await EventStore(other).update_event_count(event_id, 1)
            await other.commit()

        with pytest.raises(OptimisticLockError):
            await store._compare_and_swap(stale, stale.current_count + 1)
        await session.rollback()

    event = await load_event(event_id)
    assert event.current_count == 1
    assert event.version == 2


@pytest.mark.asyncio
async def test_conflict_is_retried(session_factory, create_event):
    event_id = await create_event(max_capacity=5)

    async with session_factory() as session:
        store = EventStore(session, max_attempts=3)
        original = store._compare_and_swap
        attempts = []

        async def conflict_once(event, new_count, *guards):
            attempts.append(new_count)
            if len(attempts) == 1:
                raise OptimisticLockError("Event", str(event.id))
            return await original(event, new_count, *guards)

        with patch.object(store, "_compare_and_swap", side_effect=conflict_once):
            event = await store.update_event_count(event_id, 1)
        await session.commit()

    assert len(attempts) == 2
    assert event.current_count == 1


@pytest.mark.asyncio
async def test_retries_are_bounded(session_factory, create_event, load_event):
    event_id = await create_event(max_capacity=5)

    async with session_factory() as session:
        store = EventStore(session, max_attempts=3)
        with patch.object(
            store,
            "_compare_and_swap",
            side_effect=OptimisticLockError("Event", str(event_id))
        ) as swap:
            with pytest.raises(OptimisticLockError):
                await store.update_event_count(event_id, 1)

    assert swap.call_count == 3
    event = await load_event(event_id)
    assert event.current_count == 0


@pytest.mark.asyncio
async def test_set_event_count_rederives_status(session_factory, create_event):
    event_id = await create_event(max_capacity=3, current_count=1)

    async with session_factory() as session:
        event = await EventStore(session).set_event_count(event_id, 3)
        await session.commit()

    assert event.current_count == 3
    assert event.status == EventStatus.FULL
