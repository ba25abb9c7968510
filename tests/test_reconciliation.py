"""
Tests for recomputing event counts from the registration ledger.
"""

from unittest.mock import patch

import pytest

from club_events_platform.models.event import EventStatus
from club_events_platform.models.registration import RegistrationStatus
from club_events_platform.services.event_store import EventStore
from club_events_platform.services.reconciliation_service import ReconciliationService
from club_events_platform.services.registration_engine import RegistrationEngine
from club_events_platform.tasks.registration_tasks import run_reconciliation


@pytest.mark.asyncio
async def test_drifted_counts_are_corrected(
    db_session, create_user, create_event, create_registration, load_event
):
    await create_user("u1")
    await create_user("u2")
    # Stored count says 0, ledger holds two confirmed rows
    undercounted = await create_event(max_capacity=2, current_count=0)
    await create_registration(undercounted, "u1")
    await create_registration(undercounted, "u2")
    # Stored count says Full, ledger holds one cancelled row
    overcounted = await create_event(max_capacity=1, current_count=1, status=EventStatus.FULL)
    await create_registration(overcounted, "u1", status=RegistrationStatus.CANCELLED)
    consistent = await create_event(max_capacity=5, current_count=1)
    await create_registration(consistent, "u2")

    report = await ReconciliationService(db_session).reconcile()

    assert report.events_checked == 3
    corrections = {correction.event_id: correction for correction in report.corrections}
    assert set(corrections) == {undercounted, overcounted}
    assert corrections[undercounted].recorded_count == 0
    assert corrections[undercounted].actual_count == 2
    assert corrections[undercounted].status_after == EventStatus.FULL
    assert corrections[overcounted].status_before == EventStatus.FULL
    assert corrections[overcounted].status_after == EventStatus.OPEN

    assert (await load_event(undercounted)).current_count == 2
    assert (await load_event(overcounted)).current_count == 0
    assert (await load_event(consistent)).version == 1


@pytest.mark.asyncio
async def test_reconcile_single_event(db_session, create_event, load_event):
    target = await create_event(current_count=2)
    other = await create_event(current_count=2)

    report = await ReconciliationService(db_session).reconcile(target)

    assert report.events_checked == 1
    assert [correction.event_id for correction in report.corrections] == [target]
    assert (await load_event(other)).current_count == 2


@pytest.mark.asyncio
async def test_closed_event_stays_closed(db_session, create_user, create_event, create_registration, load_event):
    await create_user("u1")
    event_id = await create_event(max_capacity=1, current_count=0, status=EventStatus.CLOSED)
    await create_registration(event_id, "u1")

    await ReconciliationService(db_session).reconcile()

    event = await load_event(event_id)
    assert event.current_count == 1
    assert event.status == EventStatus.CLOSED


@pytest.mark.asyncio
async def test_run_reconciliation_task_body(engine, tmp_path, create_user, create_event, create_registration):
    await create_user("u1")
    event_id = await create_event(current_count=0)
    await create_registration(event_id, "u1")

    report = await run_reconciliation(
        str(event_id),
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'club_events.db'}"
    )

    assert report["events_checked"] == 1
    assert report["corrections"][0]["event_id"] == str(event_id)
    assert report["corrections"][0]["actual_count"] == 1


@pytest.mark.asyncio
async def test_sign_up_after_listing_is_counted(
    db_session, session_factory, create_user, create_event, load_event, confirmed_count
):
    """A registration committed between the event listing and the recount is kept."""
    await create_user("u2")
    # Stored count says 1, ledger holds no confirmed rows
    event_id = await create_event(max_capacity=3, current_count=1)
    original_lock = EventStore.lock_event

    async def lock_after_sign_up(store, locked_event_id):
        async with session_factory() as session:
            result = await RegistrationEngine(session).register(locked_event_id, "u2", "u2@clubmail.edu")
        assert result.event.current_count == 2
        return await original_lock(store, locked_event_id)

    with patch.object(EventStore, "lock_event", lock_after_sign_up):
        report = await ReconciliationService(db_session).reconcile()

    [correction] = report.corrections
    assert correction.recorded_count == 2
    assert correction.actual_count == 1
    event = await load_event(event_id)
    assert event.current_count == 1
    assert event.current_count == await confirmed_count(event_id)


@pytest.mark.asyncio
async def test_event_deleted_after_listing_is_skipped(db_session, create_event):
    event_id = await create_event(current_count=1)

    with patch.object(EventStore, "lock_event", return_value=None):
        report = await ReconciliationService(db_session).reconcile(event_id)

    assert report.events_checked == 1
    assert report.corrections == []
