"""
Shared fixtures: a file-backed SQLite store per test, row factories and an
HTTP client wired to the same store.
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select

from club_events_platform.database import (
    create_database_engine,
    create_session_factory,
    create_tables,
    get_db,
)
from club_events_platform.main import app
from club_events_platform.models.event import Event, EventStatus
from club_events_platform.models.registration import Registration, RegistrationStatus
from club_events_platform.models.user import User, UserRole
from club_events_platform.utils.auth import create_identity_token

COMPLETE_PROFILE = {
    "year": "3",
    "dept": "CSE",
    "roll_no": "CS21B001",
    "mobile_number": "9876543210",
}


@pytest_asyncio.fixture
async def engine(tmp_path):
    """
    A fresh SQLite database file for each test.

    A file rather than ``:memory:`` so that every session gets its own
    connection and concurrent sessions really contend for the write lock.
    """
    db_engine = create_database_engine(f"sqlite+aiosqlite:///{tmp_path / 'club_events.db'}")
    await create_tables(db_engine)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def create_user(session_factory):
    """Insert a member in its own session and return the id."""

    async def _create_user(user_id="student-1", email=None, role=UserRole.STUDENT, name=None, **profile):
        fields = {**COMPLETE_PROFILE, **profile}
        async with session_factory() as session:
            session.add(User(
                id=user_id,
                email=email or f"{user_id}@clubmail.edu",
                name=name or user_id.replace("-", " ").title(),
                role=role,
                **fields
            ))
            await session.commit()
        return user_id

    return _create_user


@pytest.fixture
def create_event(session_factory):
    """Insert an event in its own session and return the id."""

    async def _create_event(
        max_capacity=2,
        current_count=0,
        status=EventStatus.OPEN,
        title="Intro to Robotics",
        starts_in=timedelta(days=7),
        **fields
    ):
        start_time = datetime.now(timezone.utc) + starts_in
        event = Event(
            title=title,
            start_time=start_time,
            end_time=start_time + timedelta(hours=2),
            max_capacity=max_capacity,
            current_count=current_count,
            status=status,
            version=1,
            **fields
        )
        async with session_factory() as session:
            session.add(event)
            await session.commit()
            return event.id

    return _create_event


@pytest.fixture
def create_registration(session_factory):
    """Insert a ledger row directly, bypassing the engine and the count."""

    async def _create_registration(event_id, user_id, status=RegistrationStatus.CONFIRMED, **snapshot):
        fields = {**COMPLETE_PROFILE, **snapshot}
        registration = Registration(
            event_id=event_id,
            user_id=user_id,
            user_email=f"{user_id}@clubmail.edu",
            status=status,
            **fields
        )
        async with session_factory() as session:
            session.add(registration)
            await session.commit()
            return registration.id

    return _create_registration


@pytest.fixture
def load_event(session_factory):
    """Read an event back through a new session."""

    async def _load_event(event_id):
        async with session_factory() as session:
            return await session.get(Event, event_id)

    return _load_event


@pytest.fixture
def load_registration(session_factory):
    async def _load_registration(registration_id):
        async with session_factory() as session:
            return await session.get(Registration, registration_id)

    return _load_registration


@pytest.fixture
def confirmed_count(session_factory):
    """Number of confirmed ledger rows for an event."""

    async def _confirmed_count(event_id):
        async with session_factory() as session:
            result = await session.execute(
                select(func.count(Registration.id)).where(
                    Registration.event_id == event_id,
                    Registration.status == RegistrationStatus.CONFIRMED
                )
            )
            return result.scalar_one()

    return _confirmed_count


@pytest.fixture
def auth_headers():
    """Bearer headers carrying an identity token for the given user."""

    def _auth_headers(user_id, email=None):
        token = create_identity_token(user_id, email or f"{user_id}@clubmail.edu")
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client for the app with ``get_db`` pointed at the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()
