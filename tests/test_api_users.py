"""
HTTP tests for member profile sync and administration.
"""

import pytest

from club_events_platform.models.event import EventStatus
from club_events_platform.models.user import UserRole


@pytest.mark.asyncio
async def test_sync_creates_profile_once(client, auth_headers):
    headers = auth_headers("idp|ada", "ada@clubmail.edu")

    first = await client.post("/api/v1/users/sync", json={"name": "Ada", "dept": "CSE"}, headers=headers)
    second = await client.post("/api/v1/users/sync", json={"name": "Someone Else"}, headers=headers)

    assert first.status_code == 200
    body = first.json()
    assert body["profile"]["email"] == "ada@clubmail.edu"
    assert body["profile"]["role"] == "student"
    assert body["profile_complete"] is False
    assert body["missing_fields"] == ["year", "roll_no", "mobile_number"]
    assert second.json()["profile"]["name"] == "Ada"


@pytest.mark.asyncio
async def test_sync_rejects_email_owned_by_another_identity(client, auth_headers, create_user):
    await create_user("idp|ada", email="ada@clubmail.edu")

    response = await client.post(
        "/api/v1/users/sync",
        json={"name": "Imposter"},
        headers=auth_headers("idp|other", "ada@clubmail.edu")
    )

    assert response.status_code == 409
    assert response.json()["error"]["error_code"] == "USER_ALREADY_EXISTS"


@pytest.mark.asyncio
async def test_complete_profile_then_register(client, auth_headers, create_event):
    headers = auth_headers("idp|ada", "ada@clubmail.edu")
    event_id = await create_event()
    await client.post("/api/v1/users/sync", json={"name": "Ada"}, headers=headers)

    blocked = await client.post("/api/v1/registrations", json={"event_id": str(event_id)}, headers=headers)
    updated = await client.put(
        "/api/v1/users/me",
        json={"year": "2", "dept": "CSE", "roll_no": "CS22B010", "mobile_number": "9000000002"},
        headers=headers
    )
    allowed = await client.post("/api/v1/registrations", json={"event_id": str(event_id)}, headers=headers)

    assert blocked.status_code == 400
    assert updated.json()["profile_complete"] is True
    assert allowed.status_code == 201


@pytest.mark.asyncio
async def test_me_requires_synced_profile(client, auth_headers):
    response = await client.get("/api/v1/users/me", headers=auth_headers("idp|nobody"))

    assert response.status_code == 404
    assert response.json()["error"]["error_code"] == "PROFILE_NOT_FOUND"


@pytest.mark.asyncio
async def test_invalid_token(client):
    response = await client.get("/api/v1/users/me", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_admin_lists_and_promotes(client, auth_headers, create_user):
    await create_user("admin-1", role=UserRole.ADMIN)
    await create_user("u1")
    headers = auth_headers("admin-1")

    listed = await client.get("/api/v1/users", params={"role": "student"}, headers=headers)
    promoted = await client.put(
        "/api/v1/users/u1",
        json={"role": "admin", "designation": "Treasurer"},
        headers=headers
    )

    assert [user["id"] for user in listed.json()["users"]] == ["u1"]
    assert promoted.status_code == 200
    assert promoted.json()["profile"]["role"] == "admin"
    assert promoted.json()["profile"]["designation"] == "Treasurer"


@pytest.mark.asyncio
async def test_students_cannot_edit_others(client, auth_headers, create_user):
    await create_user("u1")
    await create_user("u2")

    response = await client.put("/api/v1/users/u2", json={"role": "admin"}, headers=auth_headers("u1"))

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_deleting_member_releases_seats(
    client, auth_headers, create_user, create_event, load_event
):
    await create_user("admin-1", role=UserRole.ADMIN)
    await create_user("u1")
    event_id = await create_event(max_capacity=1)
    created = await client.post(
        "/api/v1/registrations", json={"event_id": str(event_id)}, headers=auth_headers("u1")
    )
    assert created.status_code == 201
    assert (await load_event(event_id)).status == EventStatus.FULL

    response = await client.delete("/api/v1/users/u1", headers=auth_headers("admin-1"))

    assert response.status_code == 200
    event = await load_event(event_id)
    assert event.current_count == 0
    assert event.status == EventStatus.OPEN
    assert (await client.get("/api/v1/users/u1", headers=auth_headers("admin-1"))).status_code == 404
