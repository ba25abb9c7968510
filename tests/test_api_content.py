"""
HTTP tests for announcements, the contact inbox, winners and event glimpses.
"""

import pytest
import pytest_asyncio

from club_events_platform.models.user import UserRole


@pytest_asyncio.fixture
async def admin_headers(create_user, auth_headers):
    await create_user("admin-1", role=UserRole.ADMIN, designation="President")
    return auth_headers("admin-1")


@pytest.mark.asyncio
async def test_announcements_board(client, admin_headers):
    welcome = await client.post(
        "/api/v1/announcements",
        json={"title": "Welcome back", "message": "New semester, new events", "announcement_type": "success"},
        headers=admin_headers
    )
    stale = await client.post(
        "/api/v1/announcements",
        json={"title": "Hall change", "link_url": "https://maps.example.org/hall-b", "link_text": "Directions"},
        headers=admin_headers
    )
    assert welcome.status_code == 201
    assert stale.json()["announcement_type"] == "info"

    hidden = await client.patch(
        f"/api/v1/announcements/{stale.json()['id']}",
        json={"is_active": False},
        headers=admin_headers
    )
    assert hidden.json()["is_active"] is False

    public = await client.get("/api/v1/announcements")
    everything = await client.get("/api/v1/announcements/all", headers=admin_headers)

    assert [item["title"] for item in public.json()["announcements"]] == ["Welcome back"]
    assert everything.json()["total"] == 2


@pytest.mark.asyncio
async def test_announcement_delete(client, admin_headers):
    created = await client.post("/api/v1/announcements", json={"title": "Quiz results out"}, headers=admin_headers)
    url = f"/api/v1/announcements/{created.json()['id']}"

    first = await client.delete(url, headers=admin_headers)
    second = await client.delete(url, headers=admin_headers)

    assert first.status_code == 200
    assert second.status_code == 404
    assert second.json()["error"]["error_code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_students_cannot_publish_announcements(client, auth_headers, create_user):
    await create_user("u1")

    response = await client.post("/api/v1/announcements", json={"title": "Free pizza"}, headers=auth_headers("u1"))

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_contact_form_lands_in_inbox(client, admin_headers):
    sent = await client.post(
        "/api/v1/inquiries",
        json={"name": "Priya", "email": "priya@college.edu", "message": "Can first-years join the hackathon?"}
    )
    await client.post(
        "/api/v1/inquiries",
        json={"name": "Rahul", "email": "rahul@college.edu", "message": "Where is the robotics lab?"}
    )
    assert sent.status_code == 201
    inquiry_id = sent.json()["data"]["inquiry_id"]

    inbox = await client.get("/api/v1/inquiries", headers=admin_headers)
    assert inbox.json()["total"] == 2
    assert inbox.json()["pending"] == 2

    replied = await client.put(f"/api/v1/inquiries/{inquiry_id}", json={"status": "replied"}, headers=admin_headers)
    assert replied.json()["status"] == "replied"

    pending = await client.get("/api/v1/inquiries", params={"status": "pending"}, headers=admin_headers)
    searched = await client.get("/api/v1/inquiries", params={"search": "hackathon"}, headers=admin_headers)

    assert [item["name"] for item in pending.json()["inquiries"]] == ["Rahul"]
    assert pending.json()["pending"] == 1
    assert [item["id"] for item in searched.json()["inquiries"]] == [inquiry_id]


@pytest.mark.asyncio
async def test_contact_form_rejects_bad_email(client):
    response = await client.post(
        "/api/v1/inquiries",
        json={"name": "Priya", "email": "priya-at-college", "message": "Hello"}
    )

    assert response.status_code == 422
    assert "body.email" in response.json()["error"]["details"]["field_errors"]


@pytest.mark.asyncio
async def test_inbox_is_admin_only(client, auth_headers, create_user):
    await create_user("u1")

    response = await client.get("/api/v1/inquiries", headers=auth_headers("u1"))

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_winners_board(client, admin_headers):
    older = await client.post(
        "/api/v1/winners",
        json={"event_name": "Code Golf", "event_date": "2025-02-14", "first_place": "Asha"},
        headers=admin_headers
    )
    await client.post(
        "/api/v1/winners",
        json={
            "event_name": "Robo Race",
            "event_date": "2025-09-01",
            "first_place": "Team Volt",
            "second_place": "Gearheads",
            "third_place": "Circuit Breakers",
        },
        headers=admin_headers
    )

    board = await client.get("/api/v1/winners")
    assert [winner["event_name"] for winner in board.json()["winners"]] == ["Robo Race", "Code Golf"]

    deleted = await client.delete(f"/api/v1/winners/{older.json()['id']}", headers=admin_headers)
    assert deleted.status_code == 200
    assert (await client.get("/api/v1/winners")).json()["total"] == 1


@pytest.mark.asyncio
async def test_glimpses_follow_their_event(client, admin_headers, create_event):
    event_id = await create_event(title="Hack Night")
    other_event_id = await create_event(title="Chess Night")

    for caption in ("Opening talk", "Prize giving"):
        created = await client.post(
            "/api/v1/glimpses",
            json={"event_id": str(event_id), "image_url": f"https://cdn.example.org/{caption}.jpg", "caption": caption},
            headers=admin_headers
        )
        assert created.status_code == 201
    await client.post(
        "/api/v1/glimpses",
        json={"event_id": str(other_event_id), "image_url": "https://cdn.example.org/board.jpg"},
        headers=admin_headers
    )

    listed = await client.get("/api/v1/glimpses", params={"event_id": str(event_id)})
    assert {glimpse["caption"] for glimpse in listed.json()["glimpses"]} == {"Opening talk", "Prize giving"}

    await client.delete(f"/api/v1/events/{event_id}", params={"cascade": "true"}, headers=admin_headers)

    after_delete = await client.get("/api/v1/glimpses", params={"event_id": str(event_id)})
    untouched = await client.get("/api/v1/glimpses", params={"event_id": str(other_event_id)})
    assert after_delete.json()["total"] == 0
    assert untouched.json()["total"] == 1


@pytest.mark.asyncio
async def test_glimpse_for_unknown_event(client, admin_headers):
    response = await client.post(
        "/api/v1/glimpses",
        json={"event_id": "6f1c2b1e-8d0a-4c55-9a39-2f5c9d1e7a10", "image_url": "https://cdn.example.org/x.jpg"},
        headers=admin_headers
    )

    assert response.status_code == 404
    assert response.json()["error"]["error_code"] == "EVENT_NOT_FOUND"
