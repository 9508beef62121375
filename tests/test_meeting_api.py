"""Integration tests for the meeting API endpoints.

Builds a minimal FastAPI app around the meetings router with a real
MeetingService on in-memory SQLite, and drives it with httpx AsyncClient.
Most tests override get_current_user; the authentication tests instead
override get_db so real JWTs are checked against seeded users.
"""

from __future__ import annotations

import uuid
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.crm.api.deps import get_current_user, get_db
from src.crm.api.v1.meetings import router as meetings_router
from src.crm.core.security import create_access_token
from src.crm.models.people import Contact, Lead, User

BASE = "/api/meeting"


def _build_app(service=None) -> FastAPI:
    app = FastAPI()
    app.include_router(meetings_router)
    if service is not None:
        app.state.meeting_service = service
    return app


def _meeting_body(**overrides) -> dict:
    body = {
        "agenda": "Pipeline review",
        "attendees": [],
        "attendeeLeads": [],
        "location": "HQ",
        "related": "Account",
        "dateTime": "2026-11-10T09:00:00",
        "notes": "Review Q4",
        "createdBy": str(uuid.uuid4()),
    }
    body.update(overrides)
    return body


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def operator() -> User:
    return User(id=uuid.uuid4(), email="operator@example.com", first_name="Op", last_name="Erator")


@pytest_asyncio.fixture
async def client(service, operator):
    app = _build_app(service)
    app.dependency_overrides[get_current_user] = lambda: operator
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def auth_client(service, session_factory):
    """Client with real token verification against the test database."""
    app = _build_app(service)
    app.dependency_overrides[get_db] = session_factory
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ── POST /add ────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_add_returns_created_meeting(client):
    body = _meeting_body()

    resp = await client.post(f"{BASE}/add", json=body)

    assert resp.status_code == 200
    result = resp.json()["result"]
    assert uuid.UUID(result["id"])
    assert result["agenda"] == "Pipeline review"
    assert result["createdBy"] == body["createdBy"]
    assert result["attendeeLeads"] == []
    assert result["dateTime"].startswith("2026-11-10T09:00:00")


@pytest.mark.asyncio
async def test_add_malformed_creator_is_400(client):
    resp = await client.post(f"{BASE}/add", json=_meeting_body(createdBy="nope"))

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid createdBy value"}

    listing = await client.get(f"{BASE}/")
    assert listing.json() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("bad", [12345, {"$ne": None}, None])
async def test_add_non_string_creator_is_400(client, bad):
    resp = await client.post(f"{BASE}/add", json=_meeting_body(createdBy=bad))

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid createdBy value"}
    assert (await client.get(f"{BASE}/")).json() == []


@pytest.mark.asyncio
async def test_add_non_list_attendees_is_400(client):
    resp = await client.post(f"{BASE}/add", json=_meeting_body(attendees="everyone"))

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid attendees value"}


@pytest.mark.asyncio
async def test_add_bad_date_time_is_400(client):
    resp = await client.post(f"{BASE}/add", json=_meeting_body(dateTime="tomorrow-ish"))

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Failed to create meeting"
    assert body["details"]
    assert (await client.get(f"{BASE}/")).json() == []


@pytest.mark.asyncio
async def test_add_aware_date_time_returned_in_utc(client):
    resp = await client.post(
        f"{BASE}/add", json=_meeting_body(dateTime="2026-11-10T11:00:00+02:00")
    )

    assert resp.status_code == 200
    assert resp.json()["result"]["dateTime"] == "2026-11-10T09:00:00Z"


# ── GET / ────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_index_returns_enriched_camel_case(client, seed):
    owner = User(id=uuid.uuid4(), email="owner@example.com", first_name="Grace", last_name="Hopper")
    contact = Contact(id=uuid.uuid4(), first_name="Alan", last_name="Turing")
    lead = Lead(id=uuid.uuid4(), lead_name="Umbrella")
    await seed(owner, contact, lead)

    await client.post(
        f"{BASE}/add",
        json=_meeting_body(
            createdBy=str(owner.id),
            attendees=[str(contact.id)],
            attendeeLeads=[str(lead.id)],
        ),
    )

    resp = await client.get(f"{BASE}/")

    assert resp.status_code == 200
    [meeting] = resp.json()
    assert meeting["createdByName"] == "Grace Hopper"
    assert meeting["attendeeNames"] == ["Alan Turing"]
    assert meeting["attendeeLeadNames"] == ["Umbrella"]
    assert meeting["attendees"] == [str(contact.id)]


@pytest.mark.asyncio
async def test_index_filters_by_query_params(client):
    owner = str(uuid.uuid4())
    first = (await client.post(f"{BASE}/add", json=_meeting_body(createdBy=owner))).json()["result"]
    await client.post(f"{BASE}/add", json=_meeting_body())

    by_owner = await client.get(f"{BASE}/", params={"createdBy": owner})
    assert [m["id"] for m in by_owner.json()] == [first["id"]]

    by_id = await client.get(f"{BASE}/", params={"id": first["id"]})
    assert [m["id"] for m in by_id.json()] == [first["id"]]


@pytest.mark.asyncio
async def test_index_malformed_filter_is_400(client):
    resp = await client.get(f"{BASE}/", params={"createdBy": "bad"})

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid createdBy value"}


# ── GET /view/{id} ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_view_found_and_not_found(client):
    created = (await client.post(f"{BASE}/add", json=_meeting_body())).json()["result"]

    resp = await client.get(f"{BASE}/view/{created['id']}")
    assert resp.status_code == 200
    assert resp.json()["id"] == created["id"]
    assert resp.json()["createdByName"] is None

    missing = await client.get(f"{BASE}/view/{uuid.uuid4()}")
    assert missing.status_code == 404
    assert missing.json() == {"message": "No data found for this meeting."}


@pytest.mark.asyncio
async def test_view_malformed_id_is_400(client):
    resp = await client.get(f"{BASE}/view/not-a-uuid")

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid id value"}


@pytest.mark.asyncio
async def test_view_needs_no_token(auth_client):
    resp = await auth_client.get(f"{BASE}/view/{uuid.uuid4()}")

    assert resp.status_code == 404


# ── DELETE /delete/{id} ──────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_delete_one(client):
    created = (await client.post(f"{BASE}/add", json=_meeting_body())).json()["result"]

    resp = await client.delete(f"{BASE}/delete/{created['id']}")
    assert resp.status_code == 200
    assert resp.json()["message"] == "Meeting deleted successfully"
    assert resp.json()["result"]["id"] == created["id"]

    again = await client.delete(f"{BASE}/delete/{created['id']}")
    assert again.status_code == 404
    assert again.json() == {"message": "Meeting not found or already deleted."}


# ── POST /deleteMany ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_delete_many(client):
    owner = str(uuid.uuid4())
    for _ in range(2):
        await client.post(f"{BASE}/add", json=_meeting_body(createdBy=owner))
    survivor = (await client.post(f"{BASE}/add", json=_meeting_body())).json()["result"]

    resp = await client.post(f"{BASE}/deleteMany", params={"createdBy": owner})
    assert resp.status_code == 200
    assert resp.json() == {"message": "2 meeting(s) deleted successfully", "count": 2}

    assert (await client.get(f"{BASE}/view/{survivor['id']}")).status_code == 200


@pytest.mark.asyncio
async def test_delete_many_nothing_matched(client):
    resp = await client.post(f"{BASE}/deleteMany", params={"id": str(uuid.uuid4())})

    assert resp.status_code == 404
    assert resp.json() == {"message": "No meetings found to delete."}


@pytest.mark.asyncio
async def test_delete_many_without_filter_deletes_all(client):
    for _ in range(2):
        await client.post(f"{BASE}/add", json=_meeting_body())

    resp = await client.post(f"{BASE}/deleteMany")

    assert resp.status_code == 200
    assert resp.json() == {"message": "2 meeting(s) deleted successfully", "count": 2}
    assert (await client.get(f"{BASE}/")).json() == []

    again = await client.post(f"{BASE}/deleteMany")
    assert again.status_code == 404
    assert again.json() == {"message": "No meetings found to delete."}


# ── Service availability ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_missing_service_is_503(operator):
    app = _build_app()
    app.dependency_overrides[get_current_user] = lambda: operator
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        resp = await ac.get(f"{BASE}/view/{uuid.uuid4()}")

    assert resp.status_code == 503


# ── Authentication ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_protected_routes_require_token(auth_client):
    assert (await auth_client.get(f"{BASE}/")).status_code == 401
    assert (await auth_client.post(f"{BASE}/add", json=_meeting_body())).status_code == 401
    assert (await auth_client.delete(f"{BASE}/delete/{uuid.uuid4()}")).status_code == 401
    assert (await auth_client.post(f"{BASE}/deleteMany", params={"id": str(uuid.uuid4())})).status_code == 401


@pytest.mark.asyncio
async def test_valid_token_for_active_user(auth_client, seed):
    user = User(id=uuid.uuid4(), email="rep@example.com", first_name="Ada", last_name="Lovelace")
    await seed(user)
    headers = {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}

    resp = await auth_client.get(f"{BASE}/", headers=headers)

    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.asyncio
async def test_token_for_soft_deleted_user_is_rejected(auth_client, seed):
    user = User(id=uuid.uuid4(), email="gone@example.com", first_name="Old", last_name="Rep", deleted=True)
    await seed(user)
    headers = {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}

    resp = await auth_client.get(f"{BASE}/", headers=headers)

    assert resp.status_code == 401
    assert resp.json()["detail"] == "User not found or inactive"


@pytest.mark.asyncio
async def test_expired_or_garbage_token_is_rejected(auth_client, seed):
    user = User(id=uuid.uuid4(), email="rep@example.com", first_name="Ada", last_name="Lovelace")
    await seed(user)
    expired = create_access_token({"sub": str(user.id)}, expires_delta=timedelta(minutes=-5))

    for token in (expired, "not.a.jwt"):
        resp = await auth_client.get(f"{BASE}/", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401


@pytest.mark.asyncio
async def test_user_lookup_failure_is_503(service):
    async def unreachable_db():
        session = AsyncMock()
        session.execute.side_effect = ConnectionRefusedError("connection refused")
        yield session

    app = _build_app(service)
    app.dependency_overrides[get_db] = unreachable_db
    headers = {"Authorization": f"Bearer {create_access_token({'sub': str(uuid.uuid4())})}"}

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        resp = await ac.get(f"{BASE}/", headers=headers)

    assert resp.status_code == 503
    assert resp.json()["detail"] == "Authentication backend unavailable"
