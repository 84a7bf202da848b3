import pytest
from httpx import AsyncClient

from tests.integration.helpers import bearer, login, register


@pytest.mark.asyncio
async def test_admin_sees_auth_events(client: AsyncClient):
    await register(client, email="admin@example.com", role="admin")
    tokens = await login(client, email="admin@example.com")

    response = await client.get("/api/audit/auth-events", headers=bearer(tokens["accessToken"]))

    assert response.status_code == 200
    events = response.json()["data"]["events"]
    types = [event["eventType"] for event in events]
    assert types[:2] == ["LOGIN_SUCCESS", "REGISTER_SUCCESS"]
    assert events[0]["ipAddress"]
    assert events[0]["correlationId"]


@pytest.mark.asyncio
async def test_event_type_filter_and_pagination(client: AsyncClient):
    await register(client, email="admin@example.com", role="admin")
    for _ in range(3):
        tokens = await login(client, email="admin@example.com")

    response = await client.get(
        "/api/audit/auth-events",
        params={"eventType": "LOGIN_SUCCESS", "limit": 2},
        headers=bearer(tokens["accessToken"]),
    )

    data = response.json()["data"]
    assert len(data["events"]) == 2
    assert {event["eventType"] for event in data["events"]} == {"LOGIN_SUCCESS"}
    assert data["nextCursor"] is not None


@pytest.mark.asyncio
async def test_non_admin_is_forbidden(client: AsyncClient):
    await register(client)
    tokens = await login(client)

    response = await client.get("/api/audit/auth-events", headers=bearer(tokens["accessToken"]))

    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"
