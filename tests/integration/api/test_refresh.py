import time

import pytest
from httpx import AsyncClient

from tests.integration.helpers import bearer, cleared_cookies, login, register


@pytest.mark.asyncio
async def test_refresh_after_access_expiry_keeps_session(app, client: AsyncClient):
    """An expired access token is rejected, and refresh mints a new one for the same session"""
    await register(client)
    tokens = app.state.services.tokens
    tokens.clock = lambda: time.time() - 3600
    try:
        data = await login(client)
    finally:
        tokens.clock = time.time

    expired = await client.get("/api/auth/verify", headers=bearer(data["accessToken"]))
    assert expired.status_code == 401
    assert expired.json()["code"] == "TOKEN_EXPIRED"

    response = await client.post("/api/auth/refresh", json={"refreshToken": data["refreshToken"]})

    assert response.status_code == 200
    refreshed = response.json()["data"]
    assert refreshed["sessionId"] == data["session"]["sessionId"]
    assert refreshed["accessToken"] != data["accessToken"]

    verify = await client.get("/api/auth/verify", headers=bearer(refreshed["accessToken"]))
    assert verify.status_code == 200
    assert verify.json()["data"]["session"]["sessionId"] == data["session"]["sessionId"]


@pytest.mark.asyncio
async def test_refresh_with_invalid_token_clears_cookies(client: AsyncClient):
    response = await client.post("/api/auth/refresh", json={"refreshToken": "garbage"})

    assert response.status_code == 401
    assert response.json()["code"] == "TOKEN_INVALID"
    assert {"accessToken", "refreshToken"} <= cleared_cookies(response)


@pytest.mark.asyncio
async def test_refresh_without_token(client: AsyncClient):
    response = await client.post("/api/auth/refresh")

    assert response.status_code == 401
    assert response.json()["code"] == "TOKEN_MISSING"


@pytest.mark.asyncio
async def test_refresh_rejected_after_logout(client: AsyncClient):
    await register(client)
    data = await login(client)
    await client.post("/api/auth/logout", headers=bearer(data["accessToken"]))

    response = await client.post("/api/auth/refresh", json={"refreshToken": data["refreshToken"]})

    assert response.status_code == 401
    assert response.json()["code"] == "SESSION_REVOKED"
