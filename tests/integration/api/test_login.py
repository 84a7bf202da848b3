import pytest
from httpx import AsyncClient

from tests.integration.helpers import PASSWORD, bearer, login, register


@pytest.mark.asyncio
async def test_successful_login(client: AsyncClient):
    """Login returns tokens and session metadata and sets HTTP-only cookies"""
    await register(client)

    response = await client.post("/api/auth/login", json={
        "email": "agent@example.com",
        "password": PASSWORD,
    })

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["tokenType"] == "Bearer"
    assert data["expiresIn"] == 900
    assert data["user"]["email"] == "agent@example.com"
    assert data["user"]["lastLoginAt"] is not None
    assert data["session"]["activeSessions"] == 1
    assert data["accessToken"] and data["refreshToken"]

    cookies = response.headers.get_list("set-cookie")
    assert any(c.startswith("accessToken=") and "HttpOnly" in c for c in cookies)
    assert any(c.startswith("refreshToken=") and "HttpOnly" in c for c in cookies)
    assert response.headers["X-RateLimit-Limit"] == "5"
    assert response.headers["X-RateLimit-Remaining"] == "5"

    verify = await client.get("/api/auth/verify", headers=bearer(data["accessToken"]))
    assert verify.status_code == 200
    assert verify.json()["data"]["session"]["sessionId"] == data["session"]["sessionId"]


@pytest.mark.asyncio
async def test_unknown_email_and_wrong_password_look_identical(client: AsyncClient):
    await register(client)

    unknown = await client.post("/api/auth/login", json={
        "email": "nobody@example.com",
        "password": PASSWORD,
    })
    wrong = await client.post("/api/auth/login", json={
        "email": "agent@example.com",
        "password": "WrongPass123!",
    })

    assert unknown.status_code == wrong.status_code == 401
    assert unknown.json() == wrong.json()
    assert unknown.json()["code"] == "INVALID_CREDENTIALS"


@pytest.mark.asyncio
async def test_sixth_failed_login_is_blocked(client: AsyncClient):
    await register(client)

    for _ in range(5):
        response = await client.post("/api/auth/login", json={
            "email": "agent@example.com",
            "password": "WrongPass123!",
        })
        assert response.status_code == 401

    response = await client.post("/api/auth/login", json={
        "email": "agent@example.com",
        "password": PASSWORD,
    })

    assert response.status_code == 429
    body = response.json()
    assert body["code"] == "RATE_LIMITED"
    assert body["retryAfter"] == 1800
    assert response.headers["Retry-After"] == "1800"


@pytest.mark.asyncio
async def test_attempts_are_counted_per_client_address(client: AsyncClient):
    await register(client)
    for _ in range(6):
        await client.post(
            "/api/auth/login",
            json={"email": "agent@example.com", "password": "WrongPass123!"},
            headers={"X-Forwarded-For": "198.51.100.1, 10.0.0.1"},
        )

    response = await client.post(
        "/api/auth/login",
        json={"email": "agent@example.com", "password": PASSWORD},
        headers={"X-Forwarded-For": "198.51.100.2"},
    )

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_verify_without_token(client: AsyncClient):
    response = await client.get("/api/auth/verify")

    assert response.status_code == 401
    assert response.json()["code"] == "TOKEN_MISSING"


@pytest.mark.asyncio
async def test_verify_with_refresh_token_rejected(client: AsyncClient):
    await register(client)
    data = await login(client)

    response = await client.get("/api/auth/verify", headers=bearer(data["refreshToken"]))

    assert response.status_code == 401
    assert response.json()["code"] == "TOKEN_INVALID"


@pytest.mark.asyncio
async def test_over_long_password_looks_identical_for_unknown_email(client: AsyncClient):
    await register(client)
    long_password = "Aa1!" + "x" * 80

    unknown = await client.post("/api/auth/login", json={
        "email": "nobody@example.com",
        "password": long_password,
    })
    known = await client.post("/api/auth/login", json={
        "email": "agent@example.com",
        "password": long_password,
    })

    assert unknown.status_code == known.status_code == 401
    assert unknown.json() == known.json()
