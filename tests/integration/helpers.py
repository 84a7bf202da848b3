from httpx import AsyncClient

PASSWORD = "SecurePass123!"


async def register(client: AsyncClient, email: str = "agent@example.com", role: str = "agent"):
    response = await client.post("/api/auth/register", json={
        "email": email,
        "password": PASSWORD,
        "firstName": "Ada",
        "lastName": "Agent",
        "role": role,
    })
    assert response.status_code == 201, response.text
    return response.json()["data"]["user"]


async def login(client: AsyncClient, email: str = "agent@example.com", **extra):
    response = await client.post(
        "/api/auth/login", json={"email": email, "password": PASSWORD, **extra}
    )
    assert response.status_code == 200, response.text
    return response.json()["data"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def cleared_cookies(response) -> set:
    cleared = set()
    for header in response.headers.get_list("set-cookie"):
        name = header.split("=", 1)[0]
        if "Max-Age=0" in header or 'max-age=0' in header.lower():
            cleared.add(name)
    return cleared
