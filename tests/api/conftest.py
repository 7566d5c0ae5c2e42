"""API test fixtures — FastAPI app over ASGITransport with a tmp-dir registry.

Design Decisions:
    - The lifespan does not run under ASGITransport; the registry is placed on
      app.state directly, the same place the lifespan puts it
"""

import pytest
from httpx import ASGITransport, AsyncClient

from certtrack.main import app


@pytest.fixture
async def client(registry):
    app.state.registry = registry
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
    del app.state.registry


@pytest.fixture
def bearer(client):
    """Log in through the route and return the Authorization header."""
    async def login(email: str, password: str) -> dict:
        response = await client.post("/api/v1/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['sessionId']}"}
    return login


@pytest.fixture
async def member_headers(bearer, member):
    user, password = member
    return await bearer(user.email, password)


@pytest.fixture
async def admin_headers(bearer, admin):
    user, password = admin
    return await bearer(user.email, password)
