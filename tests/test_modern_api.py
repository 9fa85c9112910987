# tests/test_modern_api.py
import pytest
from httpx import ASGITransport, AsyncClient

from hms.main import create_app

from .conftest import PASSWORD, make_settings


@pytest.fixture
async def async_client(tmp_path):
    app = create_app(make_settings(tmp_path))
    # ASGITransport does not run the lifespan
    app.state.database.create_tables()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.state.database.dispose()


async def test_health_reports_database(async_client: AsyncClient):
    response = await async_client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "OK"
    assert data["database"] == "connected"


async def test_register_and_login_modern(async_client: AsyncClient):
    response = await async_client.post(
        "/api/users/register",
        json={
            "name": "John Doe",
            "email": "john.doe@cityhospital.org",
            "password": PASSWORD,
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "John Doe"
    assert data["role"] == "patient"

    response = await async_client.post(
        "/api/users/login", json={"email": "john.doe@cityhospital.org", "password": PASSWORD}
    )
    assert response.status_code == 200
    token = response.json()["token"]

    response = await async_client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["email"] == "john.doe@cityhospital.org"
