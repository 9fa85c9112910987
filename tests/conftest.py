# tests/conftest.py
import itertools

import pytest
from fastapi.testclient import TestClient

from hms.config import Settings
from hms.main import create_app

TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"
PASSWORD = "secret123"

_counter = itertools.count(1)


def make_settings(tmp_path, **overrides) -> Settings:
    values = dict(
        DATABASE_URL=f"sqlite:///{tmp_path}/hms_test.db",
        SECRET_KEY=TEST_SECRET,
        ENVIRONMENT="testing",
        RATE_LIMIT_ENABLED=False,
        LOG_JSON=False,
        LOG_LEVEL="WARNING",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def app(tmp_path):
    return create_app(make_settings(tmp_path))


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db(client, app):
    session = app.state.database.session()
    try:
        yield session
    finally:
        session.close()


def login_headers(client, email, password=PASSWORD):
    response = client.post("/api/users/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def register(client):
    """Register a user of the given role; returns (user json, auth headers)."""
    def _register(role="patient", **fields):
        n = next(_counter)
        payload = {
            "name": fields.pop("name", f"{role.title()} {n}"),
            "email": fields.pop("email", f"{role}{n}@cityhospital.org"),
            "password": PASSWORD,
            "role": role,
        }
        if role == "doctor":
            payload.update(qualifications="MBBS", specializations=["Cardiology"], experience=5)
        payload.update(fields)
        response = client.post("/api/users/register", json=payload)
        assert response.status_code == 201, response.text
        user = response.json()
        return user, login_headers(client, payload["email"], payload["password"])
    return _register


@pytest.fixture
def admin(register):
    return register("hospital_admin")


@pytest.fixture
def doctor(register):
    return register("doctor")


@pytest.fixture
def patient(register):
    return register("patient", unique_id="AADHAR-0001")


@pytest.fixture
def hospital(client, admin):
    _, headers = admin
    response = client.post(
        "/api/hospitals",
        json={"name": "City General", "location": "12 Park Road"},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def associated_doctor(client, doctor, hospital):
    """A doctor associated with the hospital at a fee of 500."""
    user, headers = doctor
    response = client.post(
        f"/api/doctors/{user['id']}/associate-hospital",
        json={"hospital_id": hospital["id"], "consultation_fee": 500},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return user, headers
