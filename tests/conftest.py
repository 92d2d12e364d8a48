import asyncio

import pytest
from fastapi.testclient import TestClient

from legal_eye_api.app.core.config import Settings
from legal_eye_api.app.main import create_app
from legal_eye_api.app.schemas.user import UserRegister
from legal_eye_api.app.services.user_service import UserService

PASSWORD = "password1"
DESCRIPTION = "Dispute with the neighbour over the fence line."


def auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def settings(tmp_path):
    return Settings(database_url=str(tmp_path / "legal_eye_test.db"), secret_key="test-secret")


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db(app, client):
    """The app's database, initialised by the running client."""
    return app.state.db


@pytest.fixture
def register(client):
    """Register a user over the API and return ``{"user", "token", "headers"}``."""

    def _register(name, email, role="client", password=PASSWORD):
        response = client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": password, "role": role},
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return {"user": data["user"], "token": data["token"], "headers": auth(data["token"])}

    return _register


@pytest.fixture
def make_lawyer(client, register):
    """Register a lawyer user and create their profile."""

    def _make_lawyer(name, email, specialization="Family Law", fee=100, **profile):
        account = register(name, email, role="lawyer")
        payload = {"specialization": specialization, "consultationFee": fee, **profile}
        response = client.post("/api/lawyers", json=payload, headers=account["headers"])
        assert response.status_code == 201, response.text
        account["lawyer"] = response.json()["data"]
        return account

    return _make_lawyer


@pytest.fixture
def client_user(register):
    return register("Alice Client", "alice@example.com")


@pytest.fixture
def other_client(register):
    return register("Bob Client", "bob@example.com")


@pytest.fixture
def lawyer(make_lawyer):
    return make_lawyer("Larry Lawyer", "larry@example.com")


@pytest.fixture
def admin(client, db):
    data = UserRegister(name="Ada Admin", email="admin@example.com", password=PASSWORD)
    asyncio.run(UserService.create_user(db, data, role="admin"))
    response = client.post("/api/auth/login", json={"email": data.email, "password": PASSWORD})
    assert response.status_code == 200, response.text
    payload = response.json()["data"]
    return {"user": payload["user"], "token": payload["token"], "headers": auth(payload["token"])}


@pytest.fixture
def book(client):
    """Create a booking and return the raw response."""

    def _book(account, lawyer_id, date="2024-01-01", slot="10:00", **extra):
        payload = {
            "lawyerId": lawyer_id,
            "date": date,
            "timeSlot": slot,
            "caseType": "Property dispute",
            "description": DESCRIPTION,
            **extra,
        }
        return client.post("/api/bookings", json=payload, headers=account["headers"])

    return _book
