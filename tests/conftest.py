import mongomock
import pytest
from fastapi.testclient import TestClient

from config import Settings
from database import Database
from main import create_app

API = "/api"


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        environment="test",
        jwt_secret="test-secret",
        password_hash_rounds=4,
    )


@pytest.fixture
def database():
    """In-memory MongoDB standing in for the real server."""
    return Database(mongomock.MongoClient(), "portfolio_test")


@pytest.fixture
def app(settings, database):
    return create_app(settings, database)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def register_user(client, username, email, password="secret1"):
    response = client.post(f"{API}/users/register",
                           json={"username": username, "email": email, "password": password})
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    return data["user"], {"Authorization": f"Bearer {data['token']}"}


@pytest.fixture
def alice(client):
    return register_user(client, "alice", "a@x.com")


@pytest.fixture
def bob(client):
    return register_user(client, "bob", "b@x.com")
