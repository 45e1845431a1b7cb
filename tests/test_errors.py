import pytest
from fastapi.testclient import TestClient
from pymongo.errors import DuplicateKeyError

from config import Settings
from conftest import API
from errors import ValidationFailed, validate_model
from main import create_app
from schemas import BlogPostCreate


def add_failing_routes(app):
    @app.get("/boom")
    def boom():
        raise RuntimeError("kaboom")

    @app.get("/duplicate")
    def duplicate():
        raise DuplicateKeyError("E11000 duplicate key", 11000, {"keyValue": {"email": "a@x.com"}})


def test_unexpected_error_includes_stack_outside_production(app):
    add_failing_routes(app)
    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/boom")
    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "kaboom"
    assert "RuntimeError" in body["stack"]


def test_unexpected_error_hides_stack_in_production(database):
    app = create_app(Settings(_env_file=None, environment="production"), database)
    add_failing_routes(app)
    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/boom")
    assert response.status_code == 500
    assert "stack" not in response.json()
    assert response.json()["message"] == "An unexpected error occurred"


def test_duplicate_key(app):
    add_failing_routes(app)
    with TestClient(app) as client:
        response = client.get("/duplicate")
    assert response.status_code == 400
    assert response.json()["message"] == "Duplicate field value entered: email"


def test_unknown_route_uses_envelope(client):
    response = client.get(f"{API}/nothing-here")
    assert response.status_code == 404
    assert response.json()["success"] is False


def test_invalid_json_body(client, alice):
    _, headers = alice
    response = client.post(f"{API}/projects", content="{not json",
                           headers={**headers, "Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json()["error"] == "Validation error"


def test_security_headers(client):
    response = client.get("/")
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "SAMEORIGIN"


def test_health(client):
    response = client.get("/health")
    assert response.json()["data"]["database"] == "connected"


def test_validate_model_collects_every_field():
    with pytest.raises(ValidationFailed) as excinfo:
        validate_model(BlogPostCreate, {"title": "Hi", "content": "short"})
    assert len(excinfo.value.messages) == 2
    assert excinfo.value.status_code == 400
