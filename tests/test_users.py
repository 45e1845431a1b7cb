from conftest import API, register_user
from schemas import normalize_email


class TestRegistration:

    def test_register_returns_summary_and_working_token(self, client):
        response = client.post(f"{API}/users/register",
                               json={"username": "alice", "email": "a@x.com", "password": "secret1"})
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        user = body["data"]["user"]
        assert user["username"] == "alice"
        assert user["email"] == "a@x.com"
        assert "password" not in user and "password_hash" not in user

        token = body["data"]["token"]
        me = client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["data"]["id"] == user["id"]

    def test_stores_only_password_hash(self, client, database):
        register_user(client, "alice", "a@x.com", "secret1")
        stored = database.collection("user").find_one({"username": "alice"})
        assert "password" not in stored
        assert stored["password_hash"] != "secret1"
        assert stored["password_hash"].startswith("$2")

    def test_missing_fields(self, client):
        response = client.post(f"{API}/users/register", json={"username": "alice", "email": "a@x.com"})
        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields"

    def test_duplicate_email_regardless_of_username(self, client, alice):
        response = client.post(f"{API}/users/register",
                               json={"username": "someone", "email": "A@X.com", "password": "secret1"})
        assert response.status_code == 400
        assert response.json()["error"] == "User already exists"
        assert response.json()["message"] == "Email already registered"

    def test_duplicate_username(self, client, alice):
        response = client.post(f"{API}/users/register",
                               json={"username": "alice", "email": "other@x.com", "password": "secret1"})
        assert response.status_code == 400
        assert response.json()["message"] == "Username already taken"

    def test_invalid_email_is_validation_error(self, client):
        response = client.post(f"{API}/users/register",
                               json={"username": "alice", "email": "not-an-email", "password": "secret1"})
        assert response.status_code == 400
        assert response.json()["error"] == "Validation error"
        assert "email" in response.json()["message"]


class TestLogin:

    def test_login_success(self, client, alice):
        user, _ = alice
        response = client.post(f"{API}/users/login", json={"email": "a@x.com", "password": "secret1"})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user"] == user
        me = client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {data['token']}"})
        assert me.status_code == 200

    def test_email_is_case_insensitive(self, client, alice):
        response = client.post(f"{API}/users/login", json={"email": "A@x.COM", "password": "secret1"})
        assert response.status_code == 200

    def test_login_uses_the_stored_email_form(self, client, database):
        register_user(client, "carol", "Carol@Example.ORG", "secret1")
        stored = database.collection("user").find_one({"username": "carol"})
        assert stored["email"] == normalize_email("carol@example.org")
        response = client.post(f"{API}/users/login", json={"email": "carol@EXAMPLE.org ", "password": "secret1"})
        assert response.status_code == 200

    def test_wrong_password_and_unknown_email_look_the_same(self, client, alice):
        wrong_password = client.post(f"{API}/users/login", json={"email": "a@x.com", "password": "nope123"})
        unknown_email = client.post(f"{API}/users/login", json={"email": "z@x.com", "password": "secret1"})
        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json()
        assert wrong_password.json()["error"] == "Invalid credentials"

    def test_missing_fields(self, client):
        response = client.post(f"{API}/users/login", json={"email": "a@x.com"})
        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields"
