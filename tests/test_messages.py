from bson.objectid import ObjectId

from conftest import API


def test_contact_boundary_values(client):
    response = client.post(f"{API}/contact",
                           json={"name": "Jo", "email": "jo@x.com", "message": "Hi there!!"})
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["name"] == "Jo"
    assert data["message"] == "Hi there!!"
    assert {"id", "email", "created_at"} <= set(data)


def test_email_is_lowercased(client):
    response = client.post(f"{API}/contact",
                           json={"name": "Jo", "email": "Jo@X.com", "message": "Hello there"})
    assert response.json()["data"]["email"] == "jo@x.com"


def test_missing_fields(client):
    response = client.post(f"{API}/contact", json={"name": "Jo", "email": "jo@x.com"})
    assert response.status_code == 400
    assert response.json()["error"] == "Missing required fields"


def test_field_rules(client, database):
    response = client.post(f"{API}/contact", json={"name": "J", "email": "jo@x", "message": "Hey"})
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation error"
    assert "Please provide a valid email" in body["message"]
    assert "name" in body["message"]
    assert database.collection("message").count_documents({}) == 0


def test_inbox_requires_token(client, alice):
    client.post(f"{API}/contact", json={"name": "Jo", "email": "jo@x.com", "message": "Hi there!!"})
    assert client.get(f"{API}/contact/messages").status_code == 401

    _, headers = alice
    listing = client.get(f"{API}/contact/messages", headers=headers)
    assert listing.status_code == 200
    assert listing.json()["count"] == 1

    message_id = listing.json()["data"][0]["id"]
    detail = client.get(f"{API}/contact/messages/{message_id}", headers=headers)
    assert detail.json()["data"]["name"] == "Jo"
    missing = client.get(f"{API}/contact/messages/{ObjectId()}", headers=headers)
    assert missing.json()["error"] == "Message not found"


def test_whitespace_only_fields_are_rejected(client, database):
    response = client.post(f"{API}/contact", json={"name": "   ", "email": "   ", "message": "Hi there!!"})
    assert response.status_code == 400
    assert "Please provide a valid email" in response.json()["message"]
    assert database.collection("message").count_documents({}) == 0
