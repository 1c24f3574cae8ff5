"""
HTTP API tests against an application built around a test service.
"""

import base64

import pytest
from fastapi.testclient import TestClient

from kiosk.api.main import create_app


def b64(raw):
    return base64.b64encode(raw).decode()


@pytest.fixture
def client(service):
    return TestClient(create_app(service=service))


def register(client, name="Ada", email="ada@example.com", capture=b"ada-enroll"):
    return client.post("/register", json={"name": name, "email": email, "face_image": b64(capture)})


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["db_health"] is True
    assert data["enrolled"] == 0
    assert data["acceleration"] is False


def test_register_then_clock_in_and_out(client):
    registered = register(client)
    assert registered.status_code == 200
    user_id = registered.json()["data"]["id"]

    clock_in = client.post("/clockin", json={"face_image": f"data:image/jpeg;base64,{b64(b'ada-probe')}"})
    assert clock_in.status_code == 200
    body = clock_in.json()
    assert body["success"] is True
    assert body["data"]["user_id"] == user_id
    assert body["data"]["status"] == "CLOCK_IN"
    assert body["data"]["hamming"] == 5

    clock_out = client.post("/clockin", json={"face_image": b64(b"ada-probe")})
    assert clock_out.json()["data"]["status"] == "CLOCK_OUT"

    logs = client.get("/logs", params={"user_id": user_id}).json()
    assert [log["status"] for log in logs["logs"]] == ["CLOCK_OUT", "CLOCK_IN"]
    assert logs["has_more"] is False


def test_clock_in_without_match_is_rejected(client):
    register(client)

    response = client.post("/clockin", json={"face_image": b64(b"stranger")})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "No matching user found"
    assert body["data"]["hamming"] == 60
    assert body["data"]["max_hamming"] == 40


def test_clock_in_with_empty_store(client):
    response = client.post("/clockin", json={"face_image": b64(b"ada-probe")})

    assert response.status_code == 404
    assert response.json()["error"] == "EMPTY_STORE"


def test_clock_in_with_invalid_image(client):
    response = client.post("/clockin", json={"face_image": "not base64!!"})

    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_INPUT"


def test_register_without_face(client):
    response = register(client, capture=b"blank wall")

    assert response.status_code == 400
    assert response.json()["error"] == "SIGNATURE_ERROR"
    assert client.get("/sync").json()["users"] == []


def test_register_duplicate_email(client):
    register(client)

    response = register(client, name="Ada Again", capture=b"grace-enroll")

    assert response.status_code == 409
    assert response.json()["error"] == "DUPLICATE_IDENTITY"


def test_register_validation_error(client):
    response = client.post("/register", json={"name": "  ", "email": "ada@example.com", "face_image": "eA=="})

    assert response.status_code == 422


def test_enroll_unknown_user(client):
    response = client.post("/enroll/missing", json={"face_image": b64(b"ada-enroll")})

    assert response.status_code == 404
    assert response.json()["error"] == "IDENTITY_NOT_FOUND"


def test_enroll_existing_user(client):
    user_id = register(client).json()["data"]["id"]

    response = client.post(f"/enroll/{user_id}", json={"face_image": b64(b"grace-enroll")})

    assert response.status_code == 200
    assert response.json()["bit_length"] == 128


def test_logs_limit_bounds(client):
    assert client.get("/logs", params={"limit": 0}).status_code == 400
    assert client.get("/logs", params={"limit": 501}).status_code == 400


def test_logs_unknown_status(client):
    response = client.get("/logs", params={"status": "LUNCH"})

    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_INPUT"


def test_sync_and_delete(client):
    user_id = register(client).json()["data"]["id"]

    users = client.get("/sync").json()["users"]
    assert [(u["id"], u["enrolled"]) for u in users] == [(user_id, True)]

    assert client.delete(f"/identities/{user_id}").json() == {"success": True, "user_id": user_id}
    assert client.delete(f"/identities/{user_id}").status_code == 404
    assert client.get("/sync").json()["users"] == []


def test_lifespan_shutdown_clears_store(service):
    with TestClient(create_app(service=service)) as client:
        register(client)
        assert client.get("/health").json()["enrolled"] == 1

    assert len(service.store) == 0
