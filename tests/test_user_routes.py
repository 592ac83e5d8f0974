"""Tests for the /api/users routes backed by the in-memory repository."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def ada(client: TestClient) -> dict:
    resp = client.post("/api/users", json={"name": "Ada Lovelace", "email": "Ada@Example.com "})
    assert resp.status_code == 201
    return resp.json()


def test_create_user_normalizes_email(ada: dict) -> None:
    assert ada["name"] == "Ada Lovelace"
    assert ada["email"] == "ada@example.com"
    assert ada["id"]
    assert ada["created_at"] == ada["updated_at"]


def test_list_users(client: TestClient, ada: dict) -> None:
    client.post("/api/users", json={"name": "Grace", "email": "grace@example.com"})

    resp = client.get("/api/users")

    assert resp.status_code == 200
    assert [u["email"] for u in resp.json()] == ["ada@example.com", "grace@example.com"]


def test_list_users_empty(client: TestClient) -> None:
    resp = client.get("/api/users")

    assert resp.status_code == 200
    assert resp.json() == []


def test_get_user(client: TestClient, ada: dict) -> None:
    resp = client.get(f"/api/users/{ada['id']}")

    assert resp.status_code == 200
    assert resp.json() == ada


def test_get_missing_user_returns_404(client: TestClient) -> None:
    resp = client.get("/api/users/does-not-exist")

    assert resp.status_code == 404
    body = resp.json()
    assert body["code"] == "user_not_found"
    assert body["message"] == "User not found"


def test_duplicate_email_returns_409(client: TestClient, ada: dict) -> None:
    resp = client.post("/api/users", json={"name": "Imposter", "email": "ADA@example.com"})

    assert resp.status_code == 409
    assert resp.json()["code"] == "email_already_exists"


@pytest.mark.parametrize(
    "payload",
    [
        {"name": "No Email"},
        {"email": "nobody@example.com"},
        {"name": "Bad", "email": "not-an-email"},
        {"name": "   ", "email": "blank@example.com"},
    ],
)
def test_invalid_payload_returns_422(client: TestClient, payload: dict) -> None:
    assert client.post("/api/users", json=payload).status_code == 422


def test_update_user(client: TestClient, ada: dict) -> None:
    resp = client.put(f"/api/users/{ada['id']}", json={"name": "Countess Lovelace"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["name"] == "Countess Lovelace"
    assert body["email"] == "ada@example.com"
    assert body["updated_at"] >= ada["updated_at"]


def test_update_to_taken_email_returns_409(client: TestClient, ada: dict) -> None:
    other = client.post("/api/users", json={"name": "Grace", "email": "grace@example.com"}).json()

    resp = client.put(f"/api/users/{other['id']}", json={"email": "ada@example.com"})

    assert resp.status_code == 409


def test_update_own_email_is_allowed(client: TestClient, ada: dict) -> None:
    resp = client.put(f"/api/users/{ada['id']}", json={"email": "ADA@example.com"})

    assert resp.status_code == 200


def test_empty_update_returns_400(client: TestClient, ada: dict) -> None:
    resp = client.put(f"/api/users/{ada['id']}", json={})

    assert resp.status_code == 400
    assert resp.json()["code"] == "empty_update"


def test_update_missing_user_returns_404(client: TestClient) -> None:
    assert client.put("/api/users/missing", json={"name": "X"}).status_code == 404


def test_delete_user(client: TestClient, ada: dict) -> None:
    resp = client.delete(f"/api/users/{ada['id']}")

    assert resp.status_code == 204
    assert client.get(f"/api/users/{ada['id']}").status_code == 404


def test_delete_missing_user_returns_404(client: TestClient) -> None:
    assert client.delete("/api/users/missing").status_code == 404
