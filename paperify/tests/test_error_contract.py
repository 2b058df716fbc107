"""Tests for normalized error responses."""

from fastapi import FastAPI
from fastapi.testclient import TestClient

from paperify.core.errors import StorageError, register_error_handlers
from paperify.core.middleware.request_id import RequestIdMiddleware


def test_validation_error_has_standard_shape(client, register_user):
    headers, _ = register_user()
    resp = client.post("/api/user/subscription/lock-book", json={"book": ""}, headers=headers)
    assert resp.status_code == 400
    body = resp.json()
    rid = resp.headers.get("x-request-id")
    assert body["success"] is False
    assert body["error"]["code"] == "validation_error"
    assert body["error"]["message"] == "Book is required"
    assert body["detail"] == "Book is required"
    assert body["error"]["request_id"] == rid


def test_malformed_body_is_validation_error(client):
    resp = client.post("/api/auth/login", json={"email": "a@example.com"})
    assert resp.status_code == 422
    body = resp.json()
    assert body["error"]["code"] == "validation_error"
    assert body["error"]["fields"]


def test_unknown_route_normalized(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "not_found"
    assert resp.json()["error"]["request_id"] == resp.headers.get("x-request-id")


def test_not_eligible_carries_reason(client, register_user):
    headers, _ = register_user()
    resp = client.post("/api/user/subscription/lock-book", json={"book": "Physics"}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "not_eligible"
    assert resp.json()["error"]["reason"] == "no_matching_record"


def test_storage_error_hides_details():
    test_app = FastAPI()
    test_app.add_middleware(RequestIdMiddleware)
    register_error_handlers(test_app)

    @test_app.get("/boom")
    async def boom():
        raise StorageError("disk /var/data is full")

    resp = TestClient(test_app).get("/boom")
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"]["code"] == "storage_error"
    assert "/var/data" not in resp.text
