import logging

from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from paperify.core.logging import get_request_id
from paperify.core.middleware.request_id import RequestIdMiddleware


def _make_app():
    app = FastAPI()
    app.add_middleware(RequestIdMiddleware)

    @app.get("/")
    async def root(request: Request):
        return {"request_id": request.state.request_id, "context_id": get_request_id()}

    return app


def test_generated_id_matches_header_and_context():
    resp = TestClient(_make_app()).get("/")
    body = resp.json()
    assert resp.headers.get("x-request-id")
    assert body["request_id"] == resp.headers["x-request-id"] == body["context_id"]


def test_provided_id_is_echoed():
    resp = TestClient(_make_app()).get("/", headers={"X-Request-Id": "paper-rid-7"})
    assert resp.headers.get("x-request-id") == "paper-rid-7"
    assert resp.json()["request_id"] == "paper-rid-7"


def test_context_cleared_and_completion_logged(caplog):
    with caplog.at_level(logging.INFO, logger="paperify"):
        TestClient(_make_app()).get("/", headers={"X-Request-Id": "paper-rid-8"})
    assert get_request_id() is None
    done = [r for r in caplog.records if r.getMessage() == "request.complete"]
    assert done and done[0].request_id == "paper-rid-8"
    assert done[0].path == "/"
    assert done[0].status == 200
