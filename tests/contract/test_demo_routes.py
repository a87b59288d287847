from __future__ import annotations

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from fastapi.routing import APIRoute, APIWebSocketRoute
from fastapi.testclient import TestClient

from appberry.api_server.config import Settings
from appberry.api_server.main import make_app


ORIGIN = "http://example.com"


@pytest.fixture
def app(tmp_path: Path):
    settings = Settings(
        cors_origin=ORIGIN,
        db_path=str(tmp_path / "demo.db"),
        state_event_log_path=str(tmp_path / "events.ndjson"),
    )
    return make_app(settings)


@pytest.fixture
def client(app):
    return TestClient(app)


def test_hello_world(client) -> None:
    resp = client.get("/api")
    assert resp.status_code == 200
    assert resp.text == "Hello World!"
    assert resp.headers["content-type"].startswith("text/plain")


def test_health(client) -> None:
    assert client.get("/api/health").json() == {"ok": True}


def test_echo_returns_body_verbatim(client) -> None:
    resp = client.post("/api/echo", json={"field1": "value1", "field2": 5})
    assert resp.status_code == 200
    assert resp.json() == {"field1": "value1", "field2": 5}

    resp = client.post("/api/echo", json={"field1": "", "field2": 2.5})
    assert resp.json() == {"field1": "", "field2": 2.5}


@pytest.mark.parametrize(
    "body",
    [
        {"field1": "value1"},
        {"field2": 5},
        {"field1": 1, "field2": 5},
        {"field1": "value1", "field2": "5"},
        {"field1": "value1", "field2": True},
    ],
)
def test_echo_rejects_malformed_body(client, body) -> None:
    resp = client.post("/api/echo", json=body)
    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_echo_rejects_non_json(client) -> None:
    resp = client.post("/api/echo", content=b"not json", headers={"content-type": "application/json"})
    assert resp.status_code == 400


def test_d1_demo_round_trip_is_idempotent(client, tmp_path: Path) -> None:
    expected = [{"id": "test_id", "description": "test description"}]
    assert client.get("/api/d1-demo").json() == expected
    assert client.get("/api/d1-demo").json() == expected
    assert (tmp_path / "demo.db").exists()


def test_cors_allows_configured_origin(client) -> None:
    resp = client.get("/api", headers={"Origin": ORIGIN})
    assert resp.headers["access-control-allow-origin"] == ORIGIN
    assert resp.headers["access-control-allow-credentials"] == "true"


def test_cors_ignores_other_origins(client) -> None:
    resp = client.get("/api", headers={"Origin": "http://evil.example"})
    assert "access-control-allow-origin" not in resp.headers


def test_routes_are_prefixed_with_api(app) -> None:
    paths = [r.path for r in app.routes if hasattr(r, "path")]
    assert paths
    bad = [p for p in paths if not (p == "/api" or p.startswith("/api/"))]
    assert not bad, f"Route paths must equal /api or start with /api/: {bad}"
    assert any(isinstance(r, APIRoute) for r in app.routes)
    assert any(isinstance(r, APIWebSocketRoute) for r in app.routes)
