from __future__ import annotations

from fastapi.testclient import TestClient
import pytest

from admission import api
from admission.api import app, get_engine
from admission.config import AdmissionPolicy
from admission.engine import AdmissionEngine
from admission.rate_limit import RateLimiter
from admission.utils import ManualClock


@pytest.fixture()
def api_client(monkeypatch):
    clock = ManualClock()
    engine = AdmissionEngine(AdmissionPolicy(max_capacity=2), clock, autostart=False)
    monkeypatch.setattr(api, "rate_limiter", RateLimiter(1000, 60))
    app.dependency_overrides[get_engine] = lambda: engine
    client = TestClient(app)
    try:
        yield client, engine, clock
    finally:
        app.dependency_overrides.pop(get_engine, None)
        engine.destroy()


def test_submission_allowed_returns_verdict(api_client):
    client, _, _ = api_client

    response = client.post("/api/actors/p1/submissions")

    assert response.status_code == 200
    data = response.json()
    assert data["allowed"] is True
    assert data["remaining"] == 5
    assert data["retryAfter"] is None


def test_submission_denied_sets_retry_after(api_client):
    client, _, clock = api_client
    for _ in range(6):
        assert client.post("/api/actors/p1/submissions").status_code == 200
    clock.advance(10.5)

    response = client.post("/api/actors/p1/submissions")

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "50"
    data = response.json()
    assert data["detail"] == "rate limit exceeded"
    assert data["remaining"] == 0


def test_block_reason_is_exposed(api_client):
    client, _, _ = api_client
    for _ in range(8):
        client.post("/api/actors/p1/submissions")

    response = client.post("/api/actors/p1/submissions")

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "300"
    assert response.json()["detail"].startswith("too many violations")


def test_status_and_reset(api_client):
    client, _, _ = api_client
    client.post("/api/actors/p1/submissions")
    client.post("/api/actors/p1/submissions")

    assert client.get("/api/actors/p1/status").json()["remaining"] == 4

    assert client.delete("/api/actors/p1").status_code == 204
    assert client.get("/api/actors/p1/status").json()["remaining"] == 6


def test_whitespace_identifier_is_rejected(api_client):
    client, _, _ = api_client

    response = client.post("/api/actors/%20/submissions")

    assert response.status_code == 422


def test_join_capacity_and_leave(api_client):
    client, engine, _ = api_client
    assert client.post("/api/sessions/s1/participants/a").json()["remaining"] == 1
    assert client.post("/api/sessions/s1/participants/b").json()["remaining"] == 0

    full = client.post("/api/sessions/s1/participants/c")
    assert full.status_code == 409
    assert full.json()["detail"] == "session has reached maximum capacity"
    assert "Retry-After" not in full.headers

    assert client.post("/api/sessions/s1/participants/a").status_code == 200

    assert client.delete("/api/sessions/s1/participants/a").status_code == 204
    assert client.post("/api/sessions/s1/participants/c").status_code == 200

    assert client.delete("/api/sessions/s1").status_code == 204
    assert engine.session_size("s1") == 0


def test_client_throttle(api_client, monkeypatch):
    client, _, _ = api_client
    monkeypatch.setattr(api, "rate_limiter", RateLimiter(2, 60))

    assert client.get("/healthz").status_code == 200
    assert client.get("/healthz").status_code == 200
    response = client.get("/healthz")

    assert response.status_code == 429
    assert int(response.headers["Retry-After"]) > 0


def test_lifespan_creates_and_destroys_engine(monkeypatch):
    monkeypatch.setattr(api, "rate_limiter", RateLimiter(1000, 60))
    with TestClient(app) as client:
        engine = app.state.engine
        assert engine.sweeping
        assert client.get("/healthz").json() == {"status": "ok", "enforce": True}
    assert not engine.sweeping
