from __future__ import annotations

from fastapi.testclient import TestClient

from app.main import app


client = TestClient(app)


def test_preserves_incoming_request_id_header():
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing():
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID")
    assert resp.headers.get("X-Request-Duration-ms") is not None


def test_request_id_is_echoed_on_throttled_responses(monkeypatch):
    monkeypatch.setenv("SERVER_MAX_REQUESTS", "1")
    body = {"role": "QA", "interviewType": "other"}
    headers = {"X-Request-ID": "throttled-1", "X-Forwarded-For": "192.0.2.9"}

    # Invalid body still consumes budget: the limiter runs before parsing
    client.post("/api/generate-questions", json={**body, "interviewType": "bogus"}, headers=headers)
    resp = client.post("/api/generate-questions", json=body, headers=headers)

    assert resp.status_code == 429
    assert resp.headers.get("X-Request-ID") == "throttled-1"
