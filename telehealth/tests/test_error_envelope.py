from unittest.mock import patch

from fastapi.testclient import TestClient

from telehealth.app import app


def test_not_found_envelope(client):
    r = client.get("/api/nowhere")
    assert r.status_code == 404
    j = r.json()
    assert j["code"] == "NOT_FOUND"
    assert "trace_id" in j


def test_validation_envelope_has_field_details(client, patient):
    _, headers = patient
    r = client.post("/api/reports", json={"severity": "mild"}, headers=headers)
    assert r.status_code == 400
    j = r.json()
    assert j["code"] == "BAD_REQUEST"
    fields = {d["field"] for d in j["details"]}
    assert {"symptoms", "duration"} <= fields


def test_trace_id_round_trips(client):
    r = client.get("/api/alerts", headers={"x-trace-id": "trace-abc"})
    assert r.status_code == 401
    assert r.headers["x-trace-id"] == "trace-abc"
    assert r.json()["trace_id"] == "trace-abc"


def test_trace_id_generated_when_absent(client):
    r = client.get("/api/health")
    assert r.headers.get("x-trace-id")


def test_unhandled_exception_envelope(patient):
    _, headers = patient
    client = TestClient(app, raise_server_exceptions=False)
    with patch("telehealth.services.alerts.list_alerts", side_effect=ValueError("boom")):
        r = client.get("/api/alerts", headers=headers)
    assert r.status_code == 500
    j = r.json()
    assert j["code"] == "INTERNAL_SERVER_ERROR"
    assert j["message"] == "boom"


def test_unhandled_exception_hidden_in_production(patient, monkeypatch):
    _, headers = patient
    monkeypatch.setenv("APP_ENV", "production")
    client = TestClient(app, raise_server_exceptions=False)
    with patch("telehealth.services.alerts.list_alerts", side_effect=ValueError("secret detail")):
        r = client.get("/api/alerts", headers=headers)
    assert r.status_code == 500
    assert r.json()["message"] == "Something went wrong"


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "OK"
    assert body["timestamp"]
