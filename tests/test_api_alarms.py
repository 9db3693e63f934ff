from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from app.main import app
from tests.conftest import NOW
from tests.fakes import fired_kinds

BASE = "/api/v1"


@pytest.fixture
def engine(make_engine):
    engine = make_engine()
    app.state.engine = engine
    yield engine
    app.state.engine = None


@pytest.fixture
def client():
    return TestClient(app)


def schedule_body(**overrides):
    body = {
        "stepName": "Shape",
        "startTime": (NOW + timedelta(minutes=30)).isoformat(),
        "durationMinutes": 45,
    }
    body.update(overrides)
    return body


def test_schedule_is_accepted_and_applied_after_debounce(client, engine, clock):
    response = client.post(f"{BASE}/bakes/b1/steps/s1/alarms", json=schedule_body())

    assert response.status_code == 202
    assert response.json() == {"bakeId": "b1", "stepId": "s1", "accepted": True, "debounceMs": 500}
    assert engine.get_scheduled_alarms() == []

    clock.advance(ms=500)
    assert engine.get_scheduled_alarms() == ["s1"]


def test_schedule_overnight_request(client, engine, clock):
    body = schedule_body(
        isOvernight=True,
        bedtime=(NOW + timedelta(hours=2)).isoformat(),
        wakeup=(NOW + timedelta(hours=10)).isoformat(),
    )

    assert client.post(f"{BASE}/bakes/b1/steps/s1/alarms", json=body).status_code == 202
    clock.advance(ms=500)

    assert {r.type.value for r in engine.scheduler.records} == {"bedtime", "wakeup"}


def test_naive_start_time_is_rejected(client, engine):
    response = client.post(
        f"{BASE}/bakes/b1/steps/s1/alarms",
        json=schedule_body(startTime="2026-10-19T12:30:00"),
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_overnight_and_adaptive_together_are_rejected(client, engine):
    response = client.post(
        f"{BASE}/bakes/b1/steps/s1/alarms",
        json=schedule_body(isOvernight=True, isAdaptive=True),
    )

    assert response.status_code == 422


def test_list_alarms_shows_active_records(client, engine, clock):
    client.post(f"{BASE}/bakes/b1/steps/s1/alarms", json=schedule_body())
    clock.advance(ms=500)

    response = client.get(f"{BASE}/alarms")

    assert response.status_code == 200
    data = response.json()
    assert data["scheduledSteps"] == ["s1"]
    [notification] = data["activeNotifications"]
    assert notification["id"] == "s1:start"
    assert notification["bakeId"] == "b1"
    assert notification["type"] == "start"
    assert data["dndActive"] is False


def test_clear_alarms(client, engine, clock, event_bus):
    client.post(f"{BASE}/bakes/b1/steps/s1/alarms", json=schedule_body())
    clock.advance(ms=500)

    response = client.delete(f"{BASE}/bakes/b1/steps/s1/alarms")

    assert response.status_code == 204
    assert engine.get_scheduled_alarms() == []
    clock.advance(hours=1)
    assert fired_kinds(event_bus) == []


def test_acknowledge_step(client, engine, clock):
    client.post(f"{BASE}/bakes/b1/steps/s1/alarms", json=schedule_body())
    clock.advance(ms=500)

    response = client.post(f"{BASE}/bakes/b1/steps/s1/alarms/acknowledge")

    assert response.status_code == 200
    assert response.json() == {"stepId": "s1", "acknowledged": True}


def test_foreground_signal(client, engine):
    response = client.post(f"{BASE}/alarms/foreground")

    assert response.status_code == 202
    assert response.json() == {"status": "checking"}


def test_recent_events_can_be_filtered(client, engine, clock):
    client.post(f"{BASE}/bakes/b1/steps/s1/alarms", json=schedule_body())
    clock.advance(minutes=31)

    response = client.get(f"{BASE}/alarms/events", params={"eventType": "alarm_fired"})

    assert response.status_code == 200
    events = response.json()["events"]
    assert [e["payload"]["type"] for e in events] == ["heads_up", "start"]
    assert all(e["eventType"] == "alarm_fired" for e in events)


def test_engine_not_started_returns_503(client):
    app.state.engine = None

    response = client.get(f"{BASE}/alarms")

    assert response.status_code == 503
    assert response.json()["error"]["code"] == "ENGINE_NOT_READY"


def test_readiness_follows_engine_monitors(client, engine):
    assert client.get(f"{BASE}/health/ready").status_code == 503

    engine.start_monitors()
    response = client.get(f"{BASE}/health/ready")

    assert response.status_code == 200
    assert response.json()["engine"]["monitors_running"] is True
    engine.shutdown()


def test_liveness_and_version_headers(client):
    response = client.get(f"{BASE}/health/live")

    assert response.status_code == 200
    assert response.json() == {"status": "alive"}
    assert response.headers["X-API-Version"] == "v1"
    assert "X-Request-ID" in response.headers
