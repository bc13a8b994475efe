from __future__ import annotations

import math
from datetime import timedelta

import pytest

from src.session_admission.session_admission.common.datetime_utils import now_utc, to_iso
from src.session_admission.session_admission.container import build_services
from src.session_admission.session_admission.main import create_app


@pytest.fixture
def container(sessions_repo, ledger):
    return build_services(sessions_repo, ledger, token_ttl_seconds=120)


@pytest.fixture
def client(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container)
    return app.test_client()


def _login(client, user_id="prof-1"):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id


def _create(client, **overrides):
    start = now_utc() - timedelta(minutes=1)
    body = {
        "courseName": "Operating Systems",
        "centerLat": 12.9716,
        "centerLng": 77.5946,
        "startTime": to_iso(start),
        "endTime": to_iso(start + timedelta(hours=1)),
    }
    body.update(overrides)
    return client.post("/api/sessions", json=body)


def _scan(client, token, *, student_id="CS-001", meters=10, **extra):
    body = {
        "token": token,
        "studentId": student_id,
        "studentName": "Asha",
        "latitude": 12.9716 + math.degrees(meters / 6_371_000),
        "longitude": 77.5946,
    }
    body.update(extra)
    return client.post("/api/attendance", json=body)


def test_owner_endpoints_require_login(client):
    assert client.get("/api/sessions").status_code == 401
    assert _create(client).status_code == 401


def test_create_session_returns_live_token(client):
    _login(client)

    resp = _create(client)
    data = resp.get_json()["data"]

    assert resp.status_code == 201
    assert data["radius"] == 50
    assert data["lateThreshold"] == 15
    assert data["isActive"] is True
    assert data["liveToken"]["token"]


def test_create_session_validation_error(client):
    _login(client)

    resp = _create(client, radius=-5)

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_error"


def test_scan_flow_present_then_duplicate(client):
    _login(client)
    created = _create(client).get_json()["data"]
    token = created["liveToken"]["token"]

    first = _scan(client, token, deviceFingerprint="fp-1", sessionId=created["id"])
    second = _scan(client, token)

    assert first.status_code == 201
    assert first.get_json()["data"]["status"] == "PRESENT"
    assert first.get_json()["data"]["distance"] == pytest.approx(10, abs=0.01)
    assert second.status_code == 409
    assert second.get_json()["prior_status"] == "PRESENT"


def test_out_of_range_scan_is_recorded_as_invalid(client):
    _login(client)
    token = _create(client).get_json()["data"]["liveToken"]["token"]

    resp = _scan(client, token, meters=200)
    body = resp.get_json()

    assert resp.status_code == 201
    assert body["success"] is False
    assert body["data"]["status"] == "INVALID"


def test_unknown_token_is_gone(client):
    resp = _scan(client, "forged-token")

    assert resp.status_code == 410
    assert resp.get_json()["error"] == "expired_or_invalid_token"


def test_refresh_token_kills_previous_one(client):
    _login(client)
    created = _create(client).get_json()["data"]
    old = created["liveToken"]["token"]

    refreshed = client.post(f"/api/sessions/{created['id']}/refresh-token").get_json()["data"]

    assert refreshed["token"] != old
    assert _scan(client, old).status_code == 410
    assert _scan(client, refreshed["token"]).status_code == 201


def test_live_token_and_qr(client):
    _login(client)
    created = _create(client).get_json()["data"]

    token = client.get(f"/api/sessions/{created['id']}/token").get_json()["data"]
    qr = client.get(f"/api/sessions/{created['id']}/qr").get_json()["data"]

    assert token["token"] == created["liveToken"]["token"]
    assert qr["qrCode"].startswith("data:image/png;base64,")
    assert qr["qrData"].startswith("http://testserver/attend?session=")


def test_deactivated_session_rejects_scans(client):
    _login(client)
    created = _create(client).get_json()["data"]

    resp = client.put(f"/api/sessions/{created['id']}", json={"isActive": False, "radius": 75})

    assert resp.status_code == 200
    assert resp.get_json()["data"]["isActive"] is False
    assert resp.get_json()["data"]["radius"] == 75
    assert _scan(client, created["liveToken"]["token"]).status_code == 410


def test_non_owner_gets_generic_denial(client):
    _login(client)
    created = _create(client).get_json()["data"]
    _login(client, "prof-2")

    foreign = client.post(f"/api/sessions/{created['id']}/refresh-token")
    missing = client.post("/api/sessions/missing/refresh-token")

    assert foreign.status_code == missing.status_code == 403
    assert foreign.get_json()["message"] == missing.get_json()["message"]


def test_session_attendance_list_csv_and_device_audit(client):
    _login(client)
    created = _create(client).get_json()["data"]
    token = created["liveToken"]["token"]
    _scan(client, token, student_id="CS-001", deviceFingerprint="fp-1")
    _scan(client, token, student_id="CS-002", deviceFingerprint="fp-1")

    listing = client.get(f"/api/sessions/{created['id']}/attendance").get_json()
    csv_resp = client.get(f"/api/sessions/{created['id']}/attendance.csv")
    audit = client.get(f"/api/sessions/{created['id']}/shared-devices").get_json()

    assert listing["count"] == 2
    assert csv_resp.mimetype == "text/csv"
    assert csv_resp.data.decode("utf-8-sig").splitlines()[0].startswith("attendance_id,session_id,student_id")
    assert audit["data"] == {"fp-1": ["CS-001", "CS-002"]}


def test_student_history_with_stats(client):
    _login(client)
    token = _create(client).get_json()["data"]["liveToken"]["token"]
    other = _create(client).get_json()["data"]["liveToken"]["token"]
    _scan(client, token, student_id="CS-009")
    _scan(client, other, student_id="CS-009", meters=300)

    body = client.get("/api/students/CS-009/attendance").get_json()

    assert body["stats"] == {"total": 2, "present": 1, "late": 0, "invalid": 1}
    assert len(body["data"]) == 2


def test_delete_session(client):
    _login(client)
    created = _create(client).get_json()["data"]

    assert client.delete(f"/api/sessions/{created['id']}").status_code == 200
    assert client.get(f"/api/sessions/{created['id']}").status_code == 403
    assert client.get("/api/sessions").get_json()["count"] == 0


def test_update_rejects_non_string_description_without_partial_write(client):
    _login(client)
    created = _create(client).get_json()["data"]

    resp = client.put(f"/api/sessions/{created['id']}", json={"isActive": False, "description": 42})
    current = client.get(f"/api/sessions/{created['id']}").get_json()["data"]

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_error"
    assert current["isActive"] is True


def test_update_unexpected_failure_is_json_500(client, container):
    _login(client)
    created = _create(client).get_json()["data"]

    def broken(*args, **kwargs):
        raise RuntimeError("boom")

    container.session_registry.update_window = broken

    resp = client.put(f"/api/sessions/{created['id']}", json={"radius": 60})

    assert resp.status_code == 500
    assert resp.get_json()["error"] == "server_error"


def test_over_long_student_id_is_rejected_not_retried(client):
    _login(client)
    token = _create(client).get_json()["data"]["liveToken"]["token"]

    resp = _scan(client, token, student_id="S" * 65)

    assert resp.status_code == 400
    assert resp.get_json()["retryable"] is False
