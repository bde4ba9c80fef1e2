from __future__ import annotations

import pytest

from src.club_system.club_system.common.clock import FixedClock
from src.club_system.club_system.container import wire
from src.club_system.club_system.main import create_app


@pytest.fixture
def app(monkeypatch, activities, signups, attendance_repo, configs, roster_repo, sink, fixed_now):
    monkeypatch.setenv("APP_ENV", "testing")
    container = wire(
        activities_repo=activities,
        signups_repo=signups,
        attendance_repo=attendance_repo,
        attendance_config_repo=configs,
        roster_repo=roster_repo,
        notification_sink=sink,
        clock=FixedClock(fixed_now),
    )
    return create_app(container)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin(client):
    with client.session_transaction() as sess:
        sess["role"] = "admin"
    return client


def _signup(client, email="li.lei@school.cn", activity_id=2):
    return client.post(
        "/api/signups",
        json={"activityId": activity_id, "studentEmail": email, "studentName": "李雷", "studentId": "S001"},
    )


def test_activity_detail_exposes_raw_fields(client):
    resp = client.get("/api/activities/1")

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["signupDeadline"] == "2026-01-10T23:59:00"
    assert data["maxParticipants"] == 1
    assert data["currentParticipants"] == 0
    assert data["admissionStatus"] == "open"


def test_unknown_activity_is_404(client):
    assert client.get("/api/activities/99").status_code == 404


def test_signup_create_and_duplicate(client):
    first = _signup(client)
    assert first.status_code == 201
    assert first.get_json()["data"]["status"] == "pending"

    again = _signup(client)
    assert again.status_code == 409
    assert again.get_json()["reason"] == "already_signed_up"


def test_signup_validation_error(client):
    resp = client.post("/api/signups", json={"activityId": 2, "studentEmail": "bad", "studentName": "李雷"})

    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_admin_endpoints_require_admin_role(client):
    signup_id = _signup(client).get_json()["data"]["id"]

    assert client.put(f"/api/signups/{signup_id}", json={"status": "confirmed"}).status_code == 403
    assert client.get("/api/signups").status_code == 403
    assert client.post("/api/attendance?action=update-config", json={"dayOfWeek": 5}).status_code == 403
    assert client.post("/api/attendance/sessions/1/1/mark-absent").status_code == 403


def test_confirm_then_delete_requires_revoke(admin, activities):
    signup_id = _signup(admin).get_json()["data"]["id"]

    resp = admin.put(f"/api/signups/{signup_id}", json={"status": "confirmed"})
    assert resp.status_code == 200
    assert activities.get_by_id(2).current_participants == 1

    blocked = admin.delete(f"/api/signups/{signup_id}")
    assert blocked.status_code == 409
    assert blocked.get_json()["reason"] == "invalid_transition"

    assert admin.put(f"/api/signups/{signup_id}", json={"status": "pending"}).status_code == 200
    assert admin.delete(f"/api/signups/{signup_id}").status_code == 200
    assert activities.get_by_id(2).current_participants == 0


def test_capacity_full_on_second_confirmation(admin):
    a = _signup(admin, "a@school.cn", activity_id=1).get_json()["data"]["id"]
    b = _signup(admin, "b@school.cn", activity_id=1).get_json()["data"]["id"]

    assert admin.put(f"/api/signups/{a}", json={"status": "confirmed"}).status_code == 200
    resp = admin.put(f"/api/signups/{b}", json={"status": "confirmed"})

    assert resp.status_code == 409
    assert resp.get_json()["reason"] == "capacity_full"


def test_export_csv(admin):
    _signup(admin)

    resp = admin.get("/api/signups/export?activityId=2")

    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    text = resp.data.decode("utf-8-sig")
    assert text.splitlines()[0].startswith("姓名,邮箱")


def test_attendance_status_and_check_in(client):
    status = client.get("/api/attendance").get_json()["data"]
    assert status["isAttendanceOpen"] is True
    assert status["session"] == 1

    resp = client.post("/api/attendance", json={"studentId": "S001"})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["status"] == "present"

    again = client.post("/api/attendance", json={"studentId": "S001"})
    assert again.status_code == 409
    assert again.get_json()["reason"] == "already_checked_in"


def test_config_update_and_debug_toggle(admin):
    resp = admin.post("/api/attendance", json={"action": "update-config", "config": {"dayOfWeek": 5}})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["dayOfWeek"] == 5

    closed = admin.post("/api/attendance", json={"studentId": "S002"})
    assert closed.status_code == 409
    assert closed.get_json()["reason"] == "wrong_day"

    toggled = admin.post("/api/attendance", json={"action": "toggle-debug", "enabled": True})
    assert toggled.get_json()["data"]["debugMode"] is True
    assert admin.get("/api/attendance?action=debug-status").get_json()["data"]["debugMode"] is True
    assert admin.post("/api/attendance", json={"studentId": "S002"}).status_code == 200


def test_bad_config_is_400(admin):
    resp = admin.post("/api/attendance", json={"action": "update-config", "config": {"dayOfWeek": 9}})

    assert resp.status_code == 400


def test_admin_marking_and_session_view(admin):
    resp = admin.put("/api/attendance/S001/1/1", json={"status": "late", "checkInTime": "2026-01-06T15:24:00Z"})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["checkInTime"] == "2026-01-06T15:24:00"

    marked = admin.post("/api/attendance/sessions/1/1/mark-absent")
    assert marked.get_json()["data"]["updated"] == 2

    view = admin.get("/api/attendance/sessions/1/1").get_json()["data"]
    assert view["stats"]["late"] == 1
    assert view["stats"]["absent"] == 2
    assert view["stats"]["total"] == 3

    present = admin.post("/api/attendance/sessions/1/1/mark-all-present")
    assert present.get_json()["data"]["updated"] == 3


def test_bad_session_and_unknown_action(admin):
    assert admin.get("/api/attendance/sessions/1/3").status_code == 400
    assert admin.get("/api/attendance?action=launch").status_code == 400
