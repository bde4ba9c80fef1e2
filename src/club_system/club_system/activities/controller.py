from __future__ import annotations

from datetime import datetime

from flask import Flask, request

from ..common.datetime_utils import format_iso
from ..common.http import ok
from ..container import Container
from .model import Activity


def activity_to_dict(activity: Activity, now: datetime) -> dict:
    # Raw fields go out verbatim so clients can recompute admissionStatus themselves.
    return {
        "id": activity.activity_id,
        "title": activity.title,
        "signupDeadline": format_iso(activity.signup_deadline),
        "maxParticipants": activity.max_participants,
        "currentParticipants": activity.current_participants,
        "allowedGrades": sorted(activity.allowed_grades),
        "admissionStatus": activity.admission_status(now).value,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/activities/<int:activity_id>", methods=["GET"], endpoint="api_activity_detail")
    def api_activity_detail(activity_id: int):
        service = container.activity_service
        return ok(activity_to_dict(service.get(activity_id), service.now()))

    @app.route("/api/activities/<int:activity_id>/admission", methods=["GET"], endpoint="api_activity_admission")
    def api_activity_admission(activity_id: int):
        result = container.activity_service.check_admission(activity_id, candidate_grade=request.args.get("grade"))
        return ok({"admitted": result.admitted, "reason": result.reason.value if result.reason else None})
