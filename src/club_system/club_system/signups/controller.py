from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import format_iso
from ..common.http import admin_required, json_body, ok
from ..container import Container
from ..core.enums import SignupStatus
from ..core.exceptions import ValidationError
from .model import NewSignup, Signup


def signup_to_dict(s: Signup) -> dict:
    return {
        "id": s.signup_id,
        "activityId": s.activity_id,
        "studentEmail": s.student_email,
        "studentName": s.student_name,
        "studentId": s.student_id,
        "grade": s.grade,
        "className": s.class_name,
        "status": s.status.value,
        "createdAt": format_iso(s.created_at),
        "updatedAt": format_iso(s.updated_at),
    }


def _activity_id(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("activityId 必须是整数")


def register(app: Flask, container: Container) -> None:
    @app.route("/api/signups", methods=["GET"], endpoint="api_signups_list")
    @admin_required
    def api_signups_list():
        activity_id = request.args.get("activityId")
        status = request.args.get("status")
        try:
            status_filter = SignupStatus(status) if status else None
        except ValueError:
            raise ValidationError(f"无效的报名状态: {status!r}")

        rows = container.signup_service.list_signups(
            activity_id=_activity_id(activity_id) if activity_id else None,
            status=status_filter,
        )
        return ok([signup_to_dict(s) for s in rows])

    @app.route("/api/signups", methods=["POST"], endpoint="api_signups_create")
    def api_signups_create():
        data = json_body()
        candidate = NewSignup(
            student_email=data.get("studentEmail") or "",
            student_name=data.get("studentName") or "",
            student_id=data.get("studentId"),
            grade=data.get("grade"),
            class_name=data.get("className"),
        )
        signup = container.signup_service.create_signup(_activity_id(data.get("activityId")), candidate)
        return ok(signup_to_dict(signup), status=201, message="报名成功，请等待审核")

    @app.route("/api/signups/export", methods=["GET"], endpoint="api_signups_export")
    @admin_required
    def api_signups_export():
        activity_id = _activity_id(request.args.get("activityId"))
        csv_text = container.signup_service.export_csv(activity_id)
        return app.response_class(
            csv_text.encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename=signups_{activity_id}.csv"},
        )

    @app.route("/api/signups/<int:signup_id>", methods=["GET"], endpoint="api_signups_detail")
    @admin_required
    def api_signups_detail(signup_id: int):
        return ok(signup_to_dict(container.signup_service.get(signup_id)))

    @app.route("/api/signups/<int:signup_id>", methods=["PUT"], endpoint="api_signups_update")
    @admin_required
    def api_signups_update(signup_id: int):
        status = json_body().get("status")
        if not status:
            raise ValidationError("status 不能为空")
        signup = container.signup_service.transition(signup_id, status)
        return ok(signup_to_dict(signup))

    @app.route("/api/signups/<int:signup_id>", methods=["DELETE"], endpoint="api_signups_delete")
    @admin_required
    def api_signups_delete(signup_id: int):
        container.signup_service.delete(signup_id)
        return ok(message="已删除")

    @app.route("/api/signups/<int:signup_id>/reject", methods=["POST"], endpoint="api_signups_reject")
    @admin_required
    def api_signups_reject(signup_id: int):
        container.signup_service.reject(signup_id)
        return ok(message="已拒绝")
