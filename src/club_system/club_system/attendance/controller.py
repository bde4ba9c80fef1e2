from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_datetime
from ..common.http import admin_required, json_body, ok, require_admin
from ..container import Container
from ..core.enums import SessionId
from ..core.exceptions import ValidationError
from .model import record_to_dict
from .roster import SessionRoster


def register(app: Flask, container: Container) -> None:
    def _roster(week_number: int, session_id: int) -> SessionRoster:
        # Snapshot once per request; students added later are not picked up.
        return SessionRoster.of(week_number, session_id, container.roster_repo.list_student_ids())

    @app.route("/api/attendance", methods=["GET"], endpoint="api_attendance_status")
    def api_attendance_status():
        action = request.args.get("action")
        if action == "debug-status":
            return ok(container.attendance_config_service.debug_status())
        if action:
            raise ValidationError(f"未知的操作: {action}")
        return ok(container.attendance_config_service.current_status())

    @app.route("/api/attendance", methods=["POST"], endpoint="api_attendance_action")
    def api_attendance_action():
        data = json_body()
        action = request.args.get("action") or data.get("action")

        if action == "update-config":
            require_admin()
            patch = data.get("config")
            if patch is None:
                patch = {k: v for k, v in data.items() if k != "action"}
            config = container.attendance_config_service.update_config(patch)
            return ok(config.to_dict(), message="点名配置已更新")

        if action == "toggle-debug":
            require_admin()
            service = container.attendance_config_service
            if "enabled" in data:
                if not isinstance(data["enabled"], bool):
                    raise ValidationError("enabled 必须是布尔值")
                config = service.set_debug_mode(data["enabled"])
            else:
                config = service.toggle_debug_mode()
            return ok(config.to_dict(), message="调试模式已开启" if config.debug_mode else "调试模式已关闭")

        if action:
            raise ValidationError(f"未知的操作: {action}")

        record = container.attendance_service.check_in(data.get("studentId") or "")
        return ok(record_to_dict(record), message="点名成功")

    @app.route(
        "/api/attendance/<student_id>/<int:week_number>/<int:session_id>",
        methods=["PUT"],
        endpoint="api_attendance_set_status",
    )
    @admin_required
    def api_attendance_set_status(student_id: str, week_number: int, session_id: int):
        data = json_body()
        status = data.get("status")
        if not status:
            raise ValidationError("status 不能为空")
        record = container.attendance_service.set_status(
            student_id,
            week_number,
            session_id,
            status,
            check_in_time=parse_iso_datetime(data.get("checkInTime")),
        )
        return ok(record_to_dict(record))

    @app.route(
        "/api/attendance/sessions/<int:week_number>/<int:session_id>",
        methods=["GET"],
        endpoint="api_attendance_session_view",
    )
    @admin_required
    def api_attendance_session_view(week_number: int, session_id: int):
        view = container.attendance_service.session_view(_roster(week_number, _session(session_id)))
        return ok(view.to_dict())

    @app.route(
        "/api/attendance/sessions/<int:week_number>/<int:session_id>/mark-all-present",
        methods=["POST"],
        endpoint="api_attendance_mark_all_present",
    )
    @admin_required
    def api_attendance_mark_all_present(week_number: int, session_id: int):
        count = container.attendance_service.bulk_mark_all_present(_roster(week_number, _session(session_id)))
        return ok({"updated": count}, message=f"已将 {count} 人标记为出勤")

    @app.route(
        "/api/attendance/sessions/<int:week_number>/<int:session_id>/mark-absent",
        methods=["POST"],
        endpoint="api_attendance_mark_absent",
    )
    @admin_required
    def api_attendance_mark_absent(week_number: int, session_id: int):
        count = container.attendance_service.bulk_mark_pending_as_absent(_roster(week_number, _session(session_id)))
        return ok({"updated": count}, message=f"已将 {count} 名未点名学生标记为缺勤")

    @app.route("/api/attendance/weeks/<int:week_number>", methods=["GET"], endpoint="api_attendance_week_summary")
    @admin_required
    def api_attendance_week_summary(week_number: int):
        summary = container.attendance_service.week_summary(week_number)
        return ok({str(int(session)): s.to_dict() for session, s in summary.items()})

    @app.route("/api/attendance/students/<student_id>", methods=["GET"], endpoint="api_attendance_student_history")
    @admin_required
    def api_attendance_student_history(student_id: str):
        rows = container.attendance_service.student_history(student_id)
        return ok([record_to_dict(r) for r in rows])


def _session(session_id: int) -> int:
    if session_id not in (SessionId.FIRST, SessionId.SECOND):
        raise ValidationError("节次必须是 1 或 2")
    return session_id
