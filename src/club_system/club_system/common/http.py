"""JSON helpers shared by the Flask controllers."""

from __future__ import annotations

from functools import wraps

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import (
    AttendanceClosedError,
    AuthorizationError,
    DomainError,
    NotFoundError,
    RejectionError,
    ValidationError,
)
from .logging import get_logger

logger = get_logger(__name__)


def require_admin() -> None:
    """Only sessions already carrying role=admin pass (login itself lives elsewhere)."""
    if session.get("role") != Role.ADMIN.value:
        raise AuthorizationError("需要管理员权限")


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        require_admin()
        return view(*args, **kwargs)

    return wrapper


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("请求体必须是 JSON 对象")
    return data


def ok(data=None, *, status: int = 200, **extra):
    payload = {"success": True}
    if data is not None:
        payload["data"] = data
    payload.update(extra)
    return jsonify(payload), status


def error_response(exc: Exception):
    if isinstance(exc, ValidationError):
        return jsonify({"success": False, "message": str(exc)}), 400
    if isinstance(exc, AuthorizationError):
        return jsonify({"success": False, "message": str(exc)}), 403
    if isinstance(exc, NotFoundError):
        return jsonify({"success": False, "message": str(exc)}), 404
    if isinstance(exc, (RejectionError, AttendanceClosedError)):
        return jsonify({"success": False, "reason": exc.reason.value, "message": str(exc)}), 409
    if isinstance(exc, DomainError):
        return jsonify({"success": False, "message": str(exc)}), 400

    logger.exception("http.unhandled_error", path=request.path, method=request.method)
    return jsonify({"success": False, "message": "服务器内部错误"}), 500


def register_error_handlers(app: Flask) -> None:
    def unexpected(exc: Exception):
        if isinstance(exc, HTTPException):
            return exc
        return error_response(exc)

    app.register_error_handler(DomainError, error_response)
    app.register_error_handler(Exception, unexpected)
