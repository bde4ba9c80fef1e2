from __future__ import annotations

from enum import Enum, IntEnum


class Role(str, Enum):
    """Session role checked by the admin-only endpoints."""

    ADMIN = "admin"


class SignupStatus(str, Enum):
    """报名状态 (signup lifecycle)."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    ATTENDED = "attended"
    CANCELLED = "cancelled"


class AttendanceStatus(str, Enum):
    """点名状态 stored per (student, week, session)."""

    PENDING = "pending"
    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"


class SessionId(IntEnum):
    FIRST = 1
    SECOND = 2


class AdmissionStatus(str, Enum):
    """Derived from the deadline at read time, never persisted."""

    OPEN = "open"
    CLOSED = "closed"


class RejectionReason(str, Enum):
    DEADLINE_PASSED = "deadline_passed"
    CAPACITY_FULL = "capacity_full"
    GRADE_NOT_ALLOWED = "grade_not_allowed"
    ALREADY_SIGNED_UP = "already_signed_up"
    WRITE_CONFLICT = "write_conflict"
    INVALID_TRANSITION = "invalid_transition"
    ALREADY_CHECKED_IN = "already_checked_in"


class IneligibilityReason(str, Enum):
    BEFORE_TERM_START = "before_term_start"
    WRONG_DAY = "wrong_day"
    OUTSIDE_WINDOW = "outside_window"


class NotificationType(str, Enum):
    APPROVAL = "approval"
    NOTICE = "notice"
    ACTIVITY = "activity"
    ANNOUNCEMENT = "announcement"
