from __future__ import annotations

from typing import Optional

from .enums import IneligibilityReason, RejectionReason


REJECTION_MESSAGES: dict[RejectionReason, str] = {
    RejectionReason.DEADLINE_PASSED: "报名已截止",
    RejectionReason.CAPACITY_FULL: "名额已满",
    RejectionReason.GRADE_NOT_ALLOWED: "你的年级不在该活动的报名范围内",
    RejectionReason.ALREADY_SIGNED_UP: "你已经报名过这个活动了",
    RejectionReason.WRITE_CONFLICT: "数据已被其他操作修改，请刷新后重试",
    RejectionReason.INVALID_TRANSITION: "当前状态不允许该操作",
    RejectionReason.ALREADY_CHECKED_IN: "本时段已完成点名",
}

INELIGIBILITY_MESSAGES: dict[IneligibilityReason, str] = {
    IneligibilityReason.BEFORE_TERM_START: "学期尚未开始",
    IneligibilityReason.WRONG_DAY: "今天不是点名日",
    IneligibilityReason.OUTSIDE_WINDOW: "当前不在点名时间",
}


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when a caller lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when an activity, signup or record does not exist."""


class RejectionError(DomainError):
    """A user-facing refusal carrying a machine-readable reason."""

    def __init__(self, reason: RejectionReason, message: Optional[str] = None):
        self.reason = reason
        super().__init__(message or REJECTION_MESSAGES.get(reason, reason.value))


class AdmissionRejectedError(RejectionError):
    """The admission gate refused a new signup (deadline, capacity or grade)."""


class ConflictError(RejectionError):
    """Duplicate signup, lost capacity race, or a state change that lost a race."""


class AttendanceClosedError(DomainError):
    """Self check-in attempted outside the attendance window."""

    def __init__(self, reason: IneligibilityReason, message: Optional[str] = None):
        self.reason = reason
        super().__init__(message or INELIGIBILITY_MESSAGES[reason])


class NotificationDeliveryError(DomainError):
    """Raised by notification sinks; always recovered by the caller."""


class DuplicateSignupError(Exception):
    """Store-level unique constraint hit on (activity_id, active email)."""
