from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from ..common.validators import optional_text, require_email, require_non_empty
from ..core.enums import SignupStatus


@dataclass(frozen=True)
class Signup:
    """报名记录. holds_seat: this signup currently counts toward current_participants."""

    signup_id: int
    activity_id: int
    student_email: str
    student_name: str
    student_id: Optional[str]
    grade: Optional[str]
    class_name: Optional[str]
    status: SignupStatus
    created_at: datetime
    updated_at: datetime
    holds_seat: bool = False

    def with_status(self, status: SignupStatus, *, holds_seat: bool, updated_at: datetime) -> "Signup":
        return replace(self, status=status, holds_seat=holds_seat, updated_at=updated_at)


@dataclass(frozen=True)
class NewSignup:
    """Candidate data submitted with a signup request."""

    student_email: str
    student_name: str
    student_id: Optional[str] = None
    grade: Optional[str] = None
    class_name: Optional[str] = None

    def validated(self) -> "NewSignup":
        return NewSignup(
            student_email=require_email(self.student_email),
            student_name=require_non_empty(self.student_name, "姓名"),
            student_id=optional_text(self.student_id),
            grade=optional_text(self.grade),
            class_name=optional_text(self.class_name),
        )


@dataclass(frozen=True)
class SignupExportRow:
    """Read-model for the signup export (name, email, activity, timestamp, status)."""

    student_name: str
    student_email: str
    student_id: str
    grade: str
    class_name: str
    activity_title: str
    created_at: datetime
    status: SignupStatus
