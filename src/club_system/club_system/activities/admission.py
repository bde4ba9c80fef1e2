"""Admission gate: may a candidate sign up for an activity right now?

Pure and read-only. Checks run in priority order deadline -> capacity -> grade,
so a closed activity is always reported as closed whatever its capacity.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AdmissionStatus, RejectionReason
from .model import Activity


@dataclass(frozen=True)
class AdmissionResult:
    admitted: bool
    reason: Optional[RejectionReason] = None

    @classmethod
    def admit(cls) -> "AdmissionResult":
        return cls(admitted=True)

    @classmethod
    def reject(cls, reason: RejectionReason) -> "AdmissionResult":
        return cls(admitted=False, reason=reason)


def is_deadline_passed(activity: Activity, now: datetime) -> bool:
    return activity.admission_status(now) == AdmissionStatus.CLOSED


def is_capacity_full(activity: Activity) -> bool:
    if activity.max_participants <= 0:
        return False
    return activity.current_participants >= activity.max_participants


def is_grade_allowed(activity: Activity, candidate_grade: Optional[str]) -> bool:
    if not activity.allowed_grades:
        return True
    if candidate_grade is None:
        return False
    return candidate_grade.strip() in activity.allowed_grades


def check_admission(activity: Activity, now: datetime, candidate_grade: Optional[str] = None) -> AdmissionResult:
    if is_deadline_passed(activity, now):
        return AdmissionResult.reject(RejectionReason.DEADLINE_PASSED)
    if is_capacity_full(activity):
        return AdmissionResult.reject(RejectionReason.CAPACITY_FULL)
    if not is_grade_allowed(activity, candidate_grade):
        return AdmissionResult.reject(RejectionReason.GRADE_NOT_ALLOWED)
    return AdmissionResult.admit()
