from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import format_iso
from ..core.enums import AttendanceStatus, IneligibilityReason, SessionId


@dataclass(frozen=True)
class AttendanceRecord:
    """One student's status for one session of one week."""

    student_id: str
    week_number: int
    session_id: SessionId
    status: AttendanceStatus = AttendanceStatus.PENDING
    check_in_time: Optional[datetime] = None
    note: Optional[str] = None

    @property
    def key(self) -> tuple[str, int, SessionId]:
        return (self.student_id, self.week_number, self.session_id)

    def with_status(
        self,
        status: AttendanceStatus,
        *,
        check_in_time: Optional[datetime],
        note: Optional[str] = None,
    ) -> "AttendanceRecord":
        return replace(self, status=status, check_in_time=check_in_time, note=note)


@dataclass(frozen=True)
class Eligibility:
    """Verdict of the attendance window for one instant."""

    eligible: bool
    week_number: int
    session_id: Optional[SessionId]
    reason: Optional[IneligibilityReason] = None
    window_start: Optional[datetime] = None
    window_end: Optional[datetime] = None
    minutes_remaining: Optional[int] = None
    debug: bool = False


@dataclass(frozen=True)
class AttendanceStats:
    present: int = 0
    late: int = 0
    absent: int = 0
    pending: int = 0

    @property
    def total(self) -> int:
        return self.present + self.late + self.absent + self.pending

    @property
    def attendance_rate(self) -> float:
        if not self.total:
            return 0.0
        return (self.present + self.late) / self.total

    def to_dict(self) -> dict:
        return {
            "present": self.present,
            "late": self.late,
            "absent": self.absent,
            "pending": self.pending,
            "total": self.total,
            "attendanceRate": round(self.attendance_rate, 4),
        }


@dataclass(frozen=True)
class SessionView:
    """Every roster student's record for one session, plus the counts."""

    week_number: int
    session_id: SessionId
    records: tuple[AttendanceRecord, ...]
    stats: AttendanceStats

    def to_dict(self) -> dict:
        return {
            "weekNumber": self.week_number,
            "sessionId": int(self.session_id),
            "records": [record_to_dict(r) for r in self.records],
            "stats": self.stats.to_dict(),
        }


def record_to_dict(r: AttendanceRecord) -> dict:
    return {
        "studentId": r.student_id,
        "weekNumber": r.week_number,
        "sessionId": int(r.session_id),
        "status": r.status.value,
        "checkInTime": format_iso(r.check_in_time),
        "note": r.note,
    }
