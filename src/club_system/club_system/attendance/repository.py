from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus, SessionId
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get(self, *, student_id: str, week_number: int, session_id: SessionId) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_or_create(self, *, student_id: str, week_number: int, session_id: SessionId) -> AttendanceRecord:
        """First touch creates the record as pending (insert-if-absent)."""

        raise NotImplementedError

    def save_status(
        self,
        *,
        student_id: str,
        week_number: int,
        session_id: SessionId,
        status: AttendanceStatus,
        check_in_time: Optional[datetime],
        note: Optional[str] = None,
    ) -> AttendanceRecord:
        """Upsert status, check-in time and note for one key; the note is replaced, not merged."""

        raise NotImplementedError

    def mark_present_keep_time(
        self,
        *,
        student_id: str,
        week_number: int,
        session_id: SessionId,
        check_in_time: datetime,
    ) -> AttendanceRecord:
        """Upsert as present; an existing check_in_time is kept."""

        raise NotImplementedError

    def mark_present_if_pending(
        self,
        *,
        student_id: str,
        week_number: int,
        session_id: SessionId,
        check_in_time: datetime,
        note: Optional[str] = None,
    ) -> Optional[AttendanceRecord]:
        """Set present only when missing or pending. Returns the record, or None if already decided."""

        raise NotImplementedError

    def mark_absent_if_pending(self, *, student_id: str, week_number: int, session_id: SessionId) -> bool:
        """Set absent only when missing or pending. Returns True if a write happened."""

        raise NotImplementedError

    def list_for_session(self, *, week_number: int, session_id: SessionId) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_week(self, *, week_number: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_student(self, *, student_id: str, limit: int = 100) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
