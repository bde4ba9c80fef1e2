from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Optional, Sequence

from ..common.clock import Clock, SystemClock
from ..common.logging import get_logger
from ..common.validators import require_int_range, require_non_empty
from ..core.constants import DEBUG_CHECKIN_NOTE
from ..core.enums import AttendanceStatus, RejectionReason, SessionId
from ..core.exceptions import AttendanceClosedError, ConflictError, ValidationError
from .config_service import AttendanceConfigService
from .model import AttendanceRecord, AttendanceStats, SessionView
from .repository import AttendanceRepository
from .roster import SessionRoster
from .stats import stats

logger = get_logger(__name__)

TIMED_STATUSES = frozenset({AttendanceStatus.PRESENT, AttendanceStatus.LATE})


class AttendanceService:
    """Use case: mark attendance per (student, week, session).

    Any decided status (present/late/absent) can be reassigned directly by an
    admin. present/late carry a check-in time, absent/pending never do.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        config_service: AttendanceConfigService,
        *,
        clock: Optional[Clock] = None,
    ):
        self._attendance = attendance
        self._config_service = config_service
        self._clock = clock or SystemClock()

    def set_status(
        self,
        student_id: str,
        week_number: int,
        session_id: int,
        status,
        *,
        now: Optional[datetime] = None,
        check_in_time: Optional[datetime] = None,
    ) -> AttendanceRecord:
        student_id = require_non_empty(student_id, "学号")
        week_number, session = _validate_key(week_number, session_id)
        try:
            status = AttendanceStatus(status)
        except ValueError:
            raise ValidationError(f"无效的考勤状态: {status!r}")

        if status in TIMED_STATUSES:
            check_in_time = check_in_time or now or self._clock.now()
        else:
            check_in_time = None

        record = self._attendance.save_status(
            student_id=student_id,
            week_number=week_number,
            session_id=session,
            status=status,
            check_in_time=check_in_time,
        )
        logger.info(
            "attendance.status_set",
            student_id=student_id,
            week_number=week_number,
            session_id=int(session),
            status=status.value,
        )
        return record

    def bulk_mark_all_present(self, roster: SessionRoster, *, now: Optional[datetime] = None) -> int:
        week_number, session = _validate_key(roster.week_number, roster.session_id)
        now = now or self._clock.now()
        count = 0
        for student_id in roster.student_ids:
            self._attendance.mark_present_keep_time(
                student_id=student_id,
                week_number=week_number,
                session_id=session,
                check_in_time=now,
            )
            count += 1
        logger.info("attendance.bulk_present", week_number=week_number, session_id=int(session), count=count)
        return count

    def bulk_mark_pending_as_absent(self, roster: SessionRoster) -> int:
        week_number, session = _validate_key(roster.week_number, roster.session_id)
        count = 0
        for student_id in roster.student_ids:
            if self._attendance.mark_absent_if_pending(
                student_id=student_id,
                week_number=week_number,
                session_id=session,
            ):
                count += 1
        logger.info("attendance.bulk_absent", week_number=week_number, session_id=int(session), count=count)
        return count

    def check_in(self, student_id: str, *, now: Optional[datetime] = None) -> AttendanceRecord:
        """Self check-in for the session open at `now`."""
        student_id = require_non_empty(student_id, "学号")
        now = now or self._clock.now()
        _, verdict = self._config_service.eligibility(now)
        if not verdict.eligible:
            raise AttendanceClosedError(verdict.reason)

        # Conditional write in the store: an admin decision is never overwritten.
        saved = self._attendance.mark_present_if_pending(
            student_id=student_id,
            week_number=verdict.week_number,
            session_id=verdict.session_id,
            check_in_time=now,
            note=DEBUG_CHECKIN_NOTE if verdict.debug else None,
        )
        if saved is None:
            raise ConflictError(RejectionReason.ALREADY_CHECKED_IN)

        logger.info(
            "attendance.checked_in",
            student_id=student_id,
            week_number=verdict.week_number,
            session_id=int(verdict.session_id),
            debug=verdict.debug,
        )
        return saved

    # -- read side --------------------------------------------------------

    def session_view(self, roster: SessionRoster) -> SessionView:
        week_number, session = _validate_key(roster.week_number, roster.session_id)
        stored = {r.student_id: r for r in self._attendance.list_for_session(week_number=week_number, session_id=session)}
        records = tuple(
            stored.get(sid) or AttendanceRecord(student_id=sid, week_number=week_number, session_id=session)
            for sid in roster.student_ids
        )
        return SessionView(week_number=week_number, session_id=session, records=records, stats=stats(records))

    def student_history(self, student_id: str, *, limit: int = 100) -> Sequence[AttendanceRecord]:
        return self._attendance.list_for_student(student_id=require_non_empty(student_id, "学号"), limit=limit)

    def week_summary(self, week_number: int) -> dict[SessionId, AttendanceStats]:
        week_number = require_int_range(week_number, "周次", 1, 10_000)
        grouped: dict[SessionId, list[AttendanceRecord]] = defaultdict(list)
        for r in self._attendance.list_for_week(week_number=week_number):
            grouped[r.session_id].append(r)
        return {session: stats(grouped[session]) for session in SessionId}


def _validate_key(week_number, session_id) -> tuple[int, SessionId]:
    week_number = require_int_range(week_number, "周次", 1, 10_000)
    session = SessionId(require_int_range(session_id, "节次", 1, 2))
    return week_number, session
