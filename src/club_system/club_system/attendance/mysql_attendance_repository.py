from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus, SessionId
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord
from .repository import AttendanceRepository

_SELECT = """
    SELECT student_id, week_number, session_id, status, check_in_time, note
    FROM attendance_records
"""


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        student_id=str(r["student_id"]),
        week_number=int(r["week_number"]),
        session_id=SessionId(int(r["session_id"])),
        status=AttendanceStatus(r["status"]),
        check_in_time=r.get("check_in_time"),
        note=r.get("note"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    """attendance_records keyed by PRIMARY KEY(student_id, week_number, session_id)."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select_one(self, cur, student_id: str, week_number: int, session_id: SessionId) -> Optional[AttendanceRecord]:
        cur.execute(
            _SELECT + " WHERE student_id=%s AND week_number=%s AND session_id=%s",
            (str(student_id), int(week_number), int(session_id)),
        )
        r = fetchone(cur)
        return _row_to_record(r) if r else None

    def get(self, *, student_id: str, week_number: int, session_id: SessionId) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._select_one(cur, student_id, week_number, session_id)

    def get_or_create(self, *, student_id: str, week_number: int, session_id: SessionId) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO attendance_records(student_id, week_number, session_id, status, check_in_time)
                VALUES(%s,%s,%s,%s,NULL)
                """,
                (str(student_id), int(week_number), int(session_id), AttendanceStatus.PENDING.value),
            )
            return self._select_one(cur, student_id, week_number, session_id)

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(student_id, week_number, session_id, status, check_in_time, note)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status),
                    check_in_time=VALUES(check_in_time),
                    note=VALUES(note)
                """,
                (str(student_id), int(week_number), int(session_id), status.value, check_in_time, note),
            )
            return self._select_one(cur, student_id, week_number, session_id)

    def mark_present_keep_time(
        self,
        *,
        student_id: str,
        week_number: int,
        session_id: SessionId,
        check_in_time: datetime,
    ) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(student_id, week_number, session_id, status, check_in_time)
                VALUES(%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    check_in_time=COALESCE(check_in_time, VALUES(check_in_time)),
                    status=VALUES(status)
                """,
                (str(student_id), int(week_number), int(session_id), AttendanceStatus.PRESENT.value, check_in_time),
            )
            return self._select_one(cur, student_id, week_number, session_id)

    def mark_present_if_pending(
        self,
        *,
        student_id: str,
        week_number: int,
        session_id: SessionId,
        check_in_time: datetime,
        note: Optional[str] = None,
    ) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            key = (str(student_id), int(week_number), int(session_id))
            cur.execute(
                """
                INSERT IGNORE INTO attendance_records(student_id, week_number, session_id, status, check_in_time)
                VALUES(%s,%s,%s,%s,NULL)
                """,
                (*key, AttendanceStatus.PENDING.value),
            )
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s, check_in_time=%s, note=%s
                WHERE student_id=%s AND week_number=%s AND session_id=%s AND status=%s
                """,
                (AttendanceStatus.PRESENT.value, check_in_time, note, *key, AttendanceStatus.PENDING.value),
            )
            if cur.rowcount == 0:
                return None
            return self._select_one(cur, student_id, week_number, session_id)

    def mark_absent_if_pending(self, *, student_id: str, week_number: int, session_id: SessionId) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            key = (str(student_id), int(week_number), int(session_id))
            cur.execute(
                """
                INSERT IGNORE INTO attendance_records(student_id, week_number, session_id, status, check_in_time)
                VALUES(%s,%s,%s,%s,NULL)
                """,
                (*key, AttendanceStatus.ABSENT.value),
            )
            if cur.rowcount > 0:
                return True

            # Matched rows only (FOUND_ROWS): the status filter keeps decided records out.
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s, check_in_time=NULL
                WHERE student_id=%s AND week_number=%s AND session_id=%s AND status=%s
                """,
                (AttendanceStatus.ABSENT.value, *key, AttendanceStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def list_for_session(self, *, week_number: int, session_id: SessionId) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE week_number=%s AND session_id=%s ORDER BY student_id",
                (int(week_number), int(session_id)),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_for_week(self, *, week_number: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE week_number=%s ORDER BY session_id, student_id", (int(week_number),))
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_for_student(self, *, student_id: str, limit: int = 100) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE student_id=%s ORDER BY week_number DESC, session_id DESC LIMIT %s",
                (str(student_id), int(limit)),
            )
            return [_row_to_record(r) for r in fetchall(cur)]
