from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..core.enums import SignupStatus
from ..core.exceptions import DuplicateSignupError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import NewSignup, Signup
from .repository import SignupRepository

_COLUMNS = """
    signup_id, activity_id, student_email, student_name, student_id, grade, class_name,
    status, holds_seat, created_at, updated_at
"""


def _row_to_signup(r: dict) -> Signup:
    return Signup(
        signup_id=int(r["signup_id"]),
        activity_id=int(r["activity_id"]),
        student_email=r["student_email"],
        student_name=r["student_name"],
        student_id=r.get("student_id"),
        grade=r.get("grade"),
        class_name=r.get("class_name"),
        status=SignupStatus(r["status"]),
        created_at=r["created_at"],
        updated_at=r["updated_at"],
        holds_seat=bool(r.get("holds_seat")),
    )


class MySQLSignupRepository(SignupRepository):
    """Signups table.

    active_email mirrors student_email while the signup is not cancelled and is
    NULL otherwise; UNIQUE(activity_id, active_email) arbitrates duplicate races.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, signup_id: int) -> Optional[Signup]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM signups WHERE signup_id=%s", (int(signup_id),))
            r = fetchone(cur)
            return _row_to_signup(r) if r else None

    def find_active(self, *, activity_id: int, student_email: str) -> Optional[Signup]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM signups
                WHERE activity_id=%s AND student_email=%s AND status<>%s
                LIMIT 1
                """,
                (int(activity_id), student_email, SignupStatus.CANCELLED.value),
            )
            r = fetchone(cur)
            return _row_to_signup(r) if r else None

    def create(self, *, activity_id: int, candidate: NewSignup, created_at: datetime) -> Signup:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO signups(
                        activity_id, student_email, active_email, student_name, student_id,
                        grade, class_name, status, holds_seat, created_at, updated_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,0,%s,%s)
                    """,
                    (
                        int(activity_id),
                        candidate.student_email,
                        candidate.student_email,
                        candidate.student_name,
                        candidate.student_id,
                        candidate.grade,
                        candidate.class_name,
                        SignupStatus.PENDING.value,
                        created_at,
                        created_at,
                    ),
                )
                signup_id = int(cur.lastrowid)
        except Exception as exc:
            if is_duplicate_key(exc):
                raise DuplicateSignupError(f"{activity_id}:{candidate.student_email}") from exc
            raise

        return Signup(
            signup_id=signup_id,
            activity_id=int(activity_id),
            student_email=candidate.student_email,
            student_name=candidate.student_name,
            student_id=candidate.student_id,
            grade=candidate.grade,
            class_name=candidate.class_name,
            status=SignupStatus.PENDING,
            created_at=created_at,
            updated_at=created_at,
            holds_seat=False,
        )

    def update_status(
        self,
        *,
        signup_id: int,
        expected: SignupStatus,
        status: SignupStatus,
        holds_seat: bool,
        updated_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE signups
                SET status=%s,
                    holds_seat=%s,
                    active_email=IF(%s, NULL, student_email),
                    updated_at=%s
                WHERE signup_id=%s AND status=%s
                """,
                (
                    status.value,
                    1 if holds_seat else 0,
                    status == SignupStatus.CANCELLED,
                    updated_at,
                    int(signup_id),
                    expected.value,
                ),
            )
            return cur.rowcount > 0

    def delete(self, *, signup_id: int, allowed: Iterable[SignupStatus]) -> bool:
        statuses = [s.value for s in allowed]
        if not statuses:
            return False
        placeholders = ",".join(["%s"] * len(statuses))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"DELETE FROM signups WHERE signup_id=%s AND status IN ({placeholders})",
                (int(signup_id), *statuses),
            )
            return cur.rowcount > 0

    def list(
        self,
        *,
        activity_id: Optional[int] = None,
        status: Optional[SignupStatus] = None,
        limit: int = 500,
    ) -> Sequence[Signup]:
        clauses: list[str] = []
        params: list[object] = []
        if activity_id is not None:
            clauses.append("activity_id=%s")
            params.append(int(activity_id))
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM signups
                {where}
                ORDER BY created_at DESC, signup_id DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [_row_to_signup(r) for r in fetchall(cur)]

    def list_for_export(self, *, activity_id: int) -> Sequence[Signup]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM signups
                WHERE activity_id=%s
                ORDER BY created_at, signup_id
                """,
                (int(activity_id),),
            )
            return [_row_to_signup(r) for r in fetchall(cur)]
