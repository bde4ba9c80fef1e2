from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable, Optional

import pytest

from src.club_system.club_system.activities.model import Activity
from src.club_system.club_system.attendance.config_model import AttendanceConfig
from src.club_system.club_system.attendance.model import AttendanceRecord
from src.club_system.club_system.core.enums import AttendanceStatus, SessionId, SignupStatus
from src.club_system.club_system.core.exceptions import DuplicateSignupError
from src.club_system.club_system.notifications.sink import Notification
from src.club_system.club_system.signups.model import NewSignup, Signup


class InMemoryActivities:
    """Seat counter guarded by a lock, like the conditional UPDATE in MySQL."""

    def __init__(self, activities: Iterable[Activity] = ()):
        self._lock = threading.Lock()
        self.by_id: dict[int, Activity] = {a.activity_id: a for a in activities}

    def get_by_id(self, activity_id: int) -> Optional[Activity]:
        return self.by_id.get(activity_id)

    def try_reserve_seat(self, *, activity_id: int) -> bool:
        with self._lock:
            a = self.by_id.get(activity_id)
            if not a:
                return False
            if a.max_participants and a.current_participants >= a.max_participants:
                return False
            self.by_id[activity_id] = replace(a, current_participants=a.current_participants + 1)
            return True

    def release_seat(self, *, activity_id: int) -> bool:
        with self._lock:
            a = self.by_id.get(activity_id)
            if not a or a.current_participants <= 0:
                return False
            self.by_id[activity_id] = replace(a, current_participants=a.current_participants - 1)
            return True


class InMemorySignups:
    def __init__(self):
        self._lock = threading.Lock()
        self.by_id: dict[int, Signup] = {}
        self._id = 0

    def get_by_id(self, signup_id: int) -> Optional[Signup]:
        return self.by_id.get(signup_id)

    def find_active(self, *, activity_id: int, student_email: str) -> Optional[Signup]:
        for s in self.by_id.values():
            if s.activity_id == activity_id and s.student_email == student_email and s.status != SignupStatus.CANCELLED:
                return s
        return None

    def create(self, *, activity_id: int, candidate: NewSignup, created_at: datetime) -> Signup:
        with self._lock:
            if self.find_active(activity_id=activity_id, student_email=candidate.student_email):
                raise DuplicateSignupError(candidate.student_email)
            self._id += 1
            signup = Signup(
                signup_id=self._id,
                activity_id=activity_id,
                student_email=candidate.student_email,
                student_name=candidate.student_name,
                student_id=candidate.student_id,
                grade=candidate.grade,
                class_name=candidate.class_name,
                status=SignupStatus.PENDING,
                created_at=created_at,
                updated_at=created_at,
            )
            self.by_id[signup.signup_id] = signup
            return signup

    def update_status(self, *, signup_id, expected, status, holds_seat, updated_at) -> bool:
        with self._lock:
            s = self.by_id.get(signup_id)
            if not s or s.status != expected:
                return False
            self.by_id[signup_id] = s.with_status(status, holds_seat=holds_seat, updated_at=updated_at)
            return True

    def delete(self, *, signup_id, allowed) -> bool:
        with self._lock:
            s = self.by_id.get(signup_id)
            if not s or s.status not in set(allowed):
                return False
            del self.by_id[signup_id]
            return True

    def list(self, *, activity_id=None, status=None, limit=500):
        rows = [
            s
            for s in self.by_id.values()
            if (activity_id is None or s.activity_id == activity_id) and (status is None or s.status == status)
        ]
        rows.sort(key=lambda s: (s.created_at, s.signup_id), reverse=True)
        return rows[:limit]

    def list_for_export(self, *, activity_id):
        rows = [s for s in self.by_id.values() if s.activity_id == activity_id]
        rows.sort(key=lambda s: (s.created_at, s.signup_id))
        return rows


class InMemoryAttendance:
    def __init__(self):
        self._lock = threading.Lock()
        self.records: dict[tuple[str, int, SessionId], AttendanceRecord] = {}

    def get(self, *, student_id, week_number, session_id):
        return self.records.get((student_id, week_number, SessionId(session_id)))

    def get_or_create(self, *, student_id, week_number, session_id):
        key = (student_id, week_number, SessionId(session_id))
        if key not in self.records:
            self.records[key] = AttendanceRecord(student_id=student_id, week_number=week_number, session_id=key[2])
        return self.records[key]

    def save_status(self, *, student_id, week_number, session_id, status, check_in_time, note=None):
        current = self.get_or_create(student_id=student_id, week_number=week_number, session_id=session_id)
        updated = current.with_status(status, check_in_time=check_in_time, note=note)
        self.records[current.key] = updated
        return updated

    def mark_present_keep_time(self, *, student_id, week_number, session_id, check_in_time):
        current = self.get_or_create(student_id=student_id, week_number=week_number, session_id=session_id)
        updated = current.with_status(
            AttendanceStatus.PRESENT,
            check_in_time=current.check_in_time or check_in_time,
            note=current.note,
        )
        self.records[current.key] = updated
        return updated

    def mark_present_if_pending(self, *, student_id, week_number, session_id, check_in_time, note=None):
        with self._lock:
            current = self.get_or_create(student_id=student_id, week_number=week_number, session_id=session_id)
            if current.status != AttendanceStatus.PENDING:
                return None
            updated = current.with_status(AttendanceStatus.PRESENT, check_in_time=check_in_time, note=note)
            self.records[current.key] = updated
            return updated

    def mark_absent_if_pending(self, *, student_id, week_number, session_id) -> bool:
        with self._lock:
            current = self.get_or_create(student_id=student_id, week_number=week_number, session_id=session_id)
            if current.status != AttendanceStatus.PENDING:
                return False
            self.records[current.key] = current.with_status(AttendanceStatus.ABSENT, check_in_time=None)
            return True

    def list_for_session(self, *, week_number, session_id):
        return [r for r in self.records.values() if r.week_number == week_number and r.session_id == session_id]

    def list_for_week(self, *, week_number):
        return [r for r in self.records.values() if r.week_number == week_number]

    def list_for_student(self, *, student_id, limit=100):
        rows = [r for r in self.records.values() if r.student_id == student_id]
        rows.sort(key=lambda r: (r.week_number, r.session_id), reverse=True)
        return rows[:limit]


@dataclass
class InMemoryConfigs:
    stored: Optional[AttendanceConfig] = None
    saves: int = 0

    def load(self) -> Optional[AttendanceConfig]:
        return self.stored

    def save(self, config: AttendanceConfig) -> None:
        self.stored = config
        self.saves += 1


@dataclass
class InMemoryRoster:
    student_ids: list[str] = field(default_factory=list)

    def list_student_ids(self):
        return list(self.student_ids)


@dataclass
class RecordingSink:
    sent: list[Notification] = field(default_factory=list)
    fail: bool = False

    def notify(self, notification: Notification) -> None:
        if self.fail:
            raise RuntimeError("notification table unavailable")
        self.sent.append(notification)


@pytest.fixture
def fixed_now() -> datetime:
    # Tuesday, first week of term, inside session 1 (15:20-15:25)
    return datetime(2026, 1, 6, 15, 21, 0)


@pytest.fixture
def activities() -> InMemoryActivities:
    return InMemoryActivities(
        [
            Activity(
                activity_id=1,
                title="机器人社开放日",
                signup_deadline=datetime(2026, 1, 10, 23, 59),
                max_participants=1,
            ),
            Activity(activity_id=2, title="读书会", signup_deadline=None, max_participants=0),
            Activity(
                activity_id=3,
                title="高一编程赛",
                signup_deadline=datetime(2026, 1, 10, 23, 59),
                allowed_grades=frozenset({"高一"}),
            ),
        ]
    )


@pytest.fixture
def signups() -> InMemorySignups:
    return InMemorySignups()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def configs() -> InMemoryConfigs:
    return InMemoryConfigs()


@pytest.fixture
def roster_repo() -> InMemoryRoster:
    return InMemoryRoster(["S001", "S002", "S003"])
