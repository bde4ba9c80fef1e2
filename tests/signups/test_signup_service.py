from __future__ import annotations

import csv
import io
import threading
from datetime import datetime, timedelta

import pytest

from src.club_system.club_system.common.clock import FixedClock
from src.club_system.club_system.core.constants import DEFAULT_LIST_LIMIT
from src.club_system.club_system.core.enums import NotificationType, RejectionReason, SignupStatus
from src.club_system.club_system.core.exceptions import (
    AdmissionRejectedError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from src.club_system.club_system.signups.model import NewSignup
from src.club_system.club_system.signups.service import EXPORT_HEADERS, SignupService


@pytest.fixture
def service(signups, activities, sink, fixed_now):
    return SignupService(signups, activities, sink, clock=FixedClock(fixed_now))


def _candidate(email: str = "li.lei@school.cn", name: str = "李雷", grade: str | None = None) -> NewSignup:
    return NewSignup(student_email=email, student_name=name, student_id="S001", grade=grade, class_name="3班")


def test_create_signup_starts_pending_without_taking_a_seat(service, activities):
    signup = service.create_signup(1, _candidate())

    assert signup.status == SignupStatus.PENDING
    assert signup.holds_seat is False
    assert activities.get_by_id(1).current_participants == 0


def test_duplicate_signup_is_rejected_case_insensitively(service):
    service.create_signup(2, _candidate(email="li.lei@school.cn"))

    with pytest.raises(ConflictError) as exc:
        service.create_signup(2, _candidate(email="  LI.LEI@school.cn "))

    assert exc.value.reason == RejectionReason.ALREADY_SIGNED_UP


def test_signup_again_after_cancel(service):
    first = service.create_signup(2, _candidate())
    service.cancel(first.signup_id)

    again = service.create_signup(2, _candidate())

    assert again.signup_id != first.signup_id
    assert again.status == SignupStatus.PENDING


def test_concurrent_duplicate_creates_leave_one_signup(service, signups):
    results: list[object] = []
    barrier = threading.Barrier(2)

    def attempt():
        barrier.wait()
        try:
            results.append(service.create_signup(2, _candidate()))
        except ConflictError as exc:
            results.append(exc.reason)

    threads = [threading.Thread(target=attempt) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert RejectionReason.ALREADY_SIGNED_UP in results
    assert len(signups.list(activity_id=2)) == 1


def test_deadline_passed_rejects_creation(signups, activities, sink):
    late = SignupService(signups, activities, sink, clock=FixedClock(datetime(2026, 1, 11, 0, 0)))

    with pytest.raises(AdmissionRejectedError) as exc:
        late.create_signup(1, _candidate())

    assert exc.value.reason == RejectionReason.DEADLINE_PASSED
    assert str(exc.value) == "报名已截止"


def test_grade_restriction(service):
    with pytest.raises(AdmissionRejectedError) as exc:
        service.create_signup(3, _candidate(grade="高二"))
    assert exc.value.reason == RejectionReason.GRADE_NOT_ALLOWED

    assert service.create_signup(3, _candidate(grade="高一")).status == SignupStatus.PENDING


def test_invalid_candidate_and_unknown_activity(service):
    with pytest.raises(ValidationError):
        service.create_signup(2, _candidate(email="not-an-email"))
    with pytest.raises(ValidationError):
        service.create_signup(2, NewSignup(student_email="a@b.cn", student_name="  "))
    with pytest.raises(NotFoundError):
        service.create_signup(99, _candidate())


def test_confirm_takes_a_seat_and_notifies_once(service, activities, sink):
    signup = service.create_signup(1, _candidate())

    confirmed = service.confirm(signup.signup_id)

    assert confirmed.status == SignupStatus.CONFIRMED
    assert confirmed.holds_seat is True
    assert activities.get_by_id(1).current_participants == 1
    assert len(sink.sent) == 1
    note = sink.sent[0]
    assert note.user_id == "li.lei@school.cn"
    assert note.type == NotificationType.APPROVAL
    assert note.related_id == str(signup.signup_id)
    assert "机器人社开放日" in note.title


def test_capacity_race_only_one_confirmation_wins(service, activities):
    a = service.create_signup(1, _candidate(email="a@school.cn", name="甲"))
    b = service.create_signup(1, _candidate(email="b@school.cn", name="乙"))
    outcomes: dict[int, object] = {}
    barrier = threading.Barrier(2)

    def confirm(signup_id: int):
        barrier.wait()
        try:
            outcomes[signup_id] = service.confirm(signup_id).status
        except ConflictError as exc:
            outcomes[signup_id] = exc.reason

    threads = [threading.Thread(target=confirm, args=(s.signup_id,)) for s in (a, b)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(o.value for o in outcomes.values()) == ["capacity_full", "confirmed"]
    assert activities.get_by_id(1).current_participants == 1


def test_full_activity_rejects_new_signups_but_not_existing_pending(service):
    pending = service.create_signup(1, _candidate(email="a@school.cn"))
    other = service.create_signup(1, _candidate(email="b@school.cn"))
    service.confirm(pending.signup_id)

    with pytest.raises(AdmissionRejectedError) as exc:
        service.create_signup(1, _candidate(email="c@school.cn"))
    assert exc.value.reason == RejectionReason.CAPACITY_FULL

    with pytest.raises(ConflictError) as exc:
        service.confirm(other.signup_id)
    assert exc.value.reason == RejectionReason.CAPACITY_FULL


def test_notification_failure_does_not_undo_confirmation(service, activities, sink):
    sink.fail = True
    signup = service.create_signup(2, _candidate())

    confirmed = service.confirm(signup.signup_id)

    assert confirmed.status == SignupStatus.CONFIRMED
    assert service.get(signup.signup_id).status == SignupStatus.CONFIRMED
    assert activities.get_by_id(2).current_participants == 1


def test_revoke_and_cancel_release_exactly_one_seat(service, activities):
    signup = service.create_signup(2, _candidate())
    service.confirm(signup.signup_id)

    revoked = service.revoke(signup.signup_id)
    assert revoked.status == SignupStatus.PENDING
    assert activities.get_by_id(2).current_participants == 0

    service.confirm(signup.signup_id)
    service.mark_attended(signup.signup_id)
    assert activities.get_by_id(2).current_participants == 1

    cancelled = service.cancel(signup.signup_id)
    assert cancelled.status == SignupStatus.CANCELLED
    assert activities.get_by_id(2).current_participants == 0

    # already cancelled: no-op, counter untouched
    assert service.cancel(signup.signup_id).status == SignupStatus.CANCELLED
    assert activities.get_by_id(2).current_participants == 0


def test_pending_to_attended_never_touches_the_counter(service, activities):
    signup = service.create_signup(2, _candidate())

    attended = service.mark_attended(signup.signup_id)
    assert attended.holds_seat is False
    assert activities.get_by_id(2).current_participants == 0

    service.revoke(signup.signup_id)
    assert activities.get_by_id(2).current_participants == 0


def test_invalid_transitions(service):
    signup = service.create_signup(2, _candidate())

    with pytest.raises(ConflictError) as exc:
        service.revoke(signup.signup_id)
    assert exc.value.reason == RejectionReason.INVALID_TRANSITION

    service.confirm(signup.signup_id)
    with pytest.raises(ConflictError):
        service.confirm(signup.signup_id)


def test_transition_by_target_status(service, activities):
    signup = service.create_signup(2, _candidate())

    assert service.transition(signup.signup_id, "confirmed").status == SignupStatus.CONFIRMED
    assert service.transition(signup.signup_id, "attended").status == SignupStatus.ATTENDED
    assert service.transition(signup.signup_id, "pending").status == SignupStatus.PENDING
    assert activities.get_by_id(2).current_participants == 0

    with pytest.raises(ValidationError):
        service.transition(signup.signup_id, "approved")


def test_delete_rules(service, signups):
    signup = service.create_signup(2, _candidate())
    service.confirm(signup.signup_id)

    with pytest.raises(ConflictError) as exc:
        service.delete(signup.signup_id)
    assert exc.value.reason == RejectionReason.INVALID_TRANSITION

    service.revoke(signup.signup_id)
    service.delete(signup.signup_id)
    assert signups.get_by_id(signup.signup_id) is None

    with pytest.raises(NotFoundError):
        service.delete(signup.signup_id)


def test_reject_only_pending(service, signups):
    signup = service.create_signup(2, _candidate())
    service.confirm(signup.signup_id)
    with pytest.raises(ConflictError):
        service.reject(signup.signup_id)

    other = service.create_signup(2, _candidate(email="han.meimei@school.cn", name="韩梅梅"))
    service.reject(other.signup_id)
    assert signups.get_by_id(other.signup_id) is None


def test_export_csv(service):
    first = service.create_signup(2, _candidate())
    service.create_signup(2, _candidate(email="han.meimei@school.cn", name="韩梅梅"))
    service.confirm(first.signup_id)

    rows = list(csv.reader(io.StringIO(service.export_csv(2))))

    assert rows[0] == EXPORT_HEADERS
    assert len(rows) == 3
    assert rows[1][0] == "李雷"
    assert rows[1][5] == "读书会"
    assert rows[1][6] == "2026-01-06 15:21"
    assert rows[1][7] == "confirmed"
    assert rows[2][7] == "pending"


def test_export_includes_every_signup_oldest_first(service, fixed_now):
    for i in range(DEFAULT_LIST_LIMIT + 1):
        service.create_signup(
            2,
            _candidate(email=f"student{i}@school.cn", name=f"学生{i}"),
            now=fixed_now + timedelta(minutes=DEFAULT_LIST_LIMIT - i),
        )

    rows = service.export_rows(2)

    assert len(rows) == DEFAULT_LIST_LIMIT + 1
    assert rows[0].student_name == f"学生{DEFAULT_LIST_LIMIT}"
    assert rows[-1].student_name == "学生0"
    assert [r.created_at for r in rows] == sorted(r.created_at for r in rows)
    assert len(list(csv.reader(io.StringIO(service.export_csv(2))))) == DEFAULT_LIST_LIMIT + 2


def test_failed_status_write_on_confirm_gives_the_seat_back(service, signups, activities, monkeypatch):
    signup = service.create_signup(1, _candidate())

    def store_down(**kwargs):
        raise RuntimeError("signups table unavailable")

    monkeypatch.setattr(signups, "update_status", store_down)

    with pytest.raises(RuntimeError):
        service.confirm(signup.signup_id)

    assert activities.get_by_id(1).current_participants == 0
    assert signups.get_by_id(signup.signup_id).status == SignupStatus.PENDING


def test_lost_status_write_on_confirm_gives_the_seat_back(service, signups, activities, monkeypatch):
    signup = service.create_signup(1, _candidate())
    monkeypatch.setattr(signups, "update_status", lambda **kwargs: False)

    with pytest.raises(ConflictError) as exc:
        service.confirm(signup.signup_id)

    assert exc.value.reason == RejectionReason.WRITE_CONFLICT
    assert activities.get_by_id(1).current_participants == 0


@pytest.mark.parametrize("operation", ["revoke", "cancel"])
def test_failed_seat_release_restores_the_confirmed_signup(service, signups, activities, monkeypatch, operation):
    signup = service.confirm(service.create_signup(1, _candidate()).signup_id)

    def counter_down(**kwargs):
        raise RuntimeError("activities table unavailable")

    monkeypatch.setattr(activities, "release_seat", counter_down)

    with pytest.raises(RuntimeError):
        getattr(service, operation)(signup.signup_id)

    stored = signups.get_by_id(signup.signup_id)
    assert stored.status == SignupStatus.CONFIRMED
    assert stored.holds_seat is True
    assert activities.get_by_id(1).current_participants == 1
