from __future__ import annotations

import csv
import io
from datetime import datetime
from typing import Optional, Sequence

from ..activities.admission import check_admission
from ..activities.model import Activity
from ..activities.repository import ActivityRepository
from ..common.clock import Clock, SystemClock
from ..common.logging import get_logger
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import NotificationType, RejectionReason, SignupStatus
from ..core.exceptions import (
    AdmissionRejectedError,
    ConflictError,
    DuplicateSignupError,
    NotFoundError,
    ValidationError,
)
from ..notifications.sink import Notification, NotificationSink
from .model import NewSignup, Signup, SignupExportRow
from .repository import SignupRepository
from .transitions import DELETABLE, TARGETS, SignupAction, action_for_target, can_apply

logger = get_logger(__name__)

SEAT_HOLDING_STATES = frozenset({SignupStatus.CONFIRMED, SignupStatus.ATTENDED})

EXPORT_HEADERS = ["姓名", "邮箱", "学号", "年级", "班级", "活动", "报名时间", "状态"]


class SignupService:
    """Use case: signup lifecycle (create, confirm, revoke, attend, cancel, delete).

    The activity's current_participants counter is only ever changed here, and
    always together with the matching status write: seat first then status on
    confirm, status first then seat on release, with a compensating write when
    the second step fails.
    """

    def __init__(
        self,
        signups: SignupRepository,
        activities: ActivityRepository,
        notifications: Optional[NotificationSink] = None,
        *,
        clock: Optional[Clock] = None,
    ):
        self._signups = signups
        self._activities = activities
        self._notifications = notifications
        self._clock = clock or SystemClock()

    # -- create -----------------------------------------------------------

    def create_signup(self, activity_id: int, candidate: NewSignup, *, now: Optional[datetime] = None) -> Signup:
        candidate = candidate.validated()
        now = now or self._clock.now()
        activity = self._require_activity(activity_id)

        # Duplicate check before admission so a repeat attempt never looks like "full".
        if self._signups.find_active(activity_id=activity.activity_id, student_email=candidate.student_email):
            raise ConflictError(RejectionReason.ALREADY_SIGNED_UP)

        result = check_admission(activity, now, candidate.grade)
        if not result.admitted:
            raise AdmissionRejectedError(result.reason)

        try:
            signup = self._signups.create(activity_id=activity.activity_id, candidate=candidate, created_at=now)
        except DuplicateSignupError:
            existing = self._signups.find_active(activity_id=activity.activity_id, student_email=candidate.student_email)
            logger.info(
                "signup.duplicate_race",
                activity_id=activity.activity_id,
                email=candidate.student_email,
                existing_id=existing.signup_id if existing else None,
            )
            if existing:
                raise ConflictError(RejectionReason.ALREADY_SIGNED_UP)
            raise ConflictError(RejectionReason.WRITE_CONFLICT)

        logger.info("signup.created", signup_id=signup.signup_id, activity_id=activity.activity_id)
        return signup

    # -- transitions ------------------------------------------------------

    def confirm(self, signup_id: int, *, now: Optional[datetime] = None) -> Signup:
        signup = self._require_signup(signup_id)
        self._ensure_allowed(SignupAction.CONFIRM, signup)
        activity = self._require_activity(signup.activity_id)
        now = now or self._clock.now()

        if not self._activities.try_reserve_seat(activity_id=activity.activity_id):
            raise ConflictError(RejectionReason.CAPACITY_FULL)

        try:
            ok = self._signups.update_status(
                signup_id=signup.signup_id,
                expected=SignupStatus.PENDING,
                status=SignupStatus.CONFIRMED,
                holds_seat=True,
                updated_at=now,
            )
        except Exception:
            self._release_seat(activity.activity_id, signup_id=signup.signup_id)
            raise
        if not ok:
            self._release_seat(activity.activity_id, signup_id=signup.signup_id)
            raise ConflictError(RejectionReason.WRITE_CONFLICT)

        confirmed = signup.with_status(SignupStatus.CONFIRMED, holds_seat=True, updated_at=now)
        logger.info("signup.confirmed", signup_id=signup.signup_id, activity_id=activity.activity_id)
        self._notify_confirmed(confirmed, activity)
        return confirmed

    def revoke(self, signup_id: int, *, now: Optional[datetime] = None) -> Signup:
        return self._apply(SignupAction.REVOKE, signup_id, now=now)

    def mark_attended(self, signup_id: int, *, now: Optional[datetime] = None) -> Signup:
        return self._apply(SignupAction.MARK_ATTENDED, signup_id, now=now)

    def cancel(self, signup_id: int, *, now: Optional[datetime] = None) -> Signup:
        signup = self._require_signup(signup_id)
        if signup.status == SignupStatus.CANCELLED:
            return signup
        return self._apply(SignupAction.CANCEL, signup_id, now=now, signup=signup)

    def transition(self, signup_id: int, status, *, now: Optional[datetime] = None) -> Signup:
        """Move a signup to the requested status (PUT /signups/{id})."""
        try:
            target = SignupStatus(status)
        except ValueError:
            raise ValidationError(f"无效的报名状态: {status!r}")

        action = action_for_target(target)
        if action == SignupAction.CONFIRM:
            return self.confirm(signup_id, now=now)
        if action == SignupAction.CANCEL:
            return self.cancel(signup_id, now=now)
        return self._apply(action, signup_id, now=now)

    def delete(self, signup_id: int) -> None:
        signup = self._require_signup(signup_id)
        if signup.status not in DELETABLE:
            raise ConflictError(RejectionReason.INVALID_TRANSITION, "已确认的报名需先撤销后才能删除")
        self._delete(signup, DELETABLE)

    def reject(self, signup_id: int) -> None:
        """Admin rejection of a pending signup removes it."""
        signup = self._require_signup(signup_id)
        if signup.status != SignupStatus.PENDING:
            raise ConflictError(RejectionReason.INVALID_TRANSITION, "只能拒绝待审核的报名")
        self._delete(signup, {SignupStatus.PENDING})

    # -- read side --------------------------------------------------------

    def get(self, signup_id: int) -> Signup:
        return self._require_signup(signup_id)

    def list_signups(
        self,
        *,
        activity_id: Optional[int] = None,
        status: Optional[SignupStatus] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[Signup]:
        return self._signups.list(activity_id=activity_id, status=status, limit=limit)

    def export_rows(self, activity_id: int) -> list[SignupExportRow]:
        activity = self._require_activity(activity_id)
        return [
            SignupExportRow(
                student_name=s.student_name,
                student_email=s.student_email,
                student_id=s.student_id or "",
                grade=s.grade or "",
                class_name=s.class_name or "",
                activity_title=activity.title,
                created_at=s.created_at,
                status=s.status,
            )
            for s in self._signups.list_for_export(activity_id=activity.activity_id)
        ]

    def export_csv(self, activity_id: int) -> str:
        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(EXPORT_HEADERS)
        for row in self.export_rows(activity_id):
            writer.writerow(
                [
                    row.student_name,
                    row.student_email,
                    row.student_id,
                    row.grade,
                    row.class_name,
                    row.activity_title,
                    row.created_at.strftime("%Y-%m-%d %H:%M"),
                    row.status.value,
                ]
            )
        return buf.getvalue()

    # -- internals --------------------------------------------------------

    def _apply(
        self,
        action: SignupAction,
        signup_id: int,
        *,
        now: Optional[datetime] = None,
        signup: Optional[Signup] = None,
    ) -> Signup:
        signup = signup or self._require_signup(signup_id)
        self._ensure_allowed(action, signup)
        now = now or self._clock.now()

        target = TARGETS[action]
        holds_seat = signup.holds_seat and target in SEAT_HOLDING_STATES
        ok = self._signups.update_status(
            signup_id=signup.signup_id,
            expected=signup.status,
            status=target,
            holds_seat=holds_seat,
            updated_at=now,
        )
        if not ok:
            raise ConflictError(RejectionReason.WRITE_CONFLICT)

        if signup.holds_seat and not holds_seat:
            try:
                self._release_seat(signup.activity_id, signup_id=signup.signup_id)
            except Exception:
                logger.warning("signup.release_failed_restoring", signup_id=signup.signup_id, status=signup.status.value)
                self._signups.update_status(
                    signup_id=signup.signup_id,
                    expected=target,
                    status=signup.status,
                    holds_seat=True,
                    updated_at=signup.updated_at,
                )
                raise

        logger.info("signup.transition", signup_id=signup.signup_id, from_status=signup.status.value, to_status=target.value)
        return signup.with_status(target, holds_seat=holds_seat, updated_at=now)

    def _delete(self, signup: Signup, allowed) -> None:
        if not self._signups.delete(signup_id=signup.signup_id, allowed=allowed):
            raise ConflictError(RejectionReason.WRITE_CONFLICT)
        logger.info("signup.deleted", signup_id=signup.signup_id, status=signup.status.value)

    def _release_seat(self, activity_id: int, *, signup_id: int) -> None:
        if not self._activities.release_seat(activity_id=activity_id):
            logger.warning("activity.release_seat_noop", activity_id=activity_id, signup_id=signup_id)

    def _notify_confirmed(self, signup: Signup, activity: Activity) -> None:
        if self._notifications is None:
            return
        try:
            self._notifications.notify(
                Notification(
                    user_id=signup.student_email,
                    title=f"报名已确认：{activity.title}",
                    message=f"{signup.student_name}，你报名的活动「{activity.title}」已通过审核。",
                    type=NotificationType.APPROVAL,
                    related_id=str(signup.signup_id),
                )
            )
        except Exception:
            logger.warning("notification.failed", signup_id=signup.signup_id, exc_info=True)

    def _ensure_allowed(self, action: SignupAction, signup: Signup) -> None:
        if not can_apply(action, signup.status):
            raise ConflictError(
                RejectionReason.INVALID_TRANSITION,
                f"报名当前状态为 {signup.status.value}，不能执行 {action.value}",
            )

    def _require_signup(self, signup_id: int) -> Signup:
        signup = self._signups.get_by_id(int(signup_id))
        if not signup:
            raise NotFoundError("报名记录不存在")
        return signup

    def _require_activity(self, activity_id: int) -> Activity:
        activity = self._activities.get_by_id(int(activity_id))
        if not activity:
            raise NotFoundError("活动不存在")
        return activity
