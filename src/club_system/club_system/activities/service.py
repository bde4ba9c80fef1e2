from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..common.clock import Clock, SystemClock
from ..core.exceptions import NotFoundError
from .admission import AdmissionResult, check_admission
from .model import Activity
from .repository import ActivityRepository


class ActivityService:
    """Read-only access to activities. Seat counters are changed by SignupService only."""

    def __init__(self, activities: ActivityRepository, *, clock: Optional[Clock] = None):
        self._activities = activities
        self._clock = clock or SystemClock()

    def get(self, activity_id: int) -> Activity:
        activity = self._activities.get_by_id(int(activity_id))
        if not activity:
            raise NotFoundError("活动不存在")
        return activity

    def check_admission(
        self,
        activity_id: int,
        *,
        candidate_grade: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AdmissionResult:
        return check_admission(self.get(activity_id), now or self._clock.now(), candidate_grade)

    def now(self) -> datetime:
        return self._clock.now()
