from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import AdmissionStatus


@dataclass(frozen=True)
class Activity:
    """Club activity accepting signups before a deadline and up to a capacity.

    max_participants == 0 means unlimited; allowed_grades empty means any grade.
    current_participants counts seats held by confirmed/attended signups.
    """

    activity_id: int
    title: str
    signup_deadline: Optional[datetime]
    max_participants: int = 0
    current_participants: int = 0
    allowed_grades: frozenset[str] = field(default_factory=frozenset)

    def admission_status(self, now: datetime) -> AdmissionStatus:
        if self.signup_deadline is None:
            return AdmissionStatus.OPEN
        return AdmissionStatus.CLOSED if now > self.signup_deadline else AdmissionStatus.OPEN

    @property
    def is_unlimited(self) -> bool:
        return self.max_participants == 0

    @property
    def remaining_slots(self) -> Optional[int]:
        if self.is_unlimited:
            return None
        return max(self.max_participants - self.current_participants, 0)
