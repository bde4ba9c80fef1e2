from __future__ import annotations

from collections import Counter
from typing import Iterable

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, AttendanceStats


def stats(records: Iterable[AttendanceRecord]) -> AttendanceStats:
    """Count records per status. Recomputed on every call."""
    counts = Counter(r.status for r in records)
    return AttendanceStats(
        present=counts[AttendanceStatus.PRESENT],
        late=counts[AttendanceStatus.LATE],
        absent=counts[AttendanceStatus.ABSENT],
        pending=counts[AttendanceStatus.PENDING],
    )
