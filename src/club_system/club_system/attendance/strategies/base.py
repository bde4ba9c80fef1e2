from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from ..config_model import AttendanceConfig
from ..model import Eligibility


class WindowStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide whether check-in is open."""

    @abstractmethod
    def evaluate(self, *, config: AttendanceConfig, now: datetime) -> Eligibility:
        raise NotImplementedError
