from __future__ import annotations

from typing import Optional, Protocol

from .model import Activity


class ActivityRepository(Protocol):
    def get_by_id(self, activity_id: int) -> Optional[Activity]:
        raise NotImplementedError

    def try_reserve_seat(self, *, activity_id: int) -> bool:
        """Atomically increment current_participants if a seat is free.

        Returns False when the activity is full (or missing). Must be a single
        conditional write, never read-then-write.
        """

        raise NotImplementedError

    def release_seat(self, *, activity_id: int) -> bool:
        """Atomically decrement current_participants (never below zero)."""

        raise NotImplementedError
