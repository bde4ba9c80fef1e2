from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import SignupStatus
from .model import NewSignup, Signup


class SignupRepository(Protocol):
    def get_by_id(self, signup_id: int) -> Optional[Signup]:
        raise NotImplementedError

    def find_active(self, *, activity_id: int, student_email: str) -> Optional[Signup]:
        """Non-cancelled signup for (activity, email), if any."""

        raise NotImplementedError

    def create(self, *, activity_id: int, candidate: NewSignup, created_at: datetime) -> Signup:
        """Insert a pending signup.

        Raises DuplicateSignupError when a non-cancelled signup already exists
        for the same (activity_id, student_email).
        """

        raise NotImplementedError

    def update_status(
        self,
        *,
        signup_id: int,
        expected: SignupStatus,
        status: SignupStatus,
        holds_seat: bool,
        updated_at: datetime,
    ) -> bool:
        """Conditional write: only applies while the stored status is `expected`."""

        raise NotImplementedError

    def delete(self, *, signup_id: int, allowed: Iterable[SignupStatus]) -> bool:
        """Delete only while the stored status is one of `allowed`."""

        raise NotImplementedError

    def list(
        self,
        *,
        activity_id: Optional[int] = None,
        status: Optional[SignupStatus] = None,
        limit: int = 500,
    ) -> Sequence[Signup]:
        raise NotImplementedError

    def list_for_export(self, *, activity_id: int) -> Sequence[Signup]:
        """Every signup of one activity, oldest first. Unbounded."""

        raise NotImplementedError
