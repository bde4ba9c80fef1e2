from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol, Sequence

from ..core.enums import SessionId


@dataclass(frozen=True)
class SessionRoster:
    """Students expected at one session of one week, captured once per call."""

    week_number: int
    session_id: SessionId
    student_ids: tuple[str, ...]

    @classmethod
    def of(cls, week_number: int, session_id: int, student_ids: Iterable[str]) -> "SessionRoster":
        seen: dict[str, None] = {}
        for sid in student_ids:
            seen.setdefault(str(sid), None)
        return cls(week_number=int(week_number), session_id=SessionId(int(session_id)), student_ids=tuple(seen))


class RosterRepository(Protocol):
    def list_student_ids(self) -> Sequence[str]:
        """Active club members (the roster import pipeline fills this table)."""

        raise NotImplementedError
