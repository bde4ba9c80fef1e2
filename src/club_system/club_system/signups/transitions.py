"""Signup state machine.

    pending   --confirm-->        confirmed   (+1 seat)
    pending   --mark_attended-->  attended
    confirmed --mark_attended-->  attended
    confirmed --revoke-->         pending     (-1 seat)
    attended  --revoke-->         pending     (-1 seat if held)
    any       --cancel-->         cancelled   (-1 seat if held)

Deletion is allowed from pending and cancelled only.
"""

from __future__ import annotations

from enum import Enum

from ..core.enums import SignupStatus


class SignupAction(str, Enum):
    CONFIRM = "confirm"
    REVOKE = "revoke"
    MARK_ATTENDED = "mark_attended"
    CANCEL = "cancel"


ALLOWED_SOURCES: dict[SignupAction, frozenset[SignupStatus]] = {
    SignupAction.CONFIRM: frozenset({SignupStatus.PENDING}),
    SignupAction.REVOKE: frozenset({SignupStatus.CONFIRMED, SignupStatus.ATTENDED}),
    SignupAction.MARK_ATTENDED: frozenset({SignupStatus.PENDING, SignupStatus.CONFIRMED}),
    SignupAction.CANCEL: frozenset({SignupStatus.PENDING, SignupStatus.CONFIRMED, SignupStatus.ATTENDED}),
}

TARGETS: dict[SignupAction, SignupStatus] = {
    SignupAction.CONFIRM: SignupStatus.CONFIRMED,
    SignupAction.REVOKE: SignupStatus.PENDING,
    SignupAction.MARK_ATTENDED: SignupStatus.ATTENDED,
    SignupAction.CANCEL: SignupStatus.CANCELLED,
}

DELETABLE: frozenset[SignupStatus] = frozenset({SignupStatus.PENDING, SignupStatus.CANCELLED})


def can_apply(action: SignupAction, current: SignupStatus) -> bool:
    return current in ALLOWED_SOURCES[action]


def action_for_target(target: SignupStatus) -> SignupAction:
    """Map a requested target status (PUT /signups/{id}) to an action."""
    for action, status in TARGETS.items():
        if status == target:
            return action
    raise ValueError(f"no action leads to {target!r}")
