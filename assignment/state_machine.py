"""Assignment lifecycle.

Every status change an assignment can go through is listed in ``TRANSITIONS``;
services ask ``check_transition`` instead of comparing status strings, so the
rules live in one place:

    assigned        -> confirmed | declined | swap_requested | cancelled
    confirmed       -> swap_requested | cancelled
    swap_requested  -> cancelled (approved, or cancelled by a scheduler)
    declined, cancelled: terminal

Each action is reserved for one actor role. The role is checked before the
current state, so a caller who does not own an assignment is always refused
with an authorization error, whatever state the assignment is in.
"""
from __future__ import annotations
from enum import Enum

from core.errors import AuthorizationError, ConflictError
from .models import AssignmentStatus


class AssignmentAction(str, Enum):
    confirm = "confirm"
    decline = "decline"
    request_swap = "request_swap"
    approve_swap = "approve_swap"
    cancel = "cancel"


class ActorRole(str, Enum):
    owner = "owner"          # the employee the assignment belongs to
    approver = "approver"    # a manager approving a swap
    scheduler = "scheduler"  # a manager/HR user maintaining the schedule


ACTION_ROLES: dict[AssignmentAction, ActorRole] = {
    AssignmentAction.confirm: ActorRole.owner,
    AssignmentAction.decline: ActorRole.owner,
    AssignmentAction.request_swap: ActorRole.owner,
    AssignmentAction.approve_swap: ActorRole.approver,
    AssignmentAction.cancel: ActorRole.scheduler,
}

S = AssignmentStatus
A = AssignmentAction

TRANSITIONS: dict[tuple[AssignmentStatus, AssignmentAction], AssignmentStatus] = {
    (S.assigned, A.confirm): S.confirmed,
    (S.assigned, A.decline): S.declined,
    (S.assigned, A.request_swap): S.swap_requested,
    (S.assigned, A.cancel): S.cancelled,
    (S.confirmed, A.request_swap): S.swap_requested,
    (S.confirmed, A.cancel): S.cancelled,
    (S.swap_requested, A.approve_swap): S.cancelled,
    (S.swap_requested, A.cancel): S.cancelled,
}

_OWNER_MESSAGES = {
    A.confirm: "You can only confirm your own assignments",
    A.decline: "You can only decline your own assignments",
    A.request_swap: "You can only request swaps for your own assignments",
}

_STATE_MESSAGES = {
    A.approve_swap: "No swap request pending for this assignment",
}


def allowed_actions(current: AssignmentStatus) -> list[AssignmentAction]:
    return [action for (status, action) in TRANSITIONS if status == current]


def check_transition(
    current: AssignmentStatus, action: AssignmentAction, role: ActorRole
) -> AssignmentStatus:
    """Return the status ``action`` leads to, or raise why it is not allowed."""
    required = ACTION_ROLES[action]
    if role != required:
        raise AuthorizationError(
            _OWNER_MESSAGES.get(action, f"Only the {required.value} may {action.value.replace('_', ' ')}")
        )

    nxt = TRANSITIONS.get((AssignmentStatus(current), action))
    if nxt is None:
        raise ConflictError(
            _STATE_MESSAGES.get(
                action,
                f"Cannot {action.value.replace('_', ' ')} an assignment that is {AssignmentStatus(current).value}",
            )
        )
    return nxt
