"""
Attendance state machine.
Every transition is a single explicit user action, persisted immediately.
"""
from typing import Dict, FrozenSet, Optional, Tuple

from exceptions import InvalidTransitionError
from models import Attendance, Role

A = Attendance

# action -> (allowed source statuses, target status)
TRANSITIONS: Dict[str, Tuple[FrozenSet[Attendance], Attendance]] = {
    "request_completion": (frozenset({A.PENDING}), A.PENDING_APPROVAL),
    "approve": (frozenset({A.PENDING_APPROVAL}), A.COMPLETED),
    "reject": (frozenset({A.PENDING_APPROVAL}), A.PENDING),
    "undo": (frozenset({A.PENDING_APPROVAL, A.NO_SHOW, A.RESCHEDULED}), A.PENDING),
    "mark_no_show": (frozenset({A.PENDING}), A.NO_SHOW),
    "reschedule": (frozenset({A.PENDING}), A.RESCHEDULED),
    "cancel": (frozenset({A.PENDING}), A.CANCELLED),
}

ADMIN_ACTIONS = frozenset({"approve", "reject"})


def next_status(action: str, current: Attendance) -> Attendance:
    """
    Target status of an action applied to a record in `current` status.

    Raises:
        InvalidTransitionError: unknown action, or action not allowed from current
    """
    current = Attendance(current)
    if action not in TRANSITIONS:
        raise InvalidTransitionError(action, current.value)
    sources, target = TRANSITIONS[action]
    if current not in sources:
        raise InvalidTransitionError(action, current.value)
    return target


def can_perform(action: str, role: Optional[str]) -> bool:
    """Approvals are admin-only; team actions are open to admin and team"""
    if role == Role.ADMIN.value:
        return action in TRANSITIONS
    if role == Role.TEAM.value:
        return action in TRANSITIONS and action not in ADMIN_ACTIONS
    return False


def status_update_fields(target: Attendance) -> Dict[str, object]:
    """
    Column updates for moving to `target`.
    No-show follow-up fields are cleared whenever the record leaves no-show.
    """
    fields: Dict[str, object] = {"attendance": target.value}
    if target != Attendance.NO_SHOW:
        fields.update({
            "no_show_reached_out": False,
            "no_show_reached_out_date": None,
            "no_show_notes": None,
        })
    return fields


def display_status(status: str, role: Optional[str]) -> str:
    """Sales sees pending_approval as plain pending"""
    if role == Role.SALES.value and status == Attendance.PENDING_APPROVAL.value:
        return Attendance.PENDING.value
    return status
