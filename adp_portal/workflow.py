"""
Status workflow engine.

Every legal move of a work item is one row of TRANSITIONS:

    (current status, action, acting role) -> next status

Anything not in the table is illegal. can_apply() is the guard every
dashboard calls before acting; apply() re-checks it and returns the item
unchanged when the move is illegal, so a forced call never alters status.

Usage:
    from adp_portal.workflow import apply, can_apply, ACTION_APPROVE

    if can_apply(item, ACTION_APPROVE, ROLE_EEPH):
        item = apply(item, ACTION_APPROVE, ROLE_EEPH, remarks="Verified on site")
"""
import logging

from adp_portal.config import DEFAULT_DEPARTMENT
from adp_portal.exceptions import ValidationError
from adp_portal.models import ForwardedTo, Status, WorkItem, now_iso
from adp_portal.roles import (
    ROLE_ENGINEER, ROLE_COMMISSIONER, ROLE_EEPH, ROLE_SEPH, ROLE_ENCPH, ROLE_CDMA,
    ALL_ROLES, get_role_label, next_role,
)

logger = logging.getLogger(__name__)

ACTION_APPROVE = 'approve'
ACTION_REJECT = 'reject'
ACTION_FORWARD = 'forward'

ALL_ACTIONS = (ACTION_APPROVE, ACTION_REJECT, ACTION_FORWARD)

# Status a role finds new work in
INCOMING_STATUS = {
    ROLE_COMMISSIONER: Status.PENDING_REVIEW,
    ROLE_EEPH: Status.FORWARDED_TO_EEPH,
    ROLE_SEPH: Status.FORWARDED_TO_SEPH,
    ROLE_ENCPH: Status.FORWARDED_TO_ENCPH,
    ROLE_CDMA: Status.FORWARDED_TO_CDMA,
}

# Status a role leaves behind after approving
APPROVED_STATUS = {
    ROLE_COMMISSIONER: Status.APPROVED,
    ROLE_EEPH: Status.EEPH_APPROVED,
    ROLE_SEPH: Status.SEPH_APPROVED,
    ROLE_ENCPH: Status.ENCPH_APPROVED,
    ROLE_CDMA: Status.CDMA_APPROVED,
}

REJECTED_STATUS = {
    ROLE_COMMISSIONER: Status.REJECTED,
    ROLE_EEPH: Status.EEPH_REJECTED,
    ROLE_SEPH: Status.SEPH_REJECTED,
    ROLE_ENCPH: Status.ENCPH_REJECTED,
    ROLE_CDMA: Status.CDMA_REJECTED,
}

TRANSITIONS = {
    # engineer promotes a locally held work (no status yet)
    (None, ACTION_FORWARD, ROLE_ENGINEER): Status.PENDING_REVIEW,
}

for _role, _incoming in INCOMING_STATUS.items():
    TRANSITIONS[(_incoming, ACTION_APPROVE, _role)] = APPROVED_STATUS[_role]
    TRANSITIONS[(_incoming, ACTION_REJECT, _role)] = REJECTED_STATUS[_role]
    _receiver = next_role(_role)
    if _receiver is not None:
        TRANSITIONS[(APPROVED_STATUS[_role], ACTION_FORWARD, _role)] = INCOMING_STATUS[_receiver]

TERMINAL_STATUSES = frozenset([Status.CDMA_APPROVED]) | frozenset(REJECTED_STATUS.values())


def holder_role(status):
    """Role whose stage a status belongs to (None while held locally)."""
    if status is None:
        return None
    for role in INCOMING_STATUS:
        if status in (INCOMING_STATUS[role], APPROVED_STATUS[role], REJECTED_STATUS[role]):
            return role
    return None


def has_passed(item: WorkItem, role: str) -> bool:
    """Has the item moved on to a stage after `role`?"""
    holder = holder_role(item.status)
    if holder is None or role not in ALL_ROLES:
        return False
    return ALL_ROLES.index(holder) > ALL_ROLES.index(role)


def has_reached(item: WorkItem, role: str) -> bool:
    """Has the item ever been at `role`'s stage (now or earlier)?"""
    holder = holder_role(item.status)
    if holder is None or role not in ALL_ROLES:
        return False
    return ALL_ROLES.index(holder) >= ALL_ROLES.index(role)


def next_status(status, action: str, role: str):
    """Look up the transition table; None when the move is illegal."""
    return TRANSITIONS.get((status, action, role))


def is_pending_for(item: WorkItem, role: str) -> bool:
    """Is the item waiting in `role`'s queue for approve/reject?

    Exact match on the role's incoming status. When the item carries a
    forwardedTo section it must name the same role.
    """
    incoming = INCOMING_STATUS.get(role)
    if incoming is None or item.status is not incoming:
        return False
    section = item.section.strip()
    if section and section.upper() != get_role_label(role).upper():
        return False
    return True


def is_addressed_to(item: WorkItem, role: str) -> bool:
    """Is `role` the current holder of the item?

    True while the item is pending for the role, and after the role approved
    it until the role forwards it on.
    """
    if role == ROLE_ENGINEER:
        return item.status is None
    if is_pending_for(item, role):
        return True
    approved = APPROVED_STATUS.get(role)
    return item.status is approved and next_role(role) is not None


def can_apply(item: WorkItem, action: str, role: str) -> bool:
    """Guard: may `role` perform `action` on `item` right now."""
    if item is None or action not in ALL_ACTIONS:
        return False
    if not is_addressed_to(item, role):
        return False
    return next_status(item.status, action, role) is not None


def is_terminal(item: WorkItem) -> bool:
    return item.status in TERMINAL_STATUSES


def _require_remarks(remarks) -> str:
    reason = (remarks or "").strip()
    if not reason:
        raise ValidationError("Please enter remarks before rejecting.", field="remarks")
    return reason


def apply(item: WorkItem, action: str, role: str, remarks: str = "",
          department: str = None, actor: dict = None) -> WorkItem:
    """Apply one transition and return the new item.

    Illegal moves return `item` unchanged. Reject without remarks raises
    ValidationError before anything changes. `actor` is the acting session
    as `{username, role}`: an approval adds it to the item's verification
    trail under the role's label, a forward records its username.
    """
    if action == ACTION_REJECT:
        remarks = _require_remarks(remarks)

    if not can_apply(item, action, role):
        logger.warning(
            "Ignored %s by %s on work %s in status %r",
            action, role, item.id if item else None, item.status.value if item and item.status else None,
        )
        return item

    target = next_status(item.status, action, role)
    label = get_role_label(role)

    if action == ACTION_APPROVE:
        trail = dict(item.verifications)
        if actor:
            trail[label] = {**actor, "timestamp": now_iso()}
        updated = item.replace(status=target, remarks=remarks or "", verifications=trail)
    elif action == ACTION_REJECT:
        updated = item.replace(status=target, remarks=remarks, rejected_by=label)
    else:
        receiver = next_role(role)
        section = get_role_label(receiver)
        forwarded_to = ForwardedTo(
            department=department or DEFAULT_DEPARTMENT.get(section, ""),
            section=section,
            remarks=remarks or "",
            timestamp=now_iso(),
            forwarded_by=(actor or {}).get("username", ""),
        )
        # Attachments ride along untouched on the copied record.
        updated = item.replace(status=target, forwarded_to=forwarded_to)

    logger.info(
        "Work %s: %s by %s -> %s",
        item.id, action, label, updated.status.value,
    )
    return updated


def apply_bulk(items, ids, action: str, role: str, remarks: str = "",
               department: str = None, actor: dict = None):
    """Apply the same transition to every selected item, all or nothing.

    Returns (new_items, applied_ids). When any selected item fails the guard,
    the original sequence comes back with an empty id list.
    """
    wanted = set(ids)
    if action == ACTION_REJECT:
        remarks = _require_remarks(remarks)

    selected = [item for item in items if item.id in wanted]
    if not selected or len(selected) != len(wanted):
        return tuple(items), []
    if not all(can_apply(item, action, role) for item in selected):
        logger.warning("Bulk %s by %s refused: not every work is addressed to the role", action, role)
        return tuple(items), []

    result = tuple(
        apply(item, action, role, remarks=remarks, department=department, actor=actor)
        if item.id in wanted else item
        for item in items
    )
    return result, [item.id for item in selected]
