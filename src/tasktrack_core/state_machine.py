"""Task lifecycle engine: role-gated assignment transitions and update diffs.

Assignment follows a fixed handoff chain:
- created --(PM assigns to a Dev)--> assigned_to_dev
- assigned_to_dev --(owning Dev assigns to a QA)--> assigned_to_qa

assigned_to_qa and completed have no outgoing assignment. Direct status edits
through the update path are not checked against this table; any owner or
creator may set any of the four statuses.

Everything here is pure: callers resolve users and tasks, then persist the
results.
"""
import logging
from datetime import date, datetime
from typing import Any, NamedTuple, Optional

from .errors import ForbiddenError, InvalidTransitionError, ValidationError
from .models import TaskEventType, TaskStatus, UserRole

logger = logging.getLogger("tasktrack-core.state_machine")


# Assignment transition table
# Maps (current status, assigner role, new owner role) → resulting status
TRANSITION_TABLE: dict[tuple[TaskStatus, UserRole, UserRole], TaskStatus] = {
    (TaskStatus.CREATED, UserRole.PM, UserRole.DEV): TaskStatus.ASSIGNED_TO_DEV,
    (TaskStatus.ASSIGNED_TO_DEV, UserRole.DEV, UserRole.QA): TaskStatus.ASSIGNED_TO_QA,
}

# Event recorded for each assignment result
ASSIGNMENT_EVENT_TYPES: dict[TaskStatus, TaskEventType] = {
    TaskStatus.ASSIGNED_TO_DEV: TaskEventType.ASSIGNED_TO_DEV,
    TaskStatus.ASSIGNED_TO_QA: TaskEventType.ASSIGNED_TO_QA,
}


class FieldChange(NamedTuple):
    """One staged column change and the audit event describing it."""

    field: str
    value: Any
    event_type: TaskEventType
    old_value: str
    new_value: str


def is_assignment_valid(
    current_status: TaskStatus,
    assigner_role: UserRole,
    new_owner_role: UserRole,
) -> bool:
    """Check whether the transition table has an entry for this combination."""
    return (current_status, assigner_role, new_owner_role) in TRANSITION_TABLE


def resolve_assignment(
    current_status: TaskStatus,
    assigner_role: UserRole,
    new_owner_role: UserRole,
) -> TaskStatus:
    """
    Look up the status a task moves to when reassigned.

    Args:
        current_status: Status of the task before the assignment
        assigner_role: Role of the acting user
        new_owner_role: Role of the proposed new owner

    Returns:
        The resulting status

    Raises:
        InvalidTransitionError: If the combination is not in the table
    """
    new_status = TRANSITION_TABLE.get((current_status, assigner_role, new_owner_role))
    if new_status is None:
        error_msg = (
            f"Invalid transition: Cannot assign from status '{current_status.value}' "
            f"by {assigner_role.value} to {new_owner_role.value}"
        )
        logger.warning(f"Blocked assignment: {error_msg}")
        raise InvalidTransitionError(
            message=error_msg,
            current_status=current_status,
            assigner_role=assigner_role,
            new_owner_role=new_owner_role,
        )

    logger.debug(
        f"Valid assignment: {current_status.value} → {new_status.value} "
        f"({assigner_role.value} to {new_owner_role.value})"
    )
    return new_status


def check_assign_authorization(
    current_status: TaskStatus,
    assigner_id: int,
    owner_id: int,
) -> None:
    """
    Verify the assigner may hand the task off.

    Once a task has left ``created`` only its current owner may assign it.
    While it is still ``created`` the PM performs the first handoff even
    though the task may already name someone else as owner.

    Raises:
        ForbiddenError: If the assigner is not the current owner
    """
    if current_status != TaskStatus.CREATED and assigner_id != owner_id:
        logger.warning(f"Blocked assignment by user {assigner_id}: task owned by user {owner_id}")
        raise ForbiddenError("Only the current task owner can assign the task")


def check_update_authorization(updated_by: int, owner_id: int, created_by: int) -> None:
    """Only the current owner or the creator may edit a task."""
    if updated_by not in (owner_id, created_by):
        raise ForbiddenError("Only task owner or creator can update the task")


def check_create_authorization(creator_role: UserRole) -> None:
    """Only PM users open tasks."""
    if creator_role != UserRole.PM:
        raise ForbiddenError("Only PM users can create tasks")


def parse_status(value: Any) -> TaskStatus:
    """Convert a client-supplied status into a TaskStatus.

    Raises:
        ValidationError: If the value is not one of the four statuses
    """
    try:
        return TaskStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid status: {value}")


def format_owner_status(owner_id: int, status: TaskStatus) -> str:
    """Render the owner/status pair stored on assignment events."""
    return f"Owner: {owner_id}, Status: {status.value}"


def format_event_date(value: Optional[date]) -> str:
    """Render a due date for the audit log (YYYY-MM-DD, or empty when unset)."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def diff_task_update(
    current_status: TaskStatus,
    current_notes: Optional[str],
    current_due_date: Optional[date],
    patch: dict,
) -> list[FieldChange]:
    """
    Compute the changes a patch makes to a task.

    Only keys present in ``patch`` are considered; a present key whose value
    equals the current one is ignored. Changes are returned in the order
    status, notes, due_date.

    Args:
        current_status: Task's current status
        current_notes: Task's current notes
        current_due_date: Task's current due date
        patch: Mapping with any of ``status``, ``notes``, ``due_date``

    Returns:
        List of staged changes (empty if nothing differs)

    Raises:
        ValidationError: If a changed status is not a valid value
    """
    changes: list[FieldChange] = []

    if "status" in patch and patch["status"] != current_status.value:
        new_status = parse_status(patch["status"])
        changes.append(FieldChange(
            field="status",
            value=new_status,
            event_type=TaskEventType.STATUS_CHANGED,
            old_value=current_status.value,
            new_value=new_status.value,
        ))

    if "notes" in patch and patch["notes"] != current_notes:
        changes.append(FieldChange(
            field="notes",
            value=patch["notes"],
            event_type=TaskEventType.NOTES_UPDATED,
            old_value=current_notes or "",
            new_value=patch["notes"] or "",
        ))

    if "due_date" in patch:
        old_due = format_event_date(current_due_date)
        new_due = format_event_date(patch["due_date"])
        if old_due != new_due:
            changes.append(FieldChange(
                field="due_date",
                value=patch["due_date"],
                event_type=TaskEventType.DUE_DATE_UPDATED,
                old_value=old_due,
                new_value=new_due,
            ))

    return changes


def get_allowed_assignments(
    current_status: TaskStatus,
) -> list[tuple[UserRole, UserRole, TaskStatus]]:
    """
    List the assignments available from a status.

    Returns:
        (assigner role, new owner role, resulting status) tuples
    """
    return [
        (assigner_role, new_owner_role, new_status)
        for (status, assigner_role, new_owner_role), new_status in TRANSITION_TABLE.items()
        if status == current_status
    ]


def next_owner_role(current_status: TaskStatus) -> Optional[UserRole]:
    """Role the task is normally handed to next, or None when no handoff exists."""
    allowed = get_allowed_assignments(current_status)
    if not allowed:
        return None
    return allowed[0][1]


def is_terminal_for_assignment(current_status: TaskStatus) -> bool:
    """Check if a status has no outgoing assignment."""
    return not get_allowed_assignments(current_status)
