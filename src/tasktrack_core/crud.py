"""CRUD operations for users and tasks.

Every function takes the SQLAlchemy session it works in. Mutations perform
all of their writes (task row plus audit events) and commit once; any
failure rolls the session back so no partial audit trail is left behind.
"""
import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from . import models
from .errors import NotFoundError, ValidationError
from .state_machine import (
    ASSIGNMENT_EVENT_TYPES,
    check_assign_authorization,
    check_create_authorization,
    check_update_authorization,
    diff_task_update,
    format_owner_status,
    resolve_assignment,
)

logger = logging.getLogger("tasktrack-core.crud")


# ============================================================================
# User CRUD Operations
# ============================================================================

def get_user_by_id(
    db: Session,
    user_id: int,
) -> Optional[models.User]:
    """
    Get a user by ID.

    Args:
        db: Database session
        user_id: User ID

    Returns:
        User if found, None otherwise
    """
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user(db: Session, user_id: int) -> models.User:
    """Get a user by ID or raise NotFoundError."""
    user = get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found", entity="user")
    return user


def get_user_by_username(db: Session, username: str) -> Optional[models.User]:
    """Get a user by username."""
    return db.query(models.User).filter(models.User.username == username).first()


def list_users(db: Session) -> list[models.User]:
    """List all users ordered by ID."""
    return db.query(models.User).order_by(models.User.id).all()


def _require_user(db: Session, user_id: int, message: str) -> models.User:
    user = get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError(message, entity="user")
    return user


# ============================================================================
# Task Read Operations
# ============================================================================

def _joined_task_query(db: Session):
    """Task query with owner and creator loaded for the joined projection."""
    return db.query(models.Task).options(
        joinedload(models.Task.owner),
        joinedload(models.Task.creator),
    )


def get_task_by_id(db: Session, task_id: int) -> Optional[models.Task]:
    """
    Get a task by ID.

    Args:
        db: Database session
        task_id: Task ID

    Returns:
        Task with owner and creator loaded, or None if not found
    """
    return _joined_task_query(db).filter(models.Task.id == task_id).first()


def get_task(db: Session, task_id: int) -> models.Task:
    """Get a task by ID or raise NotFoundError."""
    task = get_task_by_id(db, task_id)
    if not task:
        raise NotFoundError("Task not found", entity="task")
    return task


def get_tasks(
    db: Session,
    status: Optional[str] = None,
    owner_id: Optional[int] = None,
    created_by: Optional[int] = None,
) -> list[models.Task]:
    """
    List tasks matching all provided filters, newest first.

    Args:
        db: Database session
        status: Filter by status value
        owner_id: Filter by current owner
        created_by: Filter by creator

    Returns:
        List of tasks with owner and creator loaded
    """
    query = _joined_task_query(db)

    # Apply filters
    if status:
        query = query.filter(models.Task.status == status)

    if owner_id:
        query = query.filter(models.Task.owner_id == owner_id)

    if created_by:
        query = query.filter(models.Task.created_by == created_by)

    return query.order_by(models.Task.created_at.desc(), models.Task.id.desc()).all()


def get_task_history(db: Session, task_id: int) -> list[models.TaskEvent]:
    """
    Get the audit history for a task, newest first.

    Args:
        db: Database session
        task_id: Task ID

    Returns:
        List of TaskEvent entries with the acting user loaded

    Raises:
        NotFoundError: If the task does not exist
    """
    exists = db.query(models.Task.id).filter(models.Task.id == task_id).first()
    if not exists:
        raise NotFoundError("Task not found", entity="task")

    return (
        db.query(models.TaskEvent)
        .options(joinedload(models.TaskEvent.user))
        .filter(models.TaskEvent.task_id == task_id)
        .order_by(models.TaskEvent.created_at.desc(), models.TaskEvent.id.desc())
        .all()
    )


# ============================================================================
# Task Mutations
# ============================================================================

def create_task(
    db: Session,
    title: str,
    created_by: int,
    owner_id: int,
    due_date: Optional[date] = None,
    notes: Optional[str] = None,
) -> models.Task:
    """
    Create a new task in ``created`` status.

    Args:
        db: Database session
        title: Task title (non-empty)
        created_by: ID of the PM creating the task
        owner_id: ID of the initial owner
        due_date: Optional due date
        notes: Optional notes

    Returns:
        Created Task with joined fields

    Raises:
        ValidationError: If the title is empty
        NotFoundError: If the creator or owner does not exist
        ForbiddenError: If the creator is not a PM
    """
    if not title or not title.strip():
        raise ValidationError("Missing required fields: title")

    creator = _require_user(db, created_by, "Creator user not found")
    check_create_authorization(creator.role)
    _require_user(db, owner_id, "Owner user not found")

    try:
        task = models.Task(
            title=title,
            owner_id=owner_id,
            status=models.TaskStatus.CREATED,
            due_date=due_date,
            notes=notes,
            created_by=created_by,
        )
        db.add(task)
        db.flush()  # Get task ID for the creation event

        # Record creation in history
        db.add(models.TaskEvent(
            task_id=task.id,
            event_type=models.TaskEventType.CREATED,
            new_value=f"Task created: {title}",
            changed_by=created_by,
        ))

        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Created task {task.id}: {title} (owner {owner_id})")
    return get_task(db, task.id)


def assign_task(
    db: Session,
    task_id: int,
    assigned_by: int,
    new_owner_id: int,
) -> models.Task:
    """
    Hand a task to a new owner following the transition table.

    Args:
        db: Database session
        task_id: Task ID
        assigned_by: ID of the acting user
        new_owner_id: ID of the proposed new owner

    Returns:
        Updated Task with joined fields

    Raises:
        NotFoundError: If the task, assigner or new owner does not exist
        InvalidTransitionError: If (status, assigner role, new owner role) is not allowed
        ForbiddenError: If the task has left ``created`` and the assigner is not its owner
    """
    task = get_task(db, task_id)
    assigner = _require_user(db, assigned_by, "Assigner user not found")
    new_owner = _require_user(db, new_owner_id, "New owner user not found")

    old_status = task.status
    old_owner_id = task.owner_id

    new_status = resolve_assignment(old_status, assigner.role, new_owner.role)
    check_assign_authorization(old_status, assigner.id, old_owner_id)

    try:
        task.owner_id = new_owner.id
        task.status = new_status

        db.add(models.TaskEvent(
            task_id=task.id,
            event_type=ASSIGNMENT_EVENT_TYPES[new_status],
            old_value=format_owner_status(old_owner_id, old_status),
            new_value=format_owner_status(new_owner.id, new_status),
            changed_by=assigner.id,
        ))

        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        f"Assigned task {task_id}: {old_status.value} → {new_status.value} "
        f"(owner {old_owner_id} → {new_owner.id}, by {assigner.id})"
    )
    return get_task(db, task_id)


def update_task(
    db: Session,
    task_id: int,
    updated_by: int,
    patch: dict,
) -> models.Task:
    """
    Apply a partial edit to a task.

    Args:
        db: Database session
        task_id: Task ID
        updated_by: ID of the acting user
        patch: Present fields among ``status``, ``notes``, ``due_date``

    Returns:
        Updated Task with joined fields

    Raises:
        NotFoundError: If the task or acting user does not exist
        ForbiddenError: If the acting user is neither owner nor creator
        ValidationError: If the status is invalid or nothing would change
    """
    task = get_task(db, task_id)
    _require_user(db, updated_by, "User not found")
    check_update_authorization(updated_by, task.owner_id, task.created_by)

    changes = diff_task_update(task.status, task.notes, task.due_date, patch)
    if not changes:
        raise ValidationError("No fields to update")

    try:
        for change in changes:
            setattr(task, change.field, change.value)
        db.flush()  # Single row update before the events

        for change in changes:
            db.add(models.TaskEvent(
                task_id=task.id,
                event_type=change.event_type,
                old_value=change.old_value,
                new_value=change.new_value,
                changed_by=updated_by,
            ))
            db.flush()  # Keep event ids in status → notes → due_date order

        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Updated task {task_id}: {', '.join(c.field for c in changes)} (by {updated_by})")
    return get_task(db, task_id)
