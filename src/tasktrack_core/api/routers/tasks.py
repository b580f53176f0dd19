"""Task API endpoints.

Acting users are identified by the ids in the request body
(``created_by``, ``assigned_by``, ``updated_by``); there is no session.
Domain errors raised by the CRUD layer are turned into responses by the
handlers registered in ``tasktrack_core.api.main``.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tasktrack_core import crud, schemas

from ...database import get_db

logger = logging.getLogger("tasktrack-core.tasks")

router = APIRouter(tags=["tasks"])


@router.get("", response_model=list[schemas.TaskResponse])
def list_tasks(
    status: Optional[str] = Query(None, description="Filter by status"),
    owner_id: Optional[int] = Query(None, description="Filter by current owner"),
    created_by: Optional[int] = Query(None, description="Filter by creator"),
    db: Session = Depends(get_db),
):
    """
    List tasks, newest first.

    All provided filters must match.

    - **status**: created, assigned_to_dev, assigned_to_qa or completed
    - **owner_id**: Current owner's user ID
    - **created_by**: Creator's user ID
    """
    try:
        return crud.get_tasks(db, status=status, owner_id=owner_id, created_by=created_by)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching tasks: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch tasks")


@router.get("/{task_id}/history", response_model=list[schemas.TaskEventResponse])
def get_task_history(task_id: int, db: Session = Depends(get_db)):
    """
    Get the audit history of a task, newest first.

    - **task_id**: Integer ID of the task
    """
    try:
        return crud.get_task_history(db, task_id)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching task history: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch task history")


@router.get("/{task_id}", response_model=schemas.TaskResponse)
def get_task(task_id: int, db: Session = Depends(get_db)):
    """
    Get a specific task by ID.

    - **task_id**: Integer ID of the task
    """
    try:
        return crud.get_task(db, task_id)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching task: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch task")


@router.post("", response_model=schemas.TaskResponse, status_code=201)
def create_task(task_data: schemas.TaskCreate, db: Session = Depends(get_db)):
    """
    Create a new task (PM only).

    - **title**: Task title
    - **created_by**: ID of a PM user
    - **owner_id**: ID of the initial owner
    - **due_date**: Due date (optional, YYYY-MM-DD)
    - **notes**: Notes (optional)
    """
    try:
        return crud.create_task(
            db,
            title=task_data.title,
            created_by=task_data.created_by,
            owner_id=task_data.owner_id,
            due_date=task_data.due_date,
            notes=task_data.notes,
        )
    except SQLAlchemyError as e:
        logger.error(f"Error creating task: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create task")


@router.put("/{task_id}/assign", response_model=schemas.TaskResponse)
def assign_task(
    task_id: int,
    assignment: schemas.TaskAssign,
    db: Session = Depends(get_db),
):
    """
    Hand a task to its next owner (PM → Dev → QA).

    - **assigned_by**: ID of the acting user
    - **new_owner_id**: ID of the new owner

    Allowed handoffs: a PM assigns a ``created`` task to a Dev; the owning
    Dev assigns an ``assigned_to_dev`` task to a QA.
    """
    try:
        return crud.assign_task(
            db,
            task_id=task_id,
            assigned_by=assignment.assigned_by,
            new_owner_id=assignment.new_owner_id,
        )
    except SQLAlchemyError as e:
        logger.error(f"Error assigning task: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to assign task")


@router.put("/{task_id}", response_model=schemas.TaskResponse)
def update_task(
    task_id: int,
    task_update: schemas.TaskUpdate,
    db: Session = Depends(get_db),
):
    """
    Edit a task's status, notes or due date.

    Only the current owner or the creator may edit. Fields left out of the
    body are untouched; at least one field must change.

    - **updated_by**: ID of the acting user
    - **status**: New status (optional)
    - **notes**: New notes (optional, null clears)
    - **due_date**: New due date (optional, null clears)
    """
    try:
        return crud.update_task(
            db,
            task_id=task_id,
            updated_by=task_update.updated_by,
            patch=task_update.patch(),
        )
    except SQLAlchemyError as e:
        logger.error(f"Error updating task: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update task")
