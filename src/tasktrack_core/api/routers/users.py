"""User API endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tasktrack_core import crud, schemas

from ...database import get_db

logger = logging.getLogger("tasktrack-core.users")

router = APIRouter(tags=["users"])


@router.get("", response_model=list[schemas.UserResponse])
def list_users(db: Session = Depends(get_db)):
    """List all users ordered by ID."""
    try:
        return crud.list_users(db)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching users: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch users")


@router.get("/{user_id}", response_model=schemas.UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db)):
    """
    Get a specific user by ID.

    - **user_id**: Integer ID of the user
    """
    try:
        return crud.get_user(db, user_id)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching user {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch user")
