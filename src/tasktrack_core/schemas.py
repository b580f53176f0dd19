"""Pydantic schemas for request/response validation."""
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict, field_validator

from .models import UserRole, TaskStatus, TaskEventType


def _blank_to_none(value):
    # Browser date inputs submit "" when cleared
    if isinstance(value, str) and not value.strip():
        return None
    return value


# ============================================================================
# User Schemas
# ============================================================================

class UserResponse(BaseModel):
    """Schema for user responses."""

    id: int
    username: str
    role: UserRole
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


# ============================================================================
# Task Schemas
# ============================================================================

class TaskCreate(BaseModel):
    """Schema for creating a new task.

    Only PM users may create tasks. The task starts in ``created`` status
    and owned by ``owner_id``.
    """

    title: str = Field(..., min_length=1, max_length=255, description="Task title")
    created_by: int = Field(..., description="ID of the PM creating the task")
    owner_id: int = Field(..., description="ID of the initial owner")
    due_date: Optional[date] = Field(None, description="Due date (YYYY-MM-DD)")
    notes: Optional[str] = Field(None, description="Free-form notes")

    @field_validator("due_date", mode="before")
    @classmethod
    def normalize_due_date(cls, value):
        return _blank_to_none(value)


class TaskAssign(BaseModel):
    """Schema for handing a task to a new owner."""

    assigned_by: int = Field(..., description="ID of the acting user")
    new_owner_id: int = Field(..., description="ID of the new owner")


class TaskUpdate(BaseModel):
    """Schema for editing a task.

    Only fields present in the request body are applied; an explicit null
    clears ``notes`` or ``due_date``. ``status`` is validated by the
    lifecycle engine so that an unknown value is reported as such.
    """

    updated_by: int = Field(..., description="ID of the acting user (owner or creator)")
    status: Optional[str] = None
    notes: Optional[str] = None
    due_date: Optional[date] = None

    @field_validator("due_date", mode="before")
    @classmethod
    def normalize_due_date(cls, value):
        return _blank_to_none(value)

    def patch(self) -> dict:
        """Return the editable fields explicitly sent by the client."""
        return {
            name: getattr(self, name)
            for name in ("status", "notes", "due_date")
            if name in self.model_fields_set
        }


class TaskResponse(BaseModel):
    """Schema for a task joined with owner and creator display fields."""

    id: int
    title: str
    owner_id: int
    status: TaskStatus
    due_date: Optional[date] = None
    notes: Optional[str] = None
    created_by: int
    created_at: datetime
    updated_at: datetime
    # Joined fields
    owner_username: str
    owner_role: UserRole
    creator_username: str

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class TaskEventResponse(BaseModel):
    """Schema for task history entries."""

    id: int
    task_id: int
    event_type: TaskEventType
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    changed_by: int
    created_at: datetime
    # Joined fields
    changed_by_username: str

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


# ============================================================================
# Service Schemas
# ============================================================================

class HealthResponse(BaseModel):
    """Schema for the health check."""

    status: str
    database: str
