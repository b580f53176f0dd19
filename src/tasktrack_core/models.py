"""SQLAlchemy database models."""
from datetime import datetime
import enum

from sqlalchemy import (
    Column,
    String,
    Text,
    Integer,
    Date,
    DateTime,
    ForeignKey,
    Enum,
)
from sqlalchemy.orm import relationship

from .database import Base


class UserRole(str, enum.Enum):
    """Fixed workflow roles."""

    PM = "PM"
    DEV = "Dev"
    QA = "QA"


class TaskStatus(str, enum.Enum):
    """Task lifecycle status enum.

    created -> assigned_to_dev -> assigned_to_qa via the assign operation.
    completed is only reachable through a direct status update.
    """

    CREATED = "created"
    ASSIGNED_TO_DEV = "assigned_to_dev"
    ASSIGNED_TO_QA = "assigned_to_qa"
    COMPLETED = "completed"


class TaskEventType(str, enum.Enum):
    """Task audit event type enum."""

    CREATED = "created"
    ASSIGNED_TO_DEV = "assigned_to_dev"
    ASSIGNED_TO_QA = "assigned_to_qa"
    STATUS_CHANGED = "status_changed"
    NOTES_UPDATED = "notes_updated"
    DUE_DATE_UPDATED = "due_date_updated"


def _enum_values(enum_cls):
    # Persist enum values ("assigned_to_dev") rather than names ("ASSIGNED_TO_DEV")
    return [e.value for e in enum_cls]


class User(Base):
    """
    Workflow participant.

    Users are created by the seed step only and never updated or deleted.
    The role is asserted by clients through the user id; there are no
    credentials stored.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), nullable=False, unique=True)
    role = Column(Enum(UserRole, values_callable=_enum_values, name="userrole"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<User {self.username} ({self.role.value})>"


class Task(Base):
    """Task moving through the PM → Dev → QA workflow."""

    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(
        Enum(TaskStatus, values_callable=_enum_values, name="taskstatus"),
        nullable=False,
        default=TaskStatus.CREATED,
        index=True,
    )
    due_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    # Audit fields
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    owner = relationship("User", foreign_keys=[owner_id])
    creator = relationship("User", foreign_keys=[created_by])
    events = relationship("TaskEvent", back_populates="task")

    @property
    def owner_username(self) -> str:
        return self.owner.username

    @property
    def owner_role(self) -> UserRole:
        return self.owner.role

    @property
    def creator_username(self) -> str:
        return self.creator.username

    def __repr__(self) -> str:
        return f"<Task {self.id}: {self.title[:30]} ({self.status.value})>"


class TaskEvent(Base):
    """Append-only audit record of one change to a task."""

    __tablename__ = "task_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    event_type = Column(
        Enum(TaskEventType, values_callable=_enum_values, name="taskeventtype"),
        nullable=False,
    )
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    changed_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    # Relationships
    task = relationship("Task", back_populates="events")
    user = relationship("User")

    @property
    def changed_by_username(self) -> str:
        return self.user.username

    def __repr__(self) -> str:
        return f"<TaskEvent {self.task_id}: {self.event_type.value}>"
