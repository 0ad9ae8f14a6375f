"""Task SQLAlchemy model and its assignee join table."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from ..database import Base

if TYPE_CHECKING:
    from .project import Project
    from .project_status import ProjectStatus
    from .user import User

# Gap between sibling order values
TASK_ORDER_STEP = 1000


class Task(Base):
    """
    Task model representing work items within a project.

    Tasks may nest through parent_id (subtasks). Siblings are ordered by
    the integer order column, spaced by TASK_ORDER_STEP.

    Attributes:
        id: Unique identifier (UUID)
        title: Task title
        description: Detailed description
        priority: low, medium or high
        due_date: Deadline
        start_date: Planned start
        end_date: Planned end
        estimated_time: Estimated effort in hours
        time_spent: Hours logged
        project_id: FK to parent project
        status_id: FK to a ProjectStatus of the same project
        parent_id: FK to parent task (for subtasks)
        created_by_id: FK to creating user
        order: Position among siblings
        created_at: Timestamp when task was created
        updated_at: Timestamp when task was last updated
    """

    __tablename__ = "Tasks"
    __allow_unmapped__ = True

    id = Column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )

    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(String(20), nullable=False, default="medium", index=True)

    due_date = Column(DateTime, nullable=True)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    estimated_time = Column(Float, nullable=True)
    time_spent = Column(Float, nullable=True)

    # Foreign keys
    project_id = Column(
        Uuid,
        ForeignKey("Projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status_id = Column(
        Uuid,
        ForeignKey("ProjectStatuses.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    parent_id = Column(
        Uuid,
        ForeignKey("Tasks.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    created_by_id = Column(
        Uuid,
        ForeignKey("Users.id", ondelete="SET NULL"),
        nullable=True,
    )

    order = Column(Integer, nullable=False, default=TASK_ORDER_STEP)

    # Timestamps
    created_at = Column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    # Relationships
    project = relationship("Project", back_populates="tasks")
    status = relationship("ProjectStatus", lazy="joined")
    parent = relationship(
        "Task",
        remote_side=[id],
        back_populates="subtasks",
    )
    subtasks = relationship(
        "Task",
        back_populates="parent",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    assignees = relationship(
        "TaskAssignee",
        back_populates="task",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    @property
    def completed(self) -> bool:
        """A task is completed while it sits in a completed status."""
        return bool(self.status is not None and self.status.is_completed_status)

    def __repr__(self) -> str:
        """String representation of Task."""
        return f"<Task(id={self.id}, title={self.title})>"


class TaskAssignee(Base):
    """User assigned to a task."""

    __tablename__ = "TaskAssignees"
    __allow_unmapped__ = True

    __table_args__ = (
        UniqueConstraint("task_id", "user_id", name="uq_task_assignee"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    task_id = Column(
        Uuid,
        ForeignKey("Tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        Uuid,
        ForeignKey("Users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    task = relationship("Task", back_populates="assignees")
    user = relationship("User", lazy="joined")

    def __repr__(self) -> str:
        return f"<TaskAssignee(task_id={self.task_id}, user_id={self.user_id})>"
