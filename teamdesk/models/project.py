"""Project SQLAlchemy model."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, Float, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from ..database import Base

if TYPE_CHECKING:
    from .project_status import ProjectStatus
    from .task import Task
    from .team_member import TeamMember
    from .user import User


class Project(Base):
    """
    Project model. Projects own their statuses, tasks and team members.

    Attributes:
        id: Unique identifier (UUID)
        title: Project title
        description: Optional description
        start_date: Planned start
        end_date: Planned end
        due_date: Delivery deadline
        estimated_time: Estimated effort in hours
        total_time_spent: Hours logged against the project
        created_by_id: FK to the creating user
        created_at: Timestamp when project was created
        updated_at: Timestamp when project was last updated
    """

    __tablename__ = "Projects"
    __allow_unmapped__ = True

    id = Column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )

    title = Column(
        String(255),
        nullable=False,
    )
    description = Column(
        Text,
        nullable=True,
    )

    # Schedule
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    due_date = Column(DateTime, nullable=True)
    estimated_time = Column(Float, nullable=True)
    total_time_spent = Column(Float, nullable=True, default=0)

    created_by_id = Column(
        Uuid,
        ForeignKey("Users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

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
    created_by = relationship(
        "User",
        foreign_keys=[created_by_id],
        lazy="joined",
    )
    statuses = relationship(
        "ProjectStatus",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ProjectStatus.order",
        lazy="selectin",
    )
    team_members = relationship(
        "TeamMember",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    tasks = relationship(
        "Task",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        """String representation of Project."""
        return f"<Project(id={self.id}, title={self.title})>"
