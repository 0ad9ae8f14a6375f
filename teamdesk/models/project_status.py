"""ProjectStatus model: the workflow columns of a project."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from ..database import Base

DEFAULT_STATUS_COLOR = "#6E56CF"

# Statuses created with every new project unless the caller supplies its own
DEFAULT_PROJECT_STATUSES = [
    {"name": "To Do", "color": "#3498db", "is_default": True, "is_completed_status": False, "order": 0},
    {"name": "In Progress", "color": "#f39c12", "is_default": False, "is_completed_status": False, "order": 1},
    {"name": "Done", "color": "#2ecc71", "is_default": False, "is_completed_status": True, "order": 2},
]


class ProjectStatus(Base):
    """
    A named task status scoped to one project.

    Attributes:
        id: Unique identifier (UUID)
        project_id: FK to the owning project
        name: Status name, unique within the project
        color: Display color (hex)
        description: Optional description
        order: Column position
        is_default: New tasks land here
        is_completed_status: Tasks here count as completed
    """

    __tablename__ = "ProjectStatuses"
    __allow_unmapped__ = True

    __table_args__ = (
        UniqueConstraint("project_id", "name", name="uq_project_status_name"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    project_id = Column(
        Uuid,
        ForeignKey("Projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(100), nullable=False)
    color = Column(String(20), nullable=False, default=DEFAULT_STATUS_COLOR)
    description = Column(String(500), nullable=True)
    order = Column(Integer, nullable=False, default=0)
    is_default = Column(Boolean, nullable=False, default=False)
    is_completed_status = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    project = relationship("Project", back_populates="statuses")

    def __repr__(self) -> str:
        return f"<ProjectStatus(id={self.id}, name={self.name})>"
