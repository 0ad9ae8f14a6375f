"""Activity model: append-only audit log of user actions."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from ..database import Base


class Activity(Base):
    """
    Activity log entry.

    Attributes:
        id: Unique identifier (UUID)
        action: Action key (e.g. 'created', 'CHECK_IN', 'permission_denied')
        entity_type: Kind of entity acted upon (project, task, attendance, ...)
        entity_id: ID of the entity acted upon
        description: Human readable summary
        user_id: FK to the acting user
        project_id: Optional FK to the related project
        task_id: Optional FK to the related task
        created_at: When the action happened
    """

    __tablename__ = "Activities"
    __allow_unmapped__ = True

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    action = Column(String(50), nullable=False, index=True)
    entity_type = Column(String(50), nullable=False, index=True)
    entity_id = Column(String(64), nullable=False)
    description = Column(Text, nullable=True)
    user_id = Column(
        Uuid,
        ForeignKey("Users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    project_id = Column(
        Uuid,
        ForeignKey("Projects.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    task_id = Column(
        Uuid,
        ForeignKey("Tasks.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    user = relationship("User", lazy="joined")

    def __repr__(self) -> str:
        return f"<Activity(action={self.action}, entity_type={self.entity_type})>"
