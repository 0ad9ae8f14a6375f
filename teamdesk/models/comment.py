"""Comment model for task discussions."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Text, Uuid
from sqlalchemy.orm import relationship

from ..database import Base


class Comment(Base):
    """
    Comment on a task.

    Attributes:
        id: Unique identifier (UUID)
        content: Comment text
        task_id: FK to the task
        user_id: FK to the author
    """

    __tablename__ = "Comments"
    __allow_unmapped__ = True

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    content = Column(Text, nullable=False)
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
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    user = relationship("User", lazy="joined")

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, task_id={self.task_id})>"
