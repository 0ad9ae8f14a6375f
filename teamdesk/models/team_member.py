"""TeamMember model: joins a user to a project with a project role."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from ..database import Base

if TYPE_CHECKING:
    from .project import Project
    from .user import User


class TeamMember(Base):
    """
    Team member association model.

    Attributes:
        id: Unique identifier (UUID)
        user_id: FK to the member
        project_id: FK to the project
        role: Role within the project (owner, admin, manager, member)
        joined_at: When the user joined the project
    """

    __tablename__ = "TeamMembers"
    __allow_unmapped__ = True

    __table_args__ = (
        UniqueConstraint("user_id", "project_id", name="uq_team_member_user_project"),
    )

    id = Column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )
    user_id = Column(
        Uuid,
        ForeignKey("Users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    project_id = Column(
        Uuid,
        ForeignKey("Projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role = Column(
        String(20),
        nullable=False,
        default="member",
    )
    joined_at = Column(
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
    user = relationship(
        "User",
        back_populates="memberships",
        lazy="joined",
    )
    project = relationship(
        "Project",
        back_populates="team_members",
        lazy="joined",
    )

    def __repr__(self) -> str:
        """String representation of TeamMember."""
        return (
            f"<TeamMember(user_id={self.user_id}, project_id={self.project_id}, "
            f"role={self.role})>"
        )
