"""User SQLAlchemy model for authentication and user management."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Column, DateTime, String, Uuid
from sqlalchemy.orm import relationship

from ..database import Base

if TYPE_CHECKING:
    from .attendance import Attendance
    from .team_member import TeamMember


class User(Base):
    """
    User model representing application users.

    Attributes:
        id: Unique identifier (UUID)
        email: User's email address (unique)
        name: User's display name
        password_hash: Hashed password for authentication
        image: URL to user's avatar image
        role: System role name (admin, manager, user, guest)
        active: Whether the account may sign in
        last_login: Timestamp of the most recent login
        created_at: Timestamp when user was created
        updated_at: Timestamp when user was last updated
    """

    __tablename__ = "Users"
    __allow_unmapped__ = True

    # Primary key - UUID
    id = Column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )

    # Authentication fields
    email = Column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    password_hash = Column(
        String(255),
        nullable=False,
    )

    # Profile fields
    name = Column(
        String(100),
        nullable=True,
    )
    image = Column(
        String(500),
        nullable=True,
    )

    # Access fields
    role = Column(
        String(20),
        nullable=False,
        default="user",
        index=True,
    )
    active = Column(
        Boolean,
        nullable=False,
        default=True,
    )
    last_login = Column(
        DateTime,
        nullable=True,
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
    memberships = relationship(
        "TeamMember",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    attendance_records = relationship(
        "Attendance",
        foreign_keys="Attendance.user_id",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        """String representation of User."""
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
