"""Role, Permission and RolePermission models for the permission matrix.

The matrix is stored as a join table between Roles and Permissions.
A user's role is referenced by name from Users.role.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from ..database import Base


class Role(Base):
    """
    System role.

    Attributes:
        id: Unique identifier (UUID)
        name: Role key referenced by Users.role (unique)
        description: Human readable description
        color: Display color (hex)
        is_system: Whether the role ships with the application
    """

    __tablename__ = "Roles"
    __allow_unmapped__ = True

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    name = Column(String(50), unique=True, nullable=False, index=True)
    description = Column(String(255), nullable=True)
    color = Column(String(20), nullable=True)
    is_system = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    role_permissions = relationship(
        "RolePermission",
        back_populates="role",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Role(name={self.name})>"


class Permission(Base):
    """
    Named permission.

    Attributes:
        id: Unique identifier (UUID)
        name: Permission key, e.g. 'task_creation' (unique)
        description: Human readable description
        category: Grouping used for display
    """

    __tablename__ = "Permissions"
    __allow_unmapped__ = True

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    name = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(String(255), nullable=True)
    category = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    role_permissions = relationship(
        "RolePermission",
        back_populates="permission",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Permission(name={self.name})>"


class RolePermission(Base):
    """Grant of a permission to a role."""

    __tablename__ = "RolePermissions"
    __allow_unmapped__ = True

    __table_args__ = (
        UniqueConstraint("role_id", "permission_id", name="uq_role_permission"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    role_id = Column(
        Uuid,
        ForeignKey("Roles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    permission_id = Column(
        Uuid,
        ForeignKey("Permissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    role = relationship("Role", back_populates="role_permissions", lazy="joined")
    permission = relationship("Permission", back_populates="role_permissions", lazy="joined")

    def __repr__(self) -> str:
        return f"<RolePermission(role_id={self.role_id}, permission_id={self.permission_id})>"
