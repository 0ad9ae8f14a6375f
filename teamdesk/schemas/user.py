"""Pydantic schemas for User model validation."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from ..constants import SystemRole
from ..utils.security import password_policy_error
from .common import Pagination


class UserBase(BaseModel):
    """Base schema with common user fields."""

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["user@example.com"],
    )
    name: Optional[str] = Field(
        None,
        max_length=100,
        description="User's display name",
        examples=["John Doe"],
    )


class UserCreate(UserBase):
    """Schema for registering a new user."""

    password: str = Field(
        ...,
        min_length=8,
        max_length=72,
        description="User's password (min 8 characters, letters and digits)",
        examples=["SecurePass123"],
    )

    @field_validator("password")
    @classmethod
    def check_password_policy(cls, value: str) -> str:
        error = password_policy_error(value)
        if error:
            raise ValueError(error)
        return value


class UserUpdate(BaseModel):
    """Schema for updating a user. Role and active flag are admin-only."""

    name: Optional[str] = Field(None, max_length=100, description="Display name")
    email: Optional[EmailStr] = Field(None, description="Email address")
    image: Optional[str] = Field(None, max_length=500, description="Avatar URL")
    password: Optional[str] = Field(None, min_length=8, max_length=72, description="New password")
    role: Optional[SystemRole] = Field(None, description="System role")
    active: Optional[bool] = Field(None, description="Whether the account may sign in")

    @field_validator("password")
    @classmethod
    def check_password_policy(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            error = password_policy_error(value)
            if error:
                raise ValueError(error)
        return value


class UserRoleUpdate(BaseModel):
    """Schema for changing a user's system role."""

    role: SystemRole = Field(..., description="New system role", examples=["manager"])


class UserResponse(UserBase):
    """Schema for user response data (public profile)."""

    id: UUID
    image: Optional[str] = None
    role: str
    active: bool
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserSummary(BaseModel):
    """Minimal user information embedded in other responses."""

    id: UUID
    email: str
    name: Optional[str] = None
    image: Optional[str] = None
    role: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CurrentUserResponse(UserResponse):
    """The authenticated user with effective permissions."""

    permissions: List[str] = Field(default_factory=list)


class UserStats(BaseModel):
    """Work statistics of a user."""

    project_count: int = 0
    task_count: int = 0
    completed_task_count: int = 0
    completion_rate: int = Field(0, description="Completed tasks as whole percent")


class UserDetailResponse(UserResponse):
    """User profile with statistics."""

    stats: UserStats


class UserListResponse(BaseModel):
    """Paginated user list."""

    users: List[UserResponse]
    pagination: Pagination
