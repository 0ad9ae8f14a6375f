"""Pydantic schemas for team membership."""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..constants import TeamRole
from .common import Pagination
from .user import UserSummary


class TeamGroupBy(str, Enum):
    """Grouping modes for team listings."""

    USER = "user"
    PROJECT = "project"


class TeamSortField(str, Enum):
    """Sortable team listing columns."""

    NAME = "name"
    EMAIL = "email"
    JOINED_AT = "joined_at"
    TASK_COUNT = "task_count"


class ProjectSummary(BaseModel):
    """Minimal project information embedded in membership rows."""

    id: UUID
    title: str

    model_config = ConfigDict(from_attributes=True)


class TeamMemberCreate(BaseModel):
    """Schema for adding a user to a project."""

    user_id: UUID = Field(..., description="ID of the user to add")
    project_id: UUID = Field(..., description="ID of the project")
    role: TeamRole = Field(
        TeamRole.MEMBER,
        description="Role within the project",
        examples=["member", "manager"],
    )


class TeamMemberUpdate(BaseModel):
    """Schema for changing a member's project role."""

    role: TeamRole = Field(..., description="New role within the project")


class TeamMemberResponse(BaseModel):
    """Membership row with user and project details."""

    id: UUID
    user_id: UUID
    project_id: UUID
    role: str
    joined_at: datetime
    user: Optional[UserSummary] = None
    project: Optional[ProjectSummary] = None
    task_count: int = Field(0, description="Tasks assigned to the user in this project")

    model_config = ConfigDict(from_attributes=True)


class TeamListResponse(BaseModel):
    """Paginated membership list."""

    team_members: List[TeamMemberResponse]
    pagination: Pagination


class UserTeamGroup(BaseModel):
    """One user with every project they belong to."""

    user: UserSummary
    projects: List[ProjectSummary]
    membership_ids: List[UUID]
    task_count: int = 0


class ProjectTeamGroup(BaseModel):
    """One project with its members."""

    project: ProjectSummary
    members: List[TeamMemberResponse]


class TeamGroupedResponse(BaseModel):
    """Grouped team listing; exactly one of the group lists is filled."""

    group_by: TeamGroupBy
    users: List[UserTeamGroup] = Field(default_factory=list)
    projects: List[ProjectTeamGroup] = Field(default_factory=list)
