"""Pydantic schemas for Project and ProjectStatus validation."""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..utils.time_utils import to_naive_utc
from .common import Pagination
from .team import TeamMemberResponse
from .user import UserSummary

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class ProjectSortField(str, Enum):
    """Sortable project columns."""

    TITLE = "title"
    START_DATE = "start_date"
    END_DATE = "end_date"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"


class SortOrder(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


# ============================================================================
# Project statuses
# ============================================================================


class ProjectStatusBase(BaseModel):
    """Common status fields."""

    name: str = Field(..., min_length=1, max_length=100, examples=["In Review"])
    color: str = Field("#6E56CF", pattern=HEX_COLOR_PATTERN, description="Hex color")
    description: Optional[str] = Field(None, max_length=500)
    is_default: bool = Field(False, description="New tasks land in this status")
    is_completed_status: bool = Field(False, description="Tasks here count as completed")


class ProjectStatusCreate(ProjectStatusBase):
    """Schema for creating a status. Order defaults to the end of the list."""

    order: Optional[int] = Field(None, ge=0)


class ProjectStatusUpdate(BaseModel):
    """Schema for updating a status."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    description: Optional[str] = Field(None, max_length=500)
    order: Optional[int] = Field(None, ge=0)
    is_default: Optional[bool] = None
    is_completed_status: Optional[bool] = None


class ProjectStatusResponse(ProjectStatusBase):
    """Status as returned by the API."""

    id: UUID
    project_id: UUID
    order: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# Projects
# ============================================================================


class ProjectBase(BaseModel):
    """Base schema with common project fields."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Project title",
        examples=["Website Redesign"],
    )
    description: Optional[str] = Field(
        None,
        description="Project description",
        examples=["Refresh the marketing site"],
    )
    start_date: Optional[datetime] = Field(None, description="Planned start")
    end_date: Optional[datetime] = Field(None, description="Planned end")
    due_date: Optional[datetime] = Field(None, description="Delivery deadline")
    estimated_time: Optional[float] = Field(None, ge=0, description="Estimated hours")

    @field_validator("start_date", "end_date", "due_date", mode="after")
    @classmethod
    def normalize_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class ProjectCreate(ProjectBase):
    """Schema for creating a project."""

    initial_statuses: Optional[List[ProjectStatusCreate]] = Field(
        None,
        description="Statuses to create instead of the defaults",
    )
    team_member_ids: List[UUID] = Field(
        default_factory=list,
        description="Users to add as project members",
    )

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ProjectUpdate(BaseModel):
    """Schema for updating a project. Date order is checked against stored values."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    estimated_time: Optional[float] = Field(None, ge=0)
    total_time_spent: Optional[float] = Field(None, ge=0)

    @field_validator("start_date", "end_date", "due_date", mode="after")
    @classmethod
    def normalize_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class ProjectResponse(ProjectBase):
    """Schema for project response data."""

    id: UUID
    total_time_spent: Optional[float] = None
    created_by_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProjectWithCounts(ProjectResponse):
    """Project row with aggregate counts for list views."""

    team_count: int = 0
    task_count: int = 0
    completed_task_count: int = 0
    progress: int = Field(0, ge=0, le=100, description="Completed tasks percent")


class ProjectDetail(ProjectWithCounts):
    """Project with statuses, creator and team members."""

    created_by: Optional[UserSummary] = None
    statuses: List[ProjectStatusResponse] = Field(default_factory=list)
    team_members: List[TeamMemberResponse] = Field(default_factory=list)


class ProjectListResponse(BaseModel):
    """Paginated project list."""

    projects: List[ProjectWithCounts]
    pagination: Pagination


class ProjectMembershipResponse(BaseModel):
    """Relationship of the current user to a project."""

    project_id: UUID
    is_member: bool
    is_creator: bool
    role: Optional[str] = None
