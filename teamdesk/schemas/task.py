"""Pydantic schemas for Task model validation."""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.time_utils import to_naive_utc
from .user import UserSummary


class TaskPriority(str, Enum):
    """Task priority enumeration."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Sort weight: higher first
PRIORITY_RANK = {
    TaskPriority.HIGH.value: 3,
    TaskPriority.MEDIUM.value: 2,
    TaskPriority.LOW.value: 1,
}


class ReorderPosition(str, Enum):
    """Where to drop a task relative to the target."""

    BEFORE = "before"
    AFTER = "after"


class TaskStatusInfo(BaseModel):
    """Nested status object in task responses."""

    id: UUID = Field(..., description="Status ID")
    name: str = Field(..., description="Status name (e.g. 'To Do')")
    color: str
    is_completed_status: bool

    model_config = ConfigDict(from_attributes=True)


class TaskAssigneeInfo(BaseModel):
    """Assignee row with the assigned user."""

    user_id: UUID
    user: Optional[UserSummary] = None

    model_config = ConfigDict(from_attributes=True)


class TaskBase(BaseModel):
    """Base schema with common task fields."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Task title",
        examples=["Implement user authentication"],
    )
    description: Optional[str] = Field(
        None,
        max_length=102400,
        description="Detailed task description",
    )
    priority: TaskPriority = Field(
        TaskPriority.MEDIUM,
        description="Task priority level",
        examples=["medium", "high"],
    )
    due_date: Optional[datetime] = Field(None, description="Deadline")
    start_date: Optional[datetime] = Field(None, description="Planned start")
    end_date: Optional[datetime] = Field(None, description="Planned end")
    estimated_time: Optional[float] = Field(None, ge=0, description="Estimated hours")
    time_spent: Optional[float] = Field(None, ge=0, description="Logged hours")

    @field_validator("due_date", "start_date", "end_date", mode="after")
    @classmethod
    def normalize_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class TaskCreate(TaskBase):
    """Schema for creating a new task."""

    project_id: UUID = Field(..., description="ID of the parent project")
    status_id: Optional[UUID] = Field(
        None,
        description="Status of the project. Defaults to the project's default open status.",
    )
    parent_id: Optional[UUID] = Field(None, description="Parent task (for subtasks)")
    assignee_ids: List[UUID] = Field(default_factory=list, description="Users to assign")


class TaskUpdate(BaseModel):
    """Schema for updating a task. Omitted fields are left unchanged."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = Field(None, max_length=102400)
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    estimated_time: Optional[float] = Field(None, ge=0)
    time_spent: Optional[float] = Field(None, ge=0)
    status_id: Optional[UUID] = None
    parent_id: Optional[UUID] = None
    assignee_ids: Optional[List[UUID]] = Field(
        None,
        description="Replaces the full assignee set when provided",
    )

    @field_validator("due_date", "start_date", "end_date", mode="after")
    @classmethod
    def normalize_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class TaskStatusChange(BaseModel):
    """Move a task to another status of its project."""

    status_id: UUID


class TaskCompletionChange(BaseModel):
    """Mark a task completed or reopened."""

    completed: bool


class TaskReorder(BaseModel):
    """Move a task among its siblings and optionally under a new parent."""

    task_id: UUID
    target_task_id: Optional[UUID] = Field(None, description="Sibling to place the task next to")
    new_parent_id: Optional[UUID] = Field(None, description="New parent; omit to keep the current one")
    move_to_root: bool = Field(False, description="Detach from the current parent")
    position: ReorderPosition = ReorderPosition.BEFORE


class TaskResponse(TaskBase):
    """Schema for task response data."""

    id: UUID
    project_id: UUID
    status_id: Optional[UUID] = None
    parent_id: Optional[UUID] = None
    created_by_id: Optional[UUID] = None
    order: int
    status: Optional[TaskStatusInfo] = None
    assignees: List[TaskAssigneeInfo] = Field(default_factory=list)
    completed: bool = False
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TaskTreeNode(TaskResponse):
    """Task with nested subtasks."""

    subtasks: List["TaskTreeNode"] = Field(default_factory=list)


class TaskDetail(TaskTreeNode):
    """Single task view."""

    parent: Optional[TaskResponse] = None
    comment_count: int = 0


class TaskReorderResponse(BaseModel):
    """Sibling order after a reorder."""

    task: TaskResponse
    sibling_ids: List[UUID]


TaskTreeNode.model_rebuild()
