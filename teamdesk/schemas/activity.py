"""Pydantic schemas for the activity log."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from .user import UserSummary


class ActivityResponse(BaseModel):
    """Activity log entry."""

    id: UUID
    action: str
    entity_type: str
    entity_id: str
    description: Optional[str] = None
    user_id: UUID
    project_id: Optional[UUID] = None
    task_id: Optional[UUID] = None
    user: Optional[UserSummary] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ActivityListResponse(BaseModel):
    """Most recent activities of a project."""

    activities: List[ActivityResponse]
