"""Pydantic schemas for task comments."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .user import UserSummary


class CommentCreate(BaseModel):
    """Schema for posting a comment."""

    content: str = Field(..., min_length=1, max_length=10000, examples=["Looks good to me"])


class CommentResponse(BaseModel):
    """Comment with its author."""

    id: UUID
    task_id: UUID
    user_id: UUID
    content: str
    user: Optional[UserSummary] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
