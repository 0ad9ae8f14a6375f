"""Shared pydantic schemas."""

from math import ceil

from pydantic import BaseModel, Field


class Pagination(BaseModel):
    """Pagination metadata returned with list responses."""

    total: int = Field(..., ge=0, description="Total number of matching rows")
    page: int = Field(..., ge=1, description="Current page (1-based)")
    limit: int = Field(..., ge=1, description="Page size")
    total_pages: int = Field(..., ge=0, description="Number of pages")

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "Pagination":
        return cls(total=total, page=page, limit=limit, total_pages=ceil(total / limit) if limit else 0)


class MessageResponse(BaseModel):
    """Simple acknowledgement payload."""

    message: str
