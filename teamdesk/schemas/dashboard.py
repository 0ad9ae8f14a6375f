"""Pydantic schemas for the dashboard."""

from typing import List

from pydantic import BaseModel, Field

from .project import ProjectWithCounts


class TaskStats(BaseModel):
    """Task totals across projects."""

    total: int = 0
    completed: int = 0
    in_progress: int = 0
    completion_rate: int = Field(0, description="Whole percent")


class StatusDistribution(BaseModel):
    """Projects bucketed by task completion."""

    completed: int = 0
    in_progress: int = 0
    not_started: int = 0


class DashboardStatsResponse(BaseModel):
    """Summary numbers for the signed-in user."""

    total_projects: int
    total_tasks: int
    completed_tasks: int
    team_members: int
    project_growth: float = Field(..., description="Percent change of new memberships, last 30 days vs the 30 before")
    recent_projects: List[ProjectWithCounts]
    task_stats: TaskStats
    status_distribution: StatusDistribution
