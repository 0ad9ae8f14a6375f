"""Dashboard API endpoint.

Summary numbers for the signed-in user: their projects, their assigned
tasks and how both are progressing.
"""

from datetime import datetime, timedelta
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.project import Project
from ..models.task import Task, TaskAssignee
from ..models.team_member import TeamMember
from ..models.user import User
from ..schemas.dashboard import DashboardStatsResponse
from ..services.auth_service import get_current_active_user
from ..services.project_service import get_project_counts, project_with_counts
from ..utils.dashboard_utils import (
    calculate_growth,
    calculate_project_status_distribution,
    calculate_task_stats,
    calculate_team_members,
)

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])

RECENT_PROJECT_LIMIT = 5
GROWTH_WINDOW_DAYS = 30


@router.get(
    "/stats",
    response_model=DashboardStatsResponse,
    summary="Dashboard statistics",
    responses={
        200: {"description": "Statistics for the current user"},
        401: {"description": "Not authenticated"},
    },
)
async def get_dashboard_stats(
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> DashboardStatsResponse:
    """
    Summary numbers for the current user.

    - **total_projects**: Projects the user is a member of
    - **total_tasks** / **completed_tasks**: Tasks assigned to the user
    - **team_members**: Distinct users across those projects
    - **project_growth**: New memberships in the last 30 days vs the 30 before
    - **recent_projects**: Five most recently updated projects with counts
    - **status_distribution**: Projects by task completion
    """
    memberships = (
        await db.execute(select(TeamMember).where(TeamMember.user_id == current_user.id))
    ).unique().scalars().all()
    project_ids = list({m.project_id for m in memberships})

    team_rows = []
    projects = []
    if project_ids:
        team_rows = (
            await db.execute(
                select(TeamMember.user_id, TeamMember.project_id).where(
                    TeamMember.project_id.in_(project_ids)
                )
            )
        ).all()
        projects = (
            await db.execute(
                select(Project)
                .where(Project.id.in_(project_ids))
                .order_by(Project.updated_at.desc())
            )
        ).unique().scalars().all()

    counts = await get_project_counts(db, project_ids)

    tasks = (
        await db.execute(
            select(Task)
            .join(TaskAssignee, TaskAssignee.task_id == Task.id)
            .where(TaskAssignee.user_id == current_user.id)
        )
    ).unique().scalars().all()
    task_stats = calculate_task_stats(tasks)

    now = datetime.utcnow()
    window = timedelta(days=GROWTH_WINDOW_DAYS)
    current_window = sum(1 for m in memberships if m.joined_at and m.joined_at >= now - window)
    previous_window = sum(
        1 for m in memberships if m.joined_at and now - 2 * window <= m.joined_at < now - window
    )

    return DashboardStatsResponse(
        total_projects=len(project_ids),
        total_tasks=task_stats.total,
        completed_tasks=task_stats.completed,
        team_members=calculate_team_members(team_rows),
        project_growth=calculate_growth(current_window, previous_window),
        recent_projects=[
            project_with_counts(p, counts[p.id]) for p in projects[:RECENT_PROJECT_LIMIT]
        ],
        task_stats=task_stats,
        status_distribution=calculate_project_status_distribution(
            [(task_count, completed) for _, task_count, completed in counts.values()]
        ),
    )
