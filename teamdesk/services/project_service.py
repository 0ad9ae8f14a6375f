"""Project lookups, status bootstrapping and aggregate counts."""

import logging
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.project import Project
from ..models.project_status import DEFAULT_PROJECT_STATUSES, ProjectStatus
from ..models.task import Task, TaskAssignee
from ..models.team_member import TeamMember
from ..models.user import User
from ..schemas.project import ProjectStatusCreate, ProjectWithCounts
from ..utils.dashboard_utils import completion_percent
from .permission_service import PermissionService

logger = logging.getLogger(__name__)

# (team_count, task_count, completed_task_count)
ProjectCounts = Tuple[int, int, int]


async def get_project_or_404(db: AsyncSession, project_id: UUID) -> Project:
    """Fetch a project or raise 404."""
    result = await db.execute(select(Project).where(Project.id == project_id))
    project = result.unique().scalar_one_or_none()
    if not project:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Project with ID {project_id} not found",
        )
    return project


async def verify_project_access(
    db: AsyncSession,
    project_id: UUID,
    current_user: User,
) -> Project:
    """
    Fetch a project the user may work in (admin, creator or member).

    Raises:
        HTTPException: 404 if missing, 403 otherwise
    """
    project = await get_project_or_404(db, project_id)
    if not await PermissionService(db).can_access_project(current_user, project):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this project",
        )
    return project


async def can_manage_project(db: AsyncSession, user: User, project: Project) -> bool:
    """Creator or holder of project_management."""
    if project.created_by_id == user.id:
        return True
    return await PermissionService(db).user_has_permission(user, "project_management")


# ============================================================================
# Statuses
# ============================================================================


def build_initial_statuses(
    project_id: UUID,
    initial_statuses: Optional[List[ProjectStatusCreate]] = None,
) -> List[ProjectStatus]:
    """
    Status rows for a new project.

    Supplied statuses replace the defaults; when none of them is flagged
    default, the first one becomes the default.
    """
    if not initial_statuses:
        return [ProjectStatus(project_id=project_id, **defaults) for defaults in DEFAULT_PROJECT_STATUSES]

    has_default = any(s.is_default for s in initial_statuses)
    rows = []
    for index, item in enumerate(initial_statuses):
        rows.append(
            ProjectStatus(
                project_id=project_id,
                name=item.name,
                color=item.color,
                description=item.description,
                order=item.order if item.order is not None else index,
                is_default=item.is_default or (not has_default and index == 0),
                is_completed_status=item.is_completed_status,
            )
        )
    return rows


async def get_project_statuses(db: AsyncSession, project_id: UUID) -> List[ProjectStatus]:
    result = await db.execute(
        select(ProjectStatus)
        .where(ProjectStatus.project_id == project_id)
        .order_by(ProjectStatus.order, ProjectStatus.created_at)
    )
    return list(result.scalars().all())


async def get_status_in_project(
    db: AsyncSession,
    status_id: UUID,
    project_id: UUID,
) -> Optional[ProjectStatus]:
    """The status if it belongs to the project, else None."""
    result = await db.execute(
        select(ProjectStatus).where(
            ProjectStatus.id == status_id,
            ProjectStatus.project_id == project_id,
        )
    )
    return result.scalar_one_or_none()


def _pick_status(statuses: Iterable[ProjectStatus], completed: bool) -> Optional[ProjectStatus]:
    matching = [s for s in statuses if s.is_completed_status == completed]
    for candidate in matching:
        if candidate.is_default:
            return candidate
    return matching[0] if matching else None


async def get_default_completed_status(db: AsyncSession, project_id: UUID) -> Optional[ProjectStatus]:
    """Default-flagged completed status, else the first completed one."""
    return _pick_status(await get_project_statuses(db, project_id), completed=True)


async def get_default_non_completed_status(db: AsyncSession, project_id: UUID) -> Optional[ProjectStatus]:
    """Default-flagged open status, else the first open one."""
    return _pick_status(await get_project_statuses(db, project_id), completed=False)


# ============================================================================
# Aggregates
# ============================================================================


async def get_project_counts(
    db: AsyncSession,
    project_ids: List[UUID],
) -> Dict[UUID, ProjectCounts]:
    """
    Team, task and completed-task counts for several projects.

    Three grouped queries regardless of how many projects are passed.
    """
    counts: Dict[UUID, ProjectCounts] = {pid: (0, 0, 0) for pid in project_ids}
    if not project_ids:
        return counts

    team_result = await db.execute(
        select(TeamMember.project_id, func.count(TeamMember.id))
        .where(TeamMember.project_id.in_(project_ids))
        .group_by(TeamMember.project_id)
    )
    team_counts = dict(team_result.all())

    task_result = await db.execute(
        select(Task.project_id, func.count(Task.id))
        .where(Task.project_id.in_(project_ids))
        .group_by(Task.project_id)
    )
    task_counts = dict(task_result.all())

    completed_result = await db.execute(
        select(Task.project_id, func.count(Task.id))
        .join(ProjectStatus, Task.status_id == ProjectStatus.id)
        .where(
            Task.project_id.in_(project_ids),
            ProjectStatus.is_completed_status.is_(True),
        )
        .group_by(Task.project_id)
    )
    completed_counts = dict(completed_result.all())

    for pid in project_ids:
        counts[pid] = (
            team_counts.get(pid, 0),
            task_counts.get(pid, 0),
            completed_counts.get(pid, 0),
        )
    return counts


def project_with_counts(project: Project, counts: ProjectCounts) -> ProjectWithCounts:
    """Combine a project row with its aggregate counts."""
    team_count, task_count, completed = counts
    base = ProjectWithCounts.model_validate(project)
    base.team_count = team_count
    base.task_count = task_count
    base.completed_task_count = completed
    base.progress = completion_percent(completed, task_count)
    return base


async def get_member_task_counts(
    db: AsyncSession,
    pairs: List[Tuple[UUID, UUID]],
) -> Dict[Tuple[UUID, UUID], int]:
    """Assigned task count per (user_id, project_id) pair."""
    if not pairs:
        return {}
    user_ids = {u for u, _ in pairs}
    project_ids = {p for _, p in pairs}
    result = await db.execute(
        select(TaskAssignee.user_id, Task.project_id, func.count(Task.id))
        .join(Task, TaskAssignee.task_id == Task.id)
        .where(
            TaskAssignee.user_id.in_(user_ids),
            Task.project_id.in_(project_ids),
        )
        .group_by(TaskAssignee.user_id, Task.project_id)
    )
    return {(user_id, project_id): count for user_id, project_id, count in result.all()}
