"""Projects and project statuses API endpoints.

Access Control:
- List projects: admins and managers see all; others see projects they
  belong to
- Get project: member, creator, admin or manager
- Create project: project_creation
- Update project / manage statuses: creator or project_management
- Delete project: creator or project_deletion
"""

from datetime import datetime
from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import exists, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..constants import ActivityAction, TeamRole
from ..database import get_db
from ..models.project import Project
from ..models.project_status import ProjectStatus
from ..models.task import Task
from ..models.team_member import TeamMember
from ..models.user import User
from ..schemas.activity import ActivityListResponse, ActivityResponse
from ..schemas.common import MessageResponse, Pagination
from ..schemas.project import (
    ProjectCreate,
    ProjectDetail,
    ProjectListResponse,
    ProjectMembershipResponse,
    ProjectSortField,
    ProjectStatusCreate,
    ProjectStatusResponse,
    ProjectStatusUpdate,
    ProjectUpdate,
    SortOrder,
)
from ..schemas.team import TeamMemberResponse
from ..schemas.user import UserSummary
from ..services.activity_service import get_project_activities, log_activity
from ..services.auth_service import get_current_active_user
from ..services.permission_service import (
    PermissionService,
    is_admin_or_manager,
    require_permission,
)
from ..services.project_service import (
    build_initial_statuses,
    can_manage_project,
    get_member_task_counts,
    get_project_counts,
    get_project_or_404,
    get_project_statuses,
    project_with_counts,
)
from ..utils.time_utils import to_naive_utc

router = APIRouter(tags=["Projects"])


# ============================================================================
# Helper Functions
# ============================================================================


async def build_project_detail(db: AsyncSession, project: Project) -> ProjectDetail:
    """Project with counts, creator, statuses and members."""
    counts = (await get_project_counts(db, [project.id]))[project.id]
    base = project_with_counts(project, counts)

    statuses = await get_project_statuses(db, project.id)
    members_result = await db.execute(
        select(TeamMember).where(TeamMember.project_id == project.id).order_by(TeamMember.joined_at)
    )
    members = [TeamMemberResponse.model_validate(m) for m in members_result.scalars().all()]
    task_counts = await get_member_task_counts(db, [(m.user_id, m.project_id) for m in members])
    for member in members:
        member.task_count = task_counts.get((member.user_id, member.project_id), 0)

    return ProjectDetail(
        **base.model_dump(),
        created_by=UserSummary.model_validate(project.created_by) if project.created_by else None,
        statuses=[ProjectStatusResponse.model_validate(s) for s in statuses],
        team_members=members,
    )


async def get_status_or_404(db: AsyncSession, status_id: UUID) -> ProjectStatus:
    result = await db.execute(select(ProjectStatus).where(ProjectStatus.id == status_id))
    project_status = result.scalar_one_or_none()
    if not project_status:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Status with ID {status_id} not found",
        )
    return project_status


async def verify_project_manager(db: AsyncSession, user: User, project: Project) -> None:
    if not await can_manage_project(db, user, project):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the project creator or a project manager can do this",
        )


async def clear_other_defaults(db: AsyncSession, project_id: UUID, keep_id: UUID) -> None:
    await db.execute(
        update(ProjectStatus)
        .where(ProjectStatus.project_id == project_id, ProjectStatus.id != keep_id)
        .values(is_default=False)
    )


async def ensure_status_name_free(
    db: AsyncSession,
    project_id: UUID,
    name: str,
    exclude_id: Optional[UUID] = None,
) -> None:
    query = select(ProjectStatus.id).where(
        ProjectStatus.project_id == project_id,
        func.lower(ProjectStatus.name) == name.lower(),
    )
    if exclude_id is not None:
        query = query.where(ProjectStatus.id != exclude_id)
    if (await db.execute(query)).first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A status named '{name}' already exists in this project",
        )


# ============================================================================
# Projects
# ============================================================================


@router.get(
    "/api/projects",
    response_model=ProjectListResponse,
    summary="List projects",
    description="Paginated, filterable project list with task and team counts.",
    responses={
        200: {"description": "Projects retrieved successfully"},
        401: {"description": "Not authenticated"},
    },
)
async def list_projects(
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
    title: Optional[str] = Query(None, description="Case-insensitive title match"),
    status_id: Optional[UUID] = Query(None, description="Projects with a task in this status"),
    start_date: Optional[datetime] = Query(None, description="Start on or after"),
    end_date: Optional[datetime] = Query(None, description="End on or before"),
    team_member_ids: Optional[str] = Query(None, description="Comma-separated user IDs"),
    sort_by: ProjectSortField = Query(ProjectSortField.CREATED_AT),
    sort_order: SortOrder = Query(SortOrder.DESC),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> ProjectListResponse:
    """
    List projects visible to the current user.

    - **title**: Contains match
    - **status_id**: Has a task in the status
    - **start_date** / **end_date**: Date window
    - **team_member_ids**: Includes any of these users
    - **sort_by** / **sort_order**: Ordering
    """
    start_date, end_date = to_naive_utc(start_date), to_naive_utc(end_date)
    query = select(Project)

    if not is_admin_or_manager(current_user):
        member_projects = select(TeamMember.project_id).where(TeamMember.user_id == current_user.id)
        query = query.where(
            or_(Project.id.in_(member_projects), Project.created_by_id == current_user.id)
        )

    if title:
        query = query.where(func.lower(Project.title).like(f"%{title.lower()}%"))
    if status_id:
        query = query.where(
            exists().where(Task.project_id == Project.id, Task.status_id == status_id)
        )
    if start_date:
        query = query.where(Project.start_date >= start_date)
    if end_date:
        query = query.where(Project.end_date <= end_date)
    if team_member_ids:
        try:
            member_ids = [UUID(part.strip()) for part in team_member_ids.split(",") if part.strip()]
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="team_member_ids must be a comma-separated list of UUIDs",
            )
        if member_ids:
            query = query.where(
                exists().where(
                    TeamMember.project_id == Project.id,
                    TeamMember.user_id.in_(member_ids),
                )
            )

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0

    column = getattr(Project, sort_by.value)
    ordering = column.asc() if sort_order == SortOrder.ASC else column.desc()
    result = await db.execute(
        query.order_by(ordering, Project.id).offset((page - 1) * limit).limit(limit)
    )
    projects = list(result.unique().scalars().all())

    counts = await get_project_counts(db, [p.id for p in projects])
    return ProjectListResponse(
        projects=[project_with_counts(p, counts[p.id]) for p in projects],
        pagination=Pagination.build(total, page, limit),
    )


@router.post(
    "/api/projects",
    response_model=ProjectDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new project",
    description="Create a project with its statuses; the creator becomes owner.",
    responses={
        201: {"description": "Project created successfully"},
        400: {"description": "Validation error or unknown team member"},
        401: {"description": "Not authenticated"},
        403: {"description": "Missing project_creation"},
    },
)
async def create_project(
    project_data: ProjectCreate,
    current_user: Annotated[User, Depends(require_permission("project_creation"))],
    db: AsyncSession = Depends(get_db),
) -> ProjectDetail:
    """
    Create a new project.

    - **title**: Project title (required)
    - **description**, **start_date**, **end_date**, **due_date**, **estimated_time**
    - **initial_statuses**: Replace the default To Do / In Progress / Done
    - **team_member_ids**: Users added as members
    """
    extra_ids = {uid for uid in project_data.team_member_ids if uid != current_user.id}
    if extra_ids:
        found = (await db.execute(select(User.id).where(User.id.in_(extra_ids)))).scalars().all()
        missing = extra_ids - set(found)
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown team member IDs: {', '.join(sorted(str(m) for m in missing))}",
            )

    project = Project(
        title=project_data.title,
        description=project_data.description,
        start_date=project_data.start_date,
        end_date=project_data.end_date,
        due_date=project_data.due_date,
        estimated_time=project_data.estimated_time,
        created_by_id=current_user.id,
    )
    db.add(project)
    await db.flush()

    for project_status in build_initial_statuses(project.id, project_data.initial_statuses):
        db.add(project_status)

    db.add(TeamMember(user_id=current_user.id, project_id=project.id, role=TeamRole.OWNER.value))
    for user_id in extra_ids:
        db.add(TeamMember(user_id=user_id, project_id=project.id, role=TeamRole.MEMBER.value))

    log_activity(
        db,
        action=ActivityAction.CREATED,
        entity_type="project",
        entity_id=project.id,
        description=f'Created project "{project.title}"',
        user_id=current_user.id,
        project_id=project.id,
    )
    await db.commit()

    result = await db.execute(
        select(Project).where(Project.id == project.id).execution_options(populate_existing=True)
    )
    project = result.unique().scalar_one()
    return await build_project_detail(db, project)


@router.get(
    "/api/projects/{project_id}",
    response_model=ProjectDetail,
    summary="Get a project",
    responses={
        200: {"description": "Project retrieved successfully"},
        401: {"description": "Not authenticated"},
        403: {"description": "Not a member of this project"},
        404: {"description": "Project not found"},
    },
)
async def get_project(
    project_id: UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> ProjectDetail:
    """Project with statuses, team members and counts."""
    project = await get_project_or_404(db, project_id)
    if not await PermissionService(db).can_view_project(current_user, project):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this project",
        )
    return await build_project_detail(db, project)


@router.patch(
    "/api/projects/{project_id}",
    response_model=ProjectDetail,
    summary="Update a project",
    responses={
        200: {"description": "Project updated successfully"},
        400: {"description": "End date before start date"},
        403: {"description": "Not the creator and missing project_management"},
        404: {"description": "Project not found"},
    },
)
async def update_project(
    project_id: UUID,
    project_data: ProjectUpdate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> ProjectDetail:
    """Update project fields. Only provided fields change."""
    project = await get_project_or_404(db, project_id)
    await verify_project_manager(db, current_user, project)

    update_data = project_data.model_dump(exclude_unset=True)
    start = update_data.get("start_date", project.start_date)
    end = update_data.get("end_date", project.end_date)
    if start and end and end < start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="End date cannot be before start date",
        )

    for field, value in update_data.items():
        setattr(project, field, value)

    log_activity(
        db,
        action=ActivityAction.UPDATED,
        entity_type="project",
        entity_id=project.id,
        description=f'Updated project "{project.title}"',
        user_id=current_user.id,
        project_id=project.id,
    )
    await db.commit()
    await db.refresh(project)
    return await build_project_detail(db, project)


@router.delete(
    "/api/projects/{project_id}",
    response_model=MessageResponse,
    summary="Delete a project",
    responses={
        200: {"description": "Project deleted"},
        403: {"description": "Not the creator and missing project_deletion"},
        404: {"description": "Project not found"},
    },
)
async def delete_project(
    project_id: UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete a project with its statuses, tasks and memberships."""
    project = await get_project_or_404(db, project_id)
    if project.created_by_id != current_user.id:
        if not await PermissionService(db).user_has_permission(current_user, "project_deletion"):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to delete this project",
            )

    log_activity(
        db,
        action=ActivityAction.DELETED,
        entity_type="project",
        entity_id=project.id,
        description=f'Deleted project "{project.title}"',
        user_id=current_user.id,
    )
    await db.delete(project)
    await db.commit()
    return MessageResponse(message="Project deleted successfully")


@router.get(
    "/api/projects/{project_id}/membership",
    response_model=ProjectMembershipResponse,
    summary="Current user's relationship to a project",
    responses={404: {"description": "Project not found"}},
)
async def get_project_membership(
    project_id: UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> ProjectMembershipResponse:
    project = await get_project_or_404(db, project_id)
    role = await PermissionService(db).get_project_member_role(current_user.id, project_id)
    return ProjectMembershipResponse(
        project_id=project_id,
        is_member=role is not None,
        is_creator=project.created_by_id == current_user.id,
        role=role,
    )


@router.get(
    "/api/projects/{project_id}/activities",
    response_model=ActivityListResponse,
    summary="Recent project activity",
    responses={
        403: {"description": "Not a member of this project"},
        404: {"description": "Project not found"},
    },
)
async def list_project_activities(
    project_id: UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
    limit: int = Query(50, ge=1, le=200),
) -> ActivityListResponse:
    project = await get_project_or_404(db, project_id)
    if not await PermissionService(db).can_view_project(current_user, project):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this project",
        )
    activities = await get_project_activities(db, project_id, limit=limit)
    return ActivityListResponse(activities=[ActivityResponse.model_validate(a) for a in activities])


# ============================================================================
# Project statuses
# ============================================================================


@router.get(
    "/api/projects/{project_id}/statuses",
    response_model=List[ProjectStatusResponse],
    summary="List project statuses",
    responses={
        403: {"description": "Not a member of this project"},
        404: {"description": "Project not found"},
    },
)
async def list_statuses(
    project_id: UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> List[ProjectStatusResponse]:
    """Statuses in column order."""
    project = await get_project_or_404(db, project_id)
    if not await PermissionService(db).can_view_project(current_user, project):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this project",
        )
    return [ProjectStatusResponse.model_validate(s) for s in await get_project_statuses(db, project_id)]


@router.post(
    "/api/projects/{project_id}/statuses",
    response_model=ProjectStatusResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project status",
    responses={
        201: {"description": "Status created"},
        403: {"description": "Not allowed to manage this project"},
        404: {"description": "Project not found"},
        409: {"description": "Duplicate status name"},
    },
)
async def create_status(
    project_id: UUID,
    status_data: ProjectStatusCreate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> ProjectStatusResponse:
    """
    Add a status to a project.

    - **name**: Unique within the project
    - **order**: Defaults to after the last status
    - **is_default**: Clears the flag on the other statuses
    """
    project = await get_project_or_404(db, project_id)
    await verify_project_manager(db, current_user, project)
    await ensure_status_name_free(db, project_id, status_data.name)

    order = status_data.order
    if order is None:
        max_order = (
            await db.execute(
                select(func.max(ProjectStatus.order)).where(ProjectStatus.project_id == project_id)
            )
        ).scalar()
        order = 0 if max_order is None else max_order + 1

    project_status = ProjectStatus(
        project_id=project_id,
        name=status_data.name,
        color=status_data.color,
        description=status_data.description,
        order=order,
        is_default=status_data.is_default,
        is_completed_status=status_data.is_completed_status,
    )
    db.add(project_status)
    await db.flush()
    if project_status.is_default:
        await clear_other_defaults(db, project_id, project_status.id)
    await db.commit()
    await db.refresh(project_status)
    return project_status


@router.patch(
    "/api/project-statuses/{status_id}",
    response_model=ProjectStatusResponse,
    summary="Update a project status",
    responses={
        403: {"description": "Not allowed to manage this project"},
        404: {"description": "Status not found"},
        409: {"description": "Duplicate status name"},
    },
)
async def update_status(
    status_id: UUID,
    status_data: ProjectStatusUpdate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> ProjectStatusResponse:
    project_status = await get_status_or_404(db, status_id)
    project = await get_project_or_404(db, project_status.project_id)
    await verify_project_manager(db, current_user, project)

    update_data = status_data.model_dump(exclude_unset=True)
    if update_data.get("name") and update_data["name"] != project_status.name:
        await ensure_status_name_free(db, project.id, update_data["name"], exclude_id=status_id)

    for field, value in update_data.items():
        if value is not None:
            setattr(project_status, field, value)

    if update_data.get("is_default"):
        await clear_other_defaults(db, project.id, status_id)

    await db.commit()
    await db.refresh(project_status)
    return project_status


@router.delete(
    "/api/project-statuses/{status_id}",
    response_model=MessageResponse,
    summary="Delete a project status",
    responses={
        400: {"description": "The last status of a project cannot be deleted"},
        403: {"description": "Not allowed to manage this project"},
        404: {"description": "Status not found"},
    },
)
async def delete_status(
    status_id: UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete a status. Its tasks are left without a status."""
    project_status = await get_status_or_404(db, status_id)
    project = await get_project_or_404(db, project_status.project_id)
    await verify_project_manager(db, current_user, project)

    remaining = (
        await db.execute(
            select(func.count(ProjectStatus.id)).where(ProjectStatus.project_id == project.id)
        )
    ).scalar() or 0
    if remaining <= 1:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A project must keep at least one status",
        )

    await db.execute(update(Task).where(Task.status_id == status_id).values(status_id=None))
    await db.delete(project_status)
    await db.commit()
    return MessageResponse(message="Status deleted successfully")
