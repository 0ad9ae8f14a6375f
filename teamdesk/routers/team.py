"""Team membership API endpoints.

A team member row joins a user to a project with a project role.

Access Control:
- View: team_view, project creator, project member, or the member themself
- Add: team_add or project creator
- Update role: team_management or project creator; the creator's own
  membership cannot be changed
- Remove: team_remove, project creator, or self; the creator cannot be
  removed
Every denial is written to the activity log.
"""

from typing import Annotated, List, Optional, Union
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..constants import ActivityAction
from ..database import get_db
from ..models.team_member import TeamMember
from ..models.user import User
from ..schemas.common import MessageResponse, Pagination
from ..schemas.project import SortOrder
from ..schemas.team import (
    TeamGroupBy,
    TeamGroupedResponse,
    TeamListResponse,
    TeamMemberCreate,
    TeamMemberResponse,
    TeamMemberUpdate,
    TeamSortField,
)
from ..services.activity_service import log_activity
from ..services.auth_service import get_current_active_user
from ..services.permission_service import PermissionService, is_admin_or_manager
from ..services.project_service import get_member_task_counts, get_project_or_404
from ..utils.team_utils import (
    dedupe_members,
    group_members_by_project,
    group_members_by_user,
    sort_members,
)

router = APIRouter(tags=["Team"])


# ============================================================================
# Helper Functions
# ============================================================================


async def get_membership_or_404(db: AsyncSession, membership_id: UUID) -> TeamMember:
    result = await db.execute(select(TeamMember).where(TeamMember.id == membership_id))
    membership = result.scalar_one_or_none()
    if not membership:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Team member with ID {membership_id} not found",
        )
    return membership


async def to_responses(db: AsyncSession, memberships) -> List[TeamMemberResponse]:
    """Membership rows as responses with per-project task counts."""
    rows = [TeamMemberResponse.model_validate(m) for m in memberships]
    task_counts = await get_member_task_counts(db, [(r.user_id, r.project_id) for r in rows])
    for row in rows:
        row.task_count = task_counts.get((row.user_id, row.project_id), 0)
    return rows


async def remove_membership(
    db: AsyncSession,
    service: PermissionService,
    membership: TeamMember,
    current_user: User,
) -> None:
    """Apply the removal rules, then delete and log."""
    project = await get_project_or_404(db, membership.project_id)
    if not await service.can_remove_team_member(current_user, membership, project):
        raise await service.deny(
            current_user,
            "remove",
            "team_member",
            membership.id,
            project_id=project.id,
            detail="You do not have permission to remove this team member",
        )
    if membership.user_id == project.created_by_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The project creator cannot be removed from the team",
        )

    member_label = membership.user.email if membership.user else str(membership.user_id)
    log_activity(
        db,
        action=ActivityAction.MEMBER_REMOVED,
        entity_type="team_member",
        entity_id=membership.id,
        description=f'Removed {member_label} from project "{project.title}"',
        user_id=current_user.id,
        project_id=project.id,
    )
    await db.delete(membership)
    await db.commit()


# ============================================================================
# Team members
# ============================================================================


@router.get(
    "/api/team",
    response_model=Union[TeamGroupedResponse, TeamListResponse],
    summary="List team members",
    description="Paginated membership list, or grouped by user or project.",
    responses={
        200: {"description": "Team members retrieved"},
        401: {"description": "Not authenticated"},
        403: {"description": "Not a member of the requested project"},
    },
)
async def list_team_members(
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
    project_id: Optional[UUID] = Query(None, description="Only this project"),
    search: Optional[str] = Query(None, description="Match member name or email"),
    group_by: Optional[TeamGroupBy] = Query(None, description="Group by user or project"),
    sort_by: TeamSortField = Query(TeamSortField.NAME),
    sort_order: SortOrder = Query(SortOrder.ASC),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> Union[TeamGroupedResponse, TeamListResponse]:
    """
    List memberships visible to the current user.

    - **project_id**: Restrict to one project (members, admins and managers only)
    - **search**: Case-insensitive match on the member's name or email
    - **group_by**: `user` collapses each user's projects, `project` lists members per project
    - **sort_by** / **sort_order**: name, email, joined_at or task_count
    """
    service = PermissionService(db)
    query = select(TeamMember).join(User, TeamMember.user_id == User.id)

    if project_id is not None:
        project = await get_project_or_404(db, project_id)
        if not await service.can_view_project(current_user, project):
            raise await service.deny(
                current_user,
                "view",
                "team",
                project_id,
                project_id=project_id,
                detail="You do not have access to this project's team",
            )
        query = query.where(TeamMember.project_id == project_id)
    elif not is_admin_or_manager(current_user):
        member_projects = select(TeamMember.project_id).where(TeamMember.user_id == current_user.id)
        query = query.where(TeamMember.project_id.in_(member_projects))

    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(
            or_(func.lower(User.name).like(pattern), func.lower(User.email).like(pattern))
        )

    descending = sort_order == SortOrder.DESC

    if group_by is not None:
        result = await db.execute(query)
        rows = await to_responses(db, result.scalars().all())
        if group_by == TeamGroupBy.USER:
            return TeamGroupedResponse(group_by=group_by, users=group_members_by_user(rows))
        return TeamGroupedResponse(
            group_by=group_by,
            projects=group_members_by_project(rows, sort_by.value, descending),
        )

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    if sort_by == TeamSortField.TASK_COUNT:
        # Task counts are computed after the fetch, so sort the whole set in memory
        result = await db.execute(query)
        rows = sort_members(await to_responses(db, result.scalars().all()), sort_by.value, descending)
        rows = rows[(page - 1) * limit:page * limit]
    else:
        column = {
            TeamSortField.NAME: func.lower(func.coalesce(User.name, User.email)),
            TeamSortField.EMAIL: func.lower(User.email),
            TeamSortField.JOINED_AT: TeamMember.joined_at,
        }[sort_by]
        ordering = column.desc() if descending else column.asc()
        result = await db.execute(
            query.order_by(ordering, TeamMember.id).offset((page - 1) * limit).limit(limit)
        )
        rows = await to_responses(db, result.scalars().all())

    return TeamListResponse(
        team_members=rows,
        pagination=Pagination.build(total, page, limit),
    )


@router.post(
    "/api/team",
    response_model=TeamMemberResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a user to a project",
    responses={
        201: {"description": "Member added"},
        403: {"description": "Missing team_add and not the project creator"},
        404: {"description": "User or project not found"},
        409: {"description": "User is already a member"},
    },
)
async def add_team_member(
    member_data: TeamMemberCreate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> TeamMemberResponse:
    """
    Add a member.

    - **user_id**: User to add
    - **project_id**: Target project
    - **role**: owner, admin, manager or member (default member)
    """
    service = PermissionService(db)
    project = await get_project_or_404(db, member_data.project_id)

    user = (await db.execute(select(User).where(User.id == member_data.user_id))).scalar_one_or_none()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User with ID {member_data.user_id} not found",
        )

    if not await service.can_add_team_member(current_user, project):
        raise await service.deny(
            current_user,
            "add",
            "team_member",
            member_data.user_id,
            project_id=project.id,
            detail="You do not have permission to add team members to this project",
        )

    if await service.is_project_member(member_data.user_id, project.id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User is already a member of this project",
        )

    membership = TeamMember(
        user_id=member_data.user_id,
        project_id=project.id,
        role=member_data.role.value,
    )
    db.add(membership)
    await db.flush()
    log_activity(
        db,
        action=ActivityAction.MEMBER_ADDED,
        entity_type="team_member",
        entity_id=membership.id,
        description=f'Added {user.email} to project "{project.title}" as {membership.role}',
        user_id=current_user.id,
        project_id=project.id,
    )
    await db.commit()

    result = await db.execute(
        select(TeamMember)
        .where(TeamMember.id == membership.id)
        .execution_options(populate_existing=True)
    )
    membership = result.scalar_one()
    return (await to_responses(db, [membership]))[0]


@router.get(
    "/api/team/user/{user_id}",
    response_model=List[TeamMemberResponse],
    summary="List a user's memberships",
    responses={200: {"description": "Memberships retrieved"}},
)
async def list_user_memberships(
    user_id: UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> List[TeamMemberResponse]:
    """
    Memberships of a user, deduplicated by project.

    Users without team_view only see memberships in projects they share.
    """
    service = PermissionService(db)
    query = select(TeamMember).where(TeamMember.user_id == user_id)
    if (
        user_id != current_user.id
        and not is_admin_or_manager(current_user)
        and not await service.user_has_permission(current_user, "team_view")
    ):
        shared = select(TeamMember.project_id).where(TeamMember.user_id == current_user.id)
        query = query.where(TeamMember.project_id.in_(shared))
    result = await db.execute(query.order_by(TeamMember.joined_at.desc()))
    return dedupe_members(await to_responses(db, result.scalars().all()))


@router.get(
    "/api/team/{membership_id}",
    response_model=TeamMemberResponse,
    summary="Get a team member",
    responses={
        403: {"description": "Not allowed to view this membership"},
        404: {"description": "Team member not found"},
    },
)
async def get_team_member(
    membership_id: UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> TeamMemberResponse:
    service = PermissionService(db)
    membership = await get_membership_or_404(db, membership_id)
    project = await get_project_or_404(db, membership.project_id)
    if not await service.can_view_team_member(current_user, membership, project):
        raise await service.deny(
            current_user,
            "view",
            "team_member",
            membership.id,
            project_id=project.id,
            detail="You do not have permission to view this team member",
        )
    return (await to_responses(db, [membership]))[0]


@router.patch(
    "/api/team/{membership_id}",
    response_model=TeamMemberResponse,
    summary="Change a member's project role",
    responses={
        400: {"description": "The creator's membership cannot be changed"},
        403: {"description": "Missing team_management and not the project creator"},
        404: {"description": "Team member not found"},
    },
)
async def update_team_member(
    membership_id: UUID,
    member_data: TeamMemberUpdate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> TeamMemberResponse:
    """Change the role of a membership."""
    service = PermissionService(db)
    membership = await get_membership_or_404(db, membership_id)
    project = await get_project_or_404(db, membership.project_id)

    if not await service.can_update_team_member(current_user, project):
        raise await service.deny(
            current_user,
            "update",
            "team_member",
            membership.id,
            project_id=project.id,
            detail="You do not have permission to update team members of this project",
        )
    if membership.user_id == project.created_by_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The project creator's membership cannot be changed",
        )

    old_role = membership.role
    membership.role = member_data.role.value
    log_activity(
        db,
        action=ActivityAction.UPDATED,
        entity_type="team_member",
        entity_id=membership.id,
        description=f"Changed team role from {old_role} to {membership.role}",
        user_id=current_user.id,
        project_id=project.id,
    )
    await db.commit()
    await db.refresh(membership)
    return (await to_responses(db, [membership]))[0]


@router.delete(
    "/api/team/{membership_id}",
    response_model=MessageResponse,
    summary="Remove a team member",
    responses={
        400: {"description": "The project creator cannot be removed"},
        403: {"description": "Not allowed to remove this member"},
        404: {"description": "Team member not found"},
    },
)
async def delete_team_member(
    membership_id: UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    membership = await get_membership_or_404(db, membership_id)
    await remove_membership(db, PermissionService(db), membership, current_user)
    return MessageResponse(message="Team member removed successfully")


# ============================================================================
# Project-scoped routes
# ============================================================================


@router.get(
    "/api/projects/{project_id}/team",
    response_model=List[TeamMemberResponse],
    summary="List a project's members",
    responses={
        403: {"description": "Not a member of this project"},
        404: {"description": "Project not found"},
    },
)
async def list_project_team(
    project_id: UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> List[TeamMemberResponse]:
    service = PermissionService(db)
    project = await get_project_or_404(db, project_id)
    if not await service.can_view_project(current_user, project):
        if not await service.user_has_permission(current_user, "team_view"):
            raise await service.deny(
                current_user,
                "view",
                "team",
                project_id,
                project_id=project_id,
                detail="You do not have access to this project's team",
            )
    result = await db.execute(
        select(TeamMember).where(TeamMember.project_id == project_id).order_by(TeamMember.joined_at)
    )
    return await to_responses(db, result.scalars().all())


@router.delete(
    "/api/projects/{project_id}/team/{user_id}",
    response_model=MessageResponse,
    summary="Remove a user from a project",
    responses={
        400: {"description": "The project creator cannot be removed"},
        403: {"description": "Not allowed to remove this member"},
        404: {"description": "Project or membership not found"},
    },
)
async def remove_project_member(
    project_id: UUID,
    user_id: UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await get_project_or_404(db, project_id)
    result = await db.execute(
        select(TeamMember).where(TeamMember.project_id == project_id, TeamMember.user_id == user_id)
    )
    membership = result.scalar_one_or_none()
    if not membership:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User is not a member of this project",
        )
    await remove_membership(db, PermissionService(db), membership, current_user)
    return MessageResponse(message="Team member removed successfully")
