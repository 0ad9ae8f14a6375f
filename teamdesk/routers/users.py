"""User management API endpoints.

Provides endpoints for listing, viewing, updating and deleting users, plus
a user's project memberships and attendance history.

Access Control:
- List users: user_management or team_view
- View a user: any authenticated user
- Update: self (edit_profile) or user_management; role and active flag
  need manage_roles or user_management
- Delete: user_management, never yourself
"""

from datetime import datetime
from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.attendance import Attendance
from ..models.project_status import ProjectStatus
from ..models.task import Task, TaskAssignee
from ..models.team_member import TeamMember
from ..models.user import User
from ..schemas.attendance import AttendanceHistoryResponse, AttendanceResponse
from ..schemas.common import MessageResponse, Pagination
from ..schemas.team import TeamMemberResponse
from ..schemas.user import (
    UserDetailResponse,
    UserListResponse,
    UserResponse,
    UserRoleUpdate,
    UserStats,
    UserUpdate,
)
from ..services.auth_service import get_current_active_user, get_user_by_email
from ..services.permission_service import (
    PermissionService,
    is_admin_or_manager,
    require_permission,
)
from ..services.permission_cache_service import invalidate_user_permissions
from ..services.project_service import get_member_task_counts
from ..utils.dashboard_utils import completion_percent
from ..utils.security import get_password_hash
from ..utils.team_utils import dedupe_members
from ..utils.time_utils import get_day_boundaries, to_naive_utc

router = APIRouter(tags=["Users"])


async def get_user_or_404(db: AsyncSession, user_id: UUID) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User with ID {user_id} not found",
        )
    return user


async def get_user_stats(db: AsyncSession, user_id: UUID) -> UserStats:
    """Membership and assigned-task counts for one user."""
    project_count = (
        await db.execute(select(func.count(TeamMember.id)).where(TeamMember.user_id == user_id))
    ).scalar() or 0
    task_count = (
        await db.execute(select(func.count(TaskAssignee.id)).where(TaskAssignee.user_id == user_id))
    ).scalar() or 0
    completed = (
        await db.execute(
            select(func.count(TaskAssignee.id))
            .join(Task, TaskAssignee.task_id == Task.id)
            .join(ProjectStatus, Task.status_id == ProjectStatus.id)
            .where(
                TaskAssignee.user_id == user_id,
                ProjectStatus.is_completed_status.is_(True),
            )
        )
    ).scalar() or 0
    return UserStats(
        project_count=project_count,
        task_count=task_count,
        completed_task_count=completed,
        completion_rate=completion_percent(completed, task_count),
    )


@router.get(
    "/api/users",
    response_model=UserListResponse,
    summary="List users",
    description="Search and paginate users.",
    responses={
        200: {"description": "Users retrieved successfully"},
        401: {"description": "Not authenticated"},
        403: {"description": "Missing user_management or team_view"},
    },
)
async def list_users(
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
    search: Optional[str] = Query(None, description="Match name or email"),
    role: Optional[str] = Query(None, description="Filter by system role"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> UserListResponse:
    """
    List users.

    - **search**: Case-insensitive match on name or email
    - **role**: Exact system role
    - **page** / **limit**: Pagination
    """
    service = PermissionService(db)
    if not (
        await service.user_has_permission(current_user, "user_management")
        or await service.user_has_permission(current_user, "team_view")
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to list users",
        )

    query = select(User)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(
            or_(func.lower(User.name).like(pattern), func.lower(User.email).like(pattern))
        )
    if role:
        query = query.where(User.role == role)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    result = await db.execute(
        query.order_by(User.name, User.email).offset((page - 1) * limit).limit(limit)
    )
    users = result.scalars().all()

    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        pagination=Pagination.build(total, page, limit),
    )


@router.get(
    "/api/users/{user_id}",
    response_model=UserDetailResponse,
    summary="Get a user",
    description="User profile with project and task statistics.",
    responses={
        200: {"description": "User retrieved successfully"},
        401: {"description": "Not authenticated"},
        404: {"description": "User not found"},
    },
)
async def get_user(
    user_id: UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> UserDetailResponse:
    """Get a user by ID with project_count, task_count and completion_rate."""
    user = await get_user_or_404(db, user_id)
    stats = await get_user_stats(db, user_id)
    return UserDetailResponse(**UserResponse.model_validate(user).model_dump(), stats=stats)


@router.patch(
    "/api/users/{user_id}",
    response_model=UserResponse,
    summary="Update a user",
    responses={
        200: {"description": "User updated successfully"},
        400: {"description": "Email already in use"},
        401: {"description": "Not authenticated"},
        403: {"description": "Not allowed to edit this user or these fields"},
        404: {"description": "User not found"},
    },
)
async def update_user(
    user_id: UUID,
    user_data: UserUpdate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """
    Update a user's profile.

    - **name**, **email**, **image**, **password**: Profile fields
    - **role**, **active**: Require manage_roles or user_management
    """
    service = PermissionService(db)
    user = await get_user_or_404(db, user_id)

    can_manage_users = await service.user_has_permission(current_user, "user_management")
    is_self = current_user.id == user_id
    if not can_manage_users:
        if not is_self or not await service.user_has_permission(current_user, "edit_profile"):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to edit this user",
            )

    update_data = user_data.model_dump(exclude_unset=True)

    if "role" in update_data or "active" in update_data:
        if not (can_manage_users or await service.user_has_permission(current_user, "manage_roles")):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to change role or status",
            )

    if update_data.get("email") and update_data["email"].lower() != user.email.lower():
        existing = await get_user_by_email(db, update_data["email"])
        if existing and existing.id != user.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered",
            )
        user.email = update_data["email"].lower()

    if "name" in update_data:
        user.name = update_data["name"]
    if "image" in update_data:
        user.image = update_data["image"]
    if update_data.get("password"):
        user.password_hash = get_password_hash(update_data["password"])
    if update_data.get("role") is not None:
        user.role = update_data["role"].value
    if update_data.get("active") is not None:
        user.active = update_data["active"]

    await db.commit()
    await db.refresh(user)
    invalidate_user_permissions(user.id)
    return user


@router.patch(
    "/api/users/{user_id}/role",
    response_model=UserResponse,
    summary="Change a user's role",
    responses={
        200: {"description": "Role updated"},
        400: {"description": "Invalid role"},
        403: {"description": "Missing manage_roles"},
        404: {"description": "User not found"},
    },
)
async def update_user_role(
    user_id: UUID,
    role_data: UserRoleUpdate,
    current_user: Annotated[User, Depends(require_permission("manage_roles"))],
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Assign a new system role to a user."""
    return await PermissionService(db).update_user_role(user_id, role_data.role.value)


@router.delete(
    "/api/users/{user_id}",
    response_model=MessageResponse,
    summary="Delete a user",
    responses={
        200: {"description": "User deleted"},
        400: {"description": "Cannot delete yourself"},
        403: {"description": "Missing user_management"},
        404: {"description": "User not found"},
    },
)
async def delete_user(
    user_id: UUID,
    current_user: Annotated[User, Depends(require_permission("user_management"))],
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete a user; memberships, assignments and records cascade."""
    if user_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account",
        )
    user = await get_user_or_404(db, user_id)
    await db.delete(user)
    await db.commit()
    invalidate_user_permissions(user_id)
    return MessageResponse(message="User deleted successfully")


@router.get(
    "/api/users/{user_id}/teams",
    response_model=List[TeamMemberResponse],
    summary="List a user's project memberships",
    responses={
        200: {"description": "Memberships retrieved"},
        403: {"description": "Not allowed to view this user's teams"},
        404: {"description": "User not found"},
    },
)
async def get_user_teams(
    user_id: UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> List[TeamMemberResponse]:
    """One row per project the user belongs to, with project title and role."""
    if current_user.id != user_id and not is_admin_or_manager(current_user):
        if not await PermissionService(db).user_has_permission(current_user, "team_view"):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to view this user's teams",
            )
    await get_user_or_404(db, user_id)

    result = await db.execute(
        select(TeamMember).where(TeamMember.user_id == user_id).order_by(TeamMember.joined_at.desc())
    )
    memberships = [TeamMemberResponse.model_validate(m) for m in result.scalars().all()]
    task_counts = await get_member_task_counts(db, [(m.user_id, m.project_id) for m in memberships])
    for member in memberships:
        member.task_count = task_counts.get((member.user_id, member.project_id), 0)
    return dedupe_members(memberships)


@router.get(
    "/api/users/{user_id}/attendance",
    response_model=AttendanceHistoryResponse,
    summary="Get a user's attendance history",
    responses={
        200: {"description": "Attendance retrieved"},
        403: {"description": "Only the user, admins and managers"},
        404: {"description": "User not found"},
    },
)
async def get_user_attendance(
    user_id: UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> AttendanceHistoryResponse:
    """Attendance records of a user, newest first."""
    if current_user.id != user_id and not is_admin_or_manager(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to view this user's attendance",
        )
    await get_user_or_404(db, user_id)

    start_date, end_date = to_naive_utc(start_date), to_naive_utc(end_date)
    query = select(Attendance).where(Attendance.user_id == user_id)
    if start_date:
        query = query.where(Attendance.check_in_time >= get_day_boundaries(start_date)[0])
    if end_date:
        query = query.where(Attendance.check_in_time <= get_day_boundaries(end_date)[1])

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    result = await db.execute(
        query.order_by(Attendance.check_in_time.desc()).offset((page - 1) * limit).limit(limit)
    )
    return AttendanceHistoryResponse(
        attendance_records=[AttendanceResponse.model_validate(r) for r in result.scalars().all()],
        start_date=start_date,
        end_date=end_date,
        pagination=Pagination.build(total, page, limit),
    )
