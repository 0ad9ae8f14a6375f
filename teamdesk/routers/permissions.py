"""Permission and role API endpoints.

Exposes the permission catalogue, the role to permission matrix, and
permission checks for the current user. The matrix can be edited by
holders of manage_permissions; cache maintenance is admin-only.

This router must be registered before the users router so that
/api/users/permissions is not captured by /api/users/{user_id}.
"""

from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..constants import ROLE_METADATA
from ..database import get_db
from ..models.user import User
from ..schemas.common import MessageResponse
from ..schemas.permission import (
    PermissionCheckRequest,
    PermissionCheckResponse,
    PermissionInfo,
    PermissionMatrixResponse,
    RoleInfo,
    RolePermissionsResponse,
    RolePermissionsUpdate,
    UserPermissionsResponse,
)
from ..services.auth_service import get_current_active_user
from ..services.permission_cache_service import clear_all_caches, get_cache_stats
from ..services.permission_service import (
    PermissionService,
    require_admin,
    require_permission,
)

router = APIRouter(tags=["Permissions"])


@router.get(
    "/api/permissions",
    response_model=List[PermissionInfo],
    summary="List all permissions",
    responses={
        200: {"description": "Permissions with display metadata"},
        401: {"description": "Not authenticated"},
    },
)
async def list_permissions(
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> List[PermissionInfo]:
    """Every permission with display name, description and category."""
    records = await PermissionService(db).get_all_permissions()
    return [PermissionInfo(**r) for r in records]


@router.get(
    "/api/permissions/matrix",
    response_model=PermissionMatrixResponse,
    summary="Get the permission matrix",
    responses={
        200: {"description": "Role to permission list"},
        401: {"description": "Not authenticated"},
    },
)
async def get_matrix(
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> PermissionMatrixResponse:
    """Role to permission mapping. The admin row lists every permission."""
    service = PermissionService(db)
    matrix = {role: await service.get_role_permissions(role) for role in ROLE_METADATA}
    return PermissionMatrixResponse(matrix=matrix)


@router.put(
    "/api/permissions/matrix",
    response_model=RolePermissionsResponse,
    summary="Replace one role's permissions",
    responses={
        200: {"description": "Role permissions updated"},
        400: {"description": "Admin role or unknown permission"},
        403: {"description": "Missing manage_permissions"},
    },
)
async def update_matrix(
    update: RolePermissionsUpdate,
    current_user: Annotated[User, Depends(require_permission("manage_permissions"))],
    db: AsyncSession = Depends(get_db),
) -> RolePermissionsResponse:
    """
    Replace the permission set of a role.

    - **role**: manager, user or guest (admin cannot be edited)
    - **permissions**: Complete list of permission keys
    """
    permissions = await PermissionService(db).update_role_permissions(update.role.value, update.permissions)
    return RolePermissionsResponse(role=update.role.value, permissions=permissions)


@router.get(
    "/api/permissions/cache-stats",
    summary="Permission cache statistics",
    responses={403: {"description": "Admin role required"}},
)
async def permission_cache_stats(
    current_user: Annotated[User, Depends(require_admin)],
) -> dict:
    return get_cache_stats()


@router.post(
    "/api/permissions/cache/clear",
    response_model=MessageResponse,
    summary="Clear the permission caches",
    responses={403: {"description": "Admin role required"}},
)
async def clear_permission_cache(
    current_user: Annotated[User, Depends(require_admin)],
) -> MessageResponse:
    clear_all_caches()
    return MessageResponse(message="Permission caches cleared")


@router.get(
    "/api/roles",
    response_model=List[RoleInfo],
    summary="List roles",
    responses={401: {"description": "Not authenticated"}},
)
async def list_roles(
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> List[RoleInfo]:
    """Role metadata with the number of granted permissions."""
    return [RoleInfo(**r) for r in await PermissionService(db).get_all_roles()]


@router.get(
    "/api/roles/{role}/permissions",
    response_model=RolePermissionsResponse,
    summary="Get a role's permissions",
    responses={404: {"description": "Unknown role"}},
)
async def get_role_permissions(
    role: str,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> RolePermissionsResponse:
    if role not in ROLE_METADATA:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Role '{role}' not found",
        )
    permissions = await PermissionService(db).get_role_permissions(role)
    return RolePermissionsResponse(role=role, permissions=permissions)


@router.get(
    "/api/users/permissions",
    response_model=UserPermissionsResponse,
    summary="Current user's permissions",
    responses={401: {"description": "Not authenticated"}},
)
async def get_my_permissions(
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> UserPermissionsResponse:
    permissions = await PermissionService(db).get_user_permissions(current_user)
    return UserPermissionsResponse(role=current_user.role, permissions=permissions)


@router.post(
    "/api/users/check-permission",
    response_model=PermissionCheckResponse,
    summary="Check a permission for the current user",
    responses={401: {"description": "Not authenticated"}},
)
async def check_permission(
    request: PermissionCheckRequest,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> PermissionCheckResponse:
    """Unknown permission names simply report false."""
    allowed = await PermissionService(db).user_has_permission(current_user, request.permission)
    return PermissionCheckResponse(permission=request.permission, has_permission=allowed)
