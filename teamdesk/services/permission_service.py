"""Permission service for role lookups and project/team gate logic.

Permission Model:
- A user's system role (Users.role) maps to a set of permission names
  through the RolePermissions table (the permission matrix).
- 'admin' implicitly holds every permission.
- The matrix is read through a TTL cache. On a database error the last
  cached matrix is served, and failing that the built-in default matrix.

Project Rules:
- Project access: admin, project creator, or team member
- Team view: team_view permission, project creator, member, or self
- Team add: team_add permission or project creator
- Team update: team_management permission or project creator; the
  creator's own membership is immutable
- Team remove: team_remove permission, project creator, or self; the
  creator cannot be removed
"""

import logging
from typing import Callable, Dict, FrozenSet, List, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from sqlalchemy import delete, exists, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..constants import (
    ALL_PERMISSIONS,
    DEFAULT_PERMISSION_MATRIX,
    ROLE_METADATA,
    ActivityAction,
    SystemRole,
    permission_category,
    permission_description,
    permission_display_name,
)
from ..database import get_db
from ..models.project import Project
from ..models.role import Permission, Role, RolePermission
from ..models.team_member import TeamMember
from ..models.user import User
from . import permission_cache_service as cache
from .activity_service import log_activity
from .auth_service import get_current_active_user

logger = logging.getLogger(__name__)

MANAGER_ROLES = (SystemRole.ADMIN.value, SystemRole.MANAGER.value)


def is_admin(user: User) -> bool:
    return user.role == SystemRole.ADMIN.value


def is_admin_or_manager(user: User) -> bool:
    return user.role in MANAGER_ROLES


async def sync_default_permissions(db: AsyncSession) -> Dict[str, int]:
    """
    Insert missing roles, permissions and default role grants.

    Existing rows are left untouched, so edits made through the matrix
    endpoint survive restarts. Commits when anything was added.

    Returns:
        Counts of inserted roles, permissions and grants
    """
    roles = {r.name: r for r in (await db.execute(select(Role))).scalars().all()}
    perms = {p.name: p for p in (await db.execute(select(Permission))).scalars().all()}
    added = {"roles": 0, "permissions": 0, "grants": 0}
    new_roles = set()

    for name, meta in ROLE_METADATA.items():
        if name not in roles:
            role = Role(name=name, description=meta["description"], color=meta["color"], is_system=True)
            db.add(role)
            roles[name] = role
            new_roles.add(name)
            added["roles"] += 1

    for name in ALL_PERMISSIONS:
        if name not in perms:
            perm = Permission(
                name=name,
                description=permission_description(name),
                category=permission_category(name),
            )
            db.add(perm)
            perms[name] = perm
            added["permissions"] += 1

    await db.flush()

    # Only freshly created roles receive the default grants
    for role_name in new_roles:
        for perm_name in DEFAULT_PERMISSION_MATRIX.get(role_name, ()):
            db.add(RolePermission(role_id=roles[role_name].id, permission_id=perms[perm_name].id))
            added["grants"] += 1

    if any(added.values()):
        await db.commit()
        cache.clear_all_caches()
        logger.info(
            f"Permission defaults synced: {added['roles']} roles, "
            f"{added['permissions']} permissions, {added['grants']} grants"
        )

    return added


class PermissionService:
    """
    Service class for permission lookups and project/team access checks.
    """

    def __init__(self, db: AsyncSession):
        """
        Initialize the PermissionService.

        Args:
            db: SQLAlchemy async database session
        """
        self.db = db

    # ------------------------------------------------------------------
    # Permission matrix
    # ------------------------------------------------------------------

    async def _load_matrix(self) -> Dict[str, FrozenSet[str]]:
        """Read role -> permissions from the database."""
        matrix: Dict[str, set] = {
            name: set() for name in (await self.db.execute(select(Role.name))).scalars().all()
        }
        result = await self.db.execute(
            select(Role.name, Permission.name)
            .join(RolePermission, RolePermission.role_id == Role.id)
            .join(Permission, Permission.id == RolePermission.permission_id)
        )
        for role_name, perm_name in result.all():
            matrix.setdefault(role_name, set()).add(perm_name)
        return {role: frozenset(perms) for role, perms in matrix.items()}

    async def get_permission_matrix(self) -> Dict[str, FrozenSet[str]]:
        """
        Get the role -> permission set matrix.

        Returns:
            The cached matrix, a freshly loaded one, or a fallback on error.
        """
        cached = cache.get_cached_matrix()
        if cached is not None:
            return cached

        try:
            # A failed read must not abort the caller's transaction
            async with self.db.begin_nested():
                matrix = await self._load_matrix()
        except SQLAlchemyError as e:
            stale = cache.get_stale_matrix()
            if stale is not None:
                logger.warning(f"Permission matrix load failed, serving stale cache: {e}")
                return stale
            logger.warning(f"Permission matrix load failed, serving defaults: {e}")
            return dict(DEFAULT_PERMISSION_MATRIX)

        if not matrix:
            logger.warning("Permission tables are empty, serving default matrix")
            return dict(DEFAULT_PERMISSION_MATRIX)

        cache.set_cached_matrix(matrix)
        return matrix

    async def has_permission(self, role: Optional[str], permission: str) -> bool:
        """
        Check whether a role holds a permission.

        Admin always passes; unknown roles never do.
        """
        if role == SystemRole.ADMIN.value:
            return True
        matrix = await self.get_permission_matrix()
        perms = matrix.get(role or "")
        if perms is None:
            return False
        return permission in perms

    async def get_role_permissions(self, role: str) -> List[str]:
        """Sorted permissions of a role (every permission for admin)."""
        if role == SystemRole.ADMIN.value:
            return sorted(ALL_PERMISSIONS)
        matrix = await self.get_permission_matrix()
        return sorted(matrix.get(role, frozenset()))

    async def get_user_permissions(self, user: User) -> List[str]:
        """Effective permissions of a user, cached per user."""
        cached = cache.get_cached_user_permissions(user.id)
        if cached is not None:
            return cached

        if not user.active:
            permissions: List[str] = []
        else:
            permissions = await self.get_role_permissions(user.role)

        cache.set_cached_user_permissions(user.id, permissions)
        return permissions

    async def user_has_permission(self, user: User, permission: str) -> bool:
        """Check a permission against the user's effective permissions."""
        return permission in await self.get_user_permissions(user)

    async def get_roles_with_permission(self, permission: str) -> List[str]:
        """Roles that hold a permission; admin is always included."""
        matrix = await self.get_permission_matrix()
        roles = {role for role, perms in matrix.items() if permission in perms}
        roles.add(SystemRole.ADMIN.value)
        return sorted(roles)

    async def get_all_permissions(self) -> List[dict]:
        """Permission metadata records, sorted by category then name."""
        try:
            names = list((await self.db.execute(select(Permission.name))).scalars().all())
        except SQLAlchemyError as e:
            logger.warning(f"Permission list load failed, serving defaults: {e}")
            names = []
        names = sorted(set(names) | set(ALL_PERMISSIONS))
        records = [
            {
                "name": name,
                "display_name": permission_display_name(name),
                "description": permission_description(name),
                "category": permission_category(name),
            }
            for name in names
        ]
        return sorted(records, key=lambda r: (r["category"], r["name"]))

    async def get_all_roles(self) -> List[dict]:
        """Role metadata with permission counts."""
        matrix = await self.get_permission_matrix()
        roles = []
        for name, meta in ROLE_METADATA.items():
            count = len(ALL_PERMISSIONS) if name == SystemRole.ADMIN.value else len(matrix.get(name, ()))
            roles.append({
                "name": name,
                "label": meta["label"],
                "description": meta["description"],
                "color": meta["color"],
                "permission_count": count,
            })
        return roles

    async def update_role_permissions(self, role: str, permissions: List[str]) -> List[str]:
        """
        Replace the permission set of a role.

        Raises:
            HTTPException: 400 for admin, an unknown role, or unknown permissions
        """
        if role == SystemRole.ADMIN.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Administrator permissions cannot be modified",
            )

        unknown = sorted(set(permissions) - set(ALL_PERMISSIONS))
        if unknown:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown permissions: {', '.join(unknown)}",
            )

        role_row = (await self.db.execute(select(Role).where(Role.name == role))).scalar_one_or_none()
        if role_row is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown role: {role}",
            )

        perm_rows = (
            await self.db.execute(select(Permission).where(Permission.name.in_(set(permissions))))
        ).scalars().all()
        by_name = {p.name: p for p in perm_rows}
        missing = set(permissions) - set(by_name)
        for name in missing:
            perm = Permission(
                name=name,
                description=permission_description(name),
                category=permission_category(name),
            )
            self.db.add(perm)
            by_name[name] = perm
        await self.db.flush()

        await self.db.execute(delete(RolePermission).where(RolePermission.role_id == role_row.id))
        for name in sorted(set(permissions)):
            self.db.add(RolePermission(role_id=role_row.id, permission_id=by_name[name].id))

        await self.db.commit()
        cache.clear_all_caches()
        logger.info(f"Permissions for role '{role}' replaced ({len(set(permissions))} granted)")
        return sorted(set(permissions))

    async def update_user_role(self, user_id: UUID, role: str) -> User:
        """
        Change a user's system role.

        Raises:
            HTTPException: 400 for an unknown role, 404 for an unknown user
        """
        if role not in ROLE_METADATA:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid role: {role}",
            )

        user = (await self.db.execute(select(User).where(User.id == user_id))).scalar_one_or_none()
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"User with ID {user_id} not found",
            )

        user.role = role
        await self.db.commit()
        await self.db.refresh(user)
        cache.invalidate_user_permissions(user_id)
        return user

    @staticmethod
    def check_owner_or_admin(user: User, resource_user_id: UUID, admin_only: bool = False) -> bool:
        """Owner of the resource, admin, or (unless admin_only) manager."""
        if user.id == resource_user_id:
            return True
        if is_admin(user):
            return True
        return not admin_only and user.role == SystemRole.MANAGER.value

    # ------------------------------------------------------------------
    # Project membership
    # ------------------------------------------------------------------

    async def is_project_member(self, user_id: UUID, project_id: UUID) -> bool:
        """
        Check if a user is a member of a project.

        Uses EXISTS pattern - avoids loading the record.
        """
        result = await self.db.execute(
            select(
                exists().where(
                    TeamMember.project_id == project_id,
                    TeamMember.user_id == user_id,
                )
            )
        )
        return result.scalar() or False

    async def get_project_member_role(self, user_id: UUID, project_id: UUID) -> Optional[str]:
        """The user's role within a project, or None if not a member."""
        result = await self.db.execute(
            select(TeamMember.role).where(
                TeamMember.project_id == project_id,
                TeamMember.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def can_access_project(self, user: User, project: Project) -> bool:
        """Admin, project creator, or team member."""
        if is_admin(user) or project.created_by_id == user.id:
            return True
        return await self.is_project_member(user.id, project.id)

    async def can_view_project(self, user: User, project: Project) -> bool:
        """Project access, widened to managers."""
        if is_admin_or_manager(user):
            return True
        return await self.can_access_project(user, project)

    # ------------------------------------------------------------------
    # Team rules
    # ------------------------------------------------------------------

    async def can_view_team_member(self, user: User, membership: TeamMember, project: Project) -> bool:
        if await self.user_has_permission(user, "team_view"):
            return True
        if project.created_by_id == user.id or membership.user_id == user.id:
            return True
        return await self.is_project_member(user.id, project.id)

    async def can_add_team_member(self, user: User, project: Project) -> bool:
        if project.created_by_id == user.id:
            return True
        return await self.user_has_permission(user, "team_add")

    async def can_update_team_member(self, user: User, project: Project) -> bool:
        if project.created_by_id == user.id:
            return True
        return await self.user_has_permission(user, "team_management")

    async def can_remove_team_member(self, user: User, membership: TeamMember, project: Project) -> bool:
        if project.created_by_id == user.id or membership.user_id == user.id:
            return True
        return await self.user_has_permission(user, "team_remove")

    async def deny(
        self,
        user: User,
        action: str,
        entity_type: str,
        entity_id,
        project_id: Optional[UUID] = None,
        detail: str = "Access denied",
    ) -> HTTPException:
        """
        Record a permission denial and build the 403 to raise.

        The denial activity is committed immediately so it survives the
        request failing.
        """
        logger.warning(f"Permission denied: user {user.id} tried to {action} {entity_type} {entity_id}")
        log_activity(
            self.db,
            action=ActivityAction.PERMISSION_DENIED,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{user.email} was denied permission to {action} {entity_type}",
            user_id=user.id,
            project_id=project_id,
        )
        await self.db.commit()
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def get_permission_service(db: AsyncSession) -> PermissionService:
    """
    Factory function to create a PermissionService instance.

    Args:
        db: SQLAlchemy async database session

    Returns:
        PermissionService instance
    """
    return PermissionService(db)


def require_permission(permission: str) -> Callable:
    """
    Build a FastAPI dependency that requires a permission.

    Usage:
        @router.post("/api/projects")
        async def create(user: User = Depends(require_permission("project_creation"))):
            ...
    """

    async def checker(
        current_user: User = Depends(get_current_active_user),
        db: AsyncSession = Depends(get_db),
    ) -> User:
        service = PermissionService(db)
        if not await service.user_has_permission(current_user, permission):
            logger.warning(f"Permission denied: user {current_user.id} lacks '{permission}'")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission: {permission}",
            )
        return current_user

    return checker


def require_admin_or_manager(
    current_user: User = Depends(get_current_active_user),
) -> User:
    """Dependency allowing only admins and managers."""
    if not is_admin_or_manager(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin or manager role required",
        )
    return current_user


def require_admin(
    current_user: User = Depends(get_current_active_user),
) -> User:
    """Dependency allowing only admins."""
    if not is_admin(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )
    return current_user
