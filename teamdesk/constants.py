"""Role and permission constants plus activity action names.

The default permission matrix seeds the Roles/Permissions tables and is
the last-resort fallback when the database matrix cannot be read.
"""

from enum import Enum
from typing import Dict, FrozenSet, List


class SystemRole(str, Enum):
    """System-wide user roles."""

    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"
    GUEST = "guest"


ROLE_METADATA: Dict[str, Dict[str, str]] = {
    SystemRole.ADMIN.value: {
        "label": "Administrator",
        "description": "Full access to all system features",
        "color": "#8B5CF6",
    },
    SystemRole.MANAGER.value: {
        "label": "Manager",
        "description": "Can manage projects, tasks, and team members",
        "color": "#3B82F6",
    },
    SystemRole.USER.value: {
        "label": "User",
        "description": "Regular user with limited permissions",
        "color": "#10B981",
    },
    SystemRole.GUEST.value: {
        "label": "Guest",
        "description": "View-only access to projects",
        "color": "#6B7280",
    },
}


class PermissionName(str, Enum):
    """Every permission known to the application."""

    USER_MANAGEMENT = "user_management"
    MANAGE_ROLES = "manage_roles"
    MANAGE_PERMISSIONS = "manage_permissions"
    PROJECT_CREATION = "project_creation"
    PROJECT_MANAGEMENT = "project_management"
    PROJECT_DELETION = "project_deletion"
    TEAM_MANAGEMENT = "team_management"
    TEAM_ADD = "team_add"
    TEAM_REMOVE = "team_remove"
    TEAM_VIEW = "team_view"
    TASK_CREATION = "task_creation"
    TASK_ASSIGNMENT = "task_assignment"
    TASK_MANAGEMENT = "task_management"
    TASK_DELETION = "task_deletion"
    VIEW_PROJECTS = "view_projects"
    EDIT_PROFILE = "edit_profile"
    SYSTEM_SETTINGS = "system_settings"
    VIEW_DASHBOARD = "view_dashboard"
    ATTENDANCE_MANAGEMENT = "attendance_management"
    VIEW_TEAM_ATTENDANCE = "view_team_attendance"


ALL_PERMISSIONS: List[str] = [p.value for p in PermissionName]

P = PermissionName

DEFAULT_PERMISSION_MATRIX: Dict[str, FrozenSet[str]] = {
    SystemRole.ADMIN.value: frozenset(ALL_PERMISSIONS),
    SystemRole.MANAGER.value: frozenset({
        P.PROJECT_CREATION.value,
        P.PROJECT_MANAGEMENT.value,
        P.TEAM_MANAGEMENT.value,
        P.TEAM_ADD.value,
        P.TEAM_REMOVE.value,
        P.TEAM_VIEW.value,
        P.TASK_CREATION.value,
        P.TASK_ASSIGNMENT.value,
        P.TASK_MANAGEMENT.value,
        P.TASK_DELETION.value,
        P.VIEW_PROJECTS.value,
        P.EDIT_PROFILE.value,
        P.VIEW_DASHBOARD.value,
        P.VIEW_TEAM_ATTENDANCE.value,
    }),
    SystemRole.USER.value: frozenset({
        P.TASK_CREATION.value,
        P.TASK_MANAGEMENT.value,
        P.VIEW_PROJECTS.value,
        P.EDIT_PROFILE.value,
        P.VIEW_DASHBOARD.value,
        P.TEAM_VIEW.value,
    }),
    SystemRole.GUEST.value: frozenset({
        P.VIEW_PROJECTS.value,
    }),
}


def permission_display_name(permission: str) -> str:
    """'task_creation' -> 'Task Creation'."""
    return " ".join(word.capitalize() for word in permission.split("_"))


def permission_description(permission: str) -> str:
    """'task_creation' -> 'Permission to task creation'."""
    return f"Permission to {permission.replace('_', ' ')}"


def permission_category(permission: str) -> str:
    """Derive the display category of a permission from its key."""
    key = permission.lower()
    if "user" in key or "role" in key:
        return "User Management"
    if "project" in key:
        return "Project Management"
    if "task" in key:
        return "Task Management"
    if "attendance" in key:
        return "Attendance"
    if "team" in key:
        return "Team Management"
    if "system" in key or "permission" in key or "dashboard" in key:
        return "System"
    return "General"


# Project-level roles on TeamMembers
class TeamRole(str, Enum):
    """Role of a user within one project."""

    OWNER = "owner"
    ADMIN = "admin"
    MANAGER = "manager"
    MEMBER = "member"


class ActivityAction(str, Enum):
    """Action keys written to the Activities log."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    STATUS_CHANGED = "status_changed"
    MEMBER_ADDED = "member_added"
    MEMBER_REMOVED = "member_removed"
    PERMISSION_DENIED = "permission_denied"
    CHECK_IN = "CHECK_IN"
    CHECK_OUT = "CHECK_OUT"
    AUTO_CHECKOUT = "AUTO_CHECKOUT"
    ADJUSTED = "ADJUSTED"
    CORRECTION_REQUESTED = "CORRECTION_REQUESTED"
    CORRECTION_REVIEWED = "CORRECTION_REVIEWED"


ATTENDANCE_ACTIONS = [
    ActivityAction.CHECK_IN.value,
    ActivityAction.CHECK_OUT.value,
    ActivityAction.AUTO_CHECKOUT.value,
    ActivityAction.ADJUSTED.value,
    ActivityAction.CORRECTION_REQUESTED.value,
    ActivityAction.CORRECTION_REVIEWED.value,
]
