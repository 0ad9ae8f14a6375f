"""Pydantic schemas for roles, permissions and the permission matrix."""

from typing import Dict, List

from pydantic import BaseModel, Field

from ..constants import SystemRole


class PermissionInfo(BaseModel):
    """Display metadata for one permission."""

    name: str = Field(..., description="Permission key", examples=["task_creation"])
    display_name: str = Field(..., examples=["Task Creation"])
    description: str = Field(..., examples=["Permission to task creation"])
    category: str = Field(..., examples=["Task Management"])


class RoleInfo(BaseModel):
    """Display metadata for one role."""

    name: str = Field(..., examples=["manager"])
    label: str = Field(..., examples=["Manager"])
    description: str
    color: str
    permission_count: int = Field(..., ge=0)


class PermissionMatrixResponse(BaseModel):
    """Role to permission list mapping."""

    matrix: Dict[str, List[str]]


class RolePermissionsUpdate(BaseModel):
    """Replace the permission set of one role."""

    role: SystemRole = Field(..., description="Role to update", examples=["user"])
    permissions: List[str] = Field(
        ...,
        description="Complete list of permission keys for the role",
        examples=[["task_creation", "view_projects"]],
    )


class RolePermissionsResponse(BaseModel):
    """Permissions granted to one role."""

    role: str
    permissions: List[str]


class PermissionCheckRequest(BaseModel):
    """Ask whether the current user holds a permission."""

    permission: str = Field(..., min_length=1, examples=["project_creation"])


class PermissionCheckResponse(BaseModel):
    """Result of a permission check."""

    permission: str
    has_permission: bool


class UserPermissionsResponse(BaseModel):
    """Effective permissions of the current user."""

    role: str
    permissions: List[str]
