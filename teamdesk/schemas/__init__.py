"""Pydantic schemas package for request/response validation."""

from .activity import ActivityListResponse, ActivityResponse
from .attendance import (
    AttendanceAdjustRequest,
    AttendanceHistoryResponse,
    AttendanceResponse,
    AttendanceSettingsResponse,
    AttendanceSettingsUpdate,
    AttendanceStatsResponse,
    CheckInRequest,
    CheckOutRequest,
    CorrectionRequestCreate,
    CorrectionRequestResponse,
    CorrectionReview,
)
from .comment import CommentCreate, CommentResponse
from .common import MessageResponse, Pagination
from .dashboard import DashboardStatsResponse
from .permission import (
    PermissionCheckRequest,
    PermissionCheckResponse,
    PermissionInfo,
    PermissionMatrixResponse,
    RoleInfo,
    RolePermissionsUpdate,
)
from .project import (
    ProjectCreate,
    ProjectDetail,
    ProjectListResponse,
    ProjectResponse,
    ProjectStatusCreate,
    ProjectStatusResponse,
    ProjectStatusUpdate,
    ProjectUpdate,
    ProjectWithCounts,
)
from .task import (
    TaskCreate,
    TaskDetail,
    TaskPriority,
    TaskReorder,
    TaskResponse,
    TaskStatusChange,
    TaskUpdate,
)
from .team import (
    TeamListResponse,
    TeamMemberCreate,
    TeamMemberResponse,
    TeamMemberUpdate,
)
from .user import (
    CurrentUserResponse,
    UserCreate,
    UserDetailResponse,
    UserResponse,
    UserSummary,
    UserUpdate,
)

__all__ = [
    # Activity schemas
    "ActivityListResponse",
    "ActivityResponse",
    # Attendance schemas
    "AttendanceAdjustRequest",
    "AttendanceHistoryResponse",
    "AttendanceResponse",
    "AttendanceSettingsResponse",
    "AttendanceSettingsUpdate",
    "AttendanceStatsResponse",
    "CheckInRequest",
    "CheckOutRequest",
    "CorrectionRequestCreate",
    "CorrectionRequestResponse",
    "CorrectionReview",
    # Comment schemas
    "CommentCreate",
    "CommentResponse",
    # Common schemas
    "MessageResponse",
    "Pagination",
    # Dashboard schemas
    "DashboardStatsResponse",
    # Permission schemas
    "PermissionCheckRequest",
    "PermissionCheckResponse",
    "PermissionInfo",
    "PermissionMatrixResponse",
    "RoleInfo",
    "RolePermissionsUpdate",
    # Project schemas
    "ProjectCreate",
    "ProjectDetail",
    "ProjectListResponse",
    "ProjectResponse",
    "ProjectStatusCreate",
    "ProjectStatusResponse",
    "ProjectStatusUpdate",
    "ProjectUpdate",
    "ProjectWithCounts",
    # Task schemas
    "TaskCreate",
    "TaskDetail",
    "TaskPriority",
    "TaskReorder",
    "TaskResponse",
    "TaskStatusChange",
    "TaskUpdate",
    # Team schemas
    "TeamListResponse",
    "TeamMemberCreate",
    "TeamMemberResponse",
    "TeamMemberUpdate",
    # User schemas
    "CurrentUserResponse",
    "UserCreate",
    "UserDetailResponse",
    "UserResponse",
    "UserSummary",
    "UserUpdate",
]
