"""SQLAlchemy ORM models package."""

from .activity import Activity
from .attendance import Attendance, AttendanceCorrectionRequest, AttendanceSettings
from .comment import Comment
from .project import Project
from .project_status import ProjectStatus
from .role import Permission, Role, RolePermission
from .task import Task, TaskAssignee
from .team_member import TeamMember
from .user import User

__all__ = [
    "Activity",
    "Attendance",
    "AttendanceCorrectionRequest",
    "AttendanceSettings",
    "Comment",
    "Permission",
    "Project",
    "ProjectStatus",
    "Role",
    "RolePermission",
    "Task",
    "TaskAssignee",
    "TeamMember",
    "User",
]
