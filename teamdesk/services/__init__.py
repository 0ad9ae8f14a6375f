"""Business logic services."""

from .activity_service import get_project_activities, log_activity
from .attendance_service import (
    auto_checkout_stale_records,
    close_record,
    compute_stats,
    detect_exceptions,
    get_open_record,
    get_today_summary,
    group_records,
)
from .auth_service import (
    authenticate_user,
    create_access_token,
    create_user,
    get_current_active_user,
    get_current_user,
    get_user_by_email,
)
from .permission_cache_service import (
    clear_all_caches,
    get_cache_stats,
    invalidate_matrix,
    invalidate_user_permissions,
)
from .permission_service import (
    PermissionService,
    get_permission_service,
    require_permission,
    sync_default_permissions,
)
from .project_service import (
    get_default_completed_status,
    get_default_non_completed_status,
    get_project_counts,
    get_project_or_404,
    verify_project_access,
)

__all__ = [
    "PermissionService",
    "authenticate_user",
    "auto_checkout_stale_records",
    "clear_all_caches",
    "close_record",
    "compute_stats",
    "create_access_token",
    "create_user",
    "detect_exceptions",
    "get_cache_stats",
    "get_current_active_user",
    "get_current_user",
    "get_default_completed_status",
    "get_default_non_completed_status",
    "get_open_record",
    "get_permission_service",
    "get_project_activities",
    "get_project_counts",
    "get_project_or_404",
    "get_today_summary",
    "get_user_by_email",
    "group_records",
    "invalidate_matrix",
    "invalidate_user_permissions",
    "log_activity",
    "require_permission",
    "sync_default_permissions",
    "verify_project_access",
]
