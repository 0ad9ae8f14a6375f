"""API routers package.

This package contains all FastAPI routers for the application.
Each router handles a specific domain of the API.
"""

from .attendance import router as attendance_router
from .auth import router as auth_router
from .dashboard import router as dashboard_router
from .permissions import router as permissions_router
from .projects import router as projects_router
from .tasks import router as tasks_router
from .team import router as team_router
from .users import router as users_router

__all__ = [
    "attendance_router",
    "auth_router",
    "dashboard_router",
    "permissions_router",
    "projects_router",
    "tasks_router",
    "team_router",
    "users_router",
]
