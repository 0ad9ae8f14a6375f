"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import TimeoutError as SQLAlchemyTimeoutError

from . import __version__
from .config import settings
from .database import async_session_maker, warmup_connection_pool
from .routers import (
    attendance_router,
    auth_router,
    dashboard_router,
    permissions_router,
    projects_router,
    tasks_router,
    team_router,
    users_router,
)
from .services.permission_cache_service import get_cache_stats
from .services.permission_service import sync_default_permissions

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown tasks."""
    # Startup
    logger.info("Warming up database connection pool...")
    await warmup_connection_pool()
    logger.info("Database connection pool ready")

    logger.info("Syncing default roles and permissions...")
    try:
        async with async_session_maker() as session:
            created = await sync_default_permissions(session)
        logger.info(f"Permission sync complete: {created}")
    except Exception as e:
        logger.warning(f"Permission sync failed, continuing with built-in defaults: {e}")

    yield

    # Shutdown
    logger.info("Shutting down")


# Create FastAPI application
app = FastAPI(
    title="TeamDesk API",
    description="Projects, tasks, teams and attendance with role-based permissions",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# A request that cannot get a pooled connection within db_pool_timeout
@app.exception_handler(SQLAlchemyTimeoutError)
async def db_pool_exhausted_handler(request: Request, exc: SQLAlchemyTimeoutError):
    """503 with Retry-After so clients back off instead of failing."""
    logger.warning(f"No database connection for {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Database busy, please retry", "retry_after": 5},
        headers={"Retry-After": "5"},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Log the traceback and hide internals from the client."""
    logger.exception(f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# Include API routers
# permissions_router owns /api/users/permissions and must precede users_router
app.include_router(auth_router)
app.include_router(permissions_router)
app.include_router(users_router)
app.include_router(projects_router)
app.include_router(team_router)
app.include_router(tasks_router)
app.include_router(attendance_router)
app.include_router(dashboard_router)


@app.get("/")
async def root():
    """Root endpoint - health check."""
    return {
        "status": "healthy",
        "service": "TeamDesk API",
        "version": __version__,
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "permission_cache": get_cache_stats(),
    }
