"""
ARQ Worker Configuration

Background job processing with Redis-backed task queue.
Closes attendance records that were left open past their day.

Run with:
    arq teamdesk.worker.WorkerSettings
"""

import logging
from datetime import datetime
from typing import Any
from urllib.parse import urlparse

from arq import cron
from arq.connections import RedisSettings

from .config import settings
from .database import async_session_maker
from .services.attendance_service import auto_checkout_stale_records

logger = logging.getLogger(__name__)


# Format: redis://host:port/db or redis://:password@host:port/db
def parse_redis_url(url: str) -> RedisSettings:
    """Parse Redis URL into ARQ RedisSettings."""
    parsed = urlparse(url)
    return RedisSettings(
        host=parsed.hostname or "localhost",
        port=parsed.port or 6379,
        password=parsed.password,
        database=int(parsed.path.lstrip("/") or 0),
    )


# =============================================================================
# Attendance Jobs
# =============================================================================


async def run_auto_checkout(ctx: dict[str, Any]) -> dict[str, Any]:
    """
    Close every open attendance record checked in before today.

    Each record gets the default shift length, capped at the end of its
    check-in day, and an AUTO_CHECKOUT activity.

    Returns:
        dict with the number of closed records
    """
    logger.info("Running scheduled auto-checkout...")

    closed = 0
    try:
        async with async_session_maker() as db:
            closed = await auto_checkout_stale_records(db)
        logger.info(f"Auto-checkout complete: {closed} records closed")
    except Exception as e:
        logger.error(f"Error running auto-checkout: {e}", exc_info=True)

    return {
        "closed": closed,
        "run_at": datetime.utcnow().isoformat(),
    }


# =============================================================================
# Startup/Shutdown Hooks
# =============================================================================


async def startup(ctx: dict[str, Any]) -> None:
    logger.info("ARQ worker starting up...")


async def shutdown(ctx: dict[str, Any]) -> None:
    logger.info("ARQ worker shutting down...")


# =============================================================================
# Schedule Parsing
# =============================================================================


def parse_schedule_set(value: str) -> set[int]:
    """
    Parse a comma-separated string of integers into a set.

    Examples:
        "0,12" -> {0, 12}
        "0,15,30,45" -> {0, 15, 30, 45}
    """
    return {int(x.strip()) for x in value.split(",") if x.strip()}


def get_auto_checkout_hours() -> set[int]:
    """Hours from settings, midnight when unset."""
    return parse_schedule_set(settings.arq_auto_checkout_hours) or {0}


def build_auto_checkout_cron():
    return cron(
        run_auto_checkout,
        hour=get_auto_checkout_hours(),
        minute=settings.arq_auto_checkout_minute,
        second=0,
    )


# =============================================================================
# Worker Settings
# =============================================================================


class WorkerSettings:
    """ARQ worker configuration."""

    # Redis connection
    redis_settings = parse_redis_url(settings.redis_url)

    # Job functions that can be called via arq.enqueue_job()
    functions = [
        run_auto_checkout,
    ]

    # ARQ_AUTO_CHECKOUT_HOURS: comma-separated hours (default "0")
    # ARQ_AUTO_CHECKOUT_MINUTE: minute within those hours (default 5)
    cron_jobs = [
        build_auto_checkout_cron(),
    ]

    # Lifecycle hooks
    on_startup = startup
    on_shutdown = shutdown

    # Worker behavior
    max_jobs = 10  # Max concurrent jobs
    job_timeout = 300  # 5 minutes max per job
    keep_result = 3600  # Keep results for 1 hour

    # Health check
    health_check_interval = 30
