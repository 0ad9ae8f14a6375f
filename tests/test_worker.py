"""Tests for ARQ worker jobs."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from conftest import make_attendance
from teamdesk import worker
from teamdesk.config import settings
from teamdesk.models.activity import Activity
from teamdesk.models.attendance import Attendance
from teamdesk.models.user import User
from teamdesk.worker import (
    build_auto_checkout_cron,
    get_auto_checkout_hours,
    parse_redis_url,
    parse_schedule_set,
    run_auto_checkout,
)


# =============================================================================
# Configuration Parsing Tests
# =============================================================================


class TestParseRedisUrl:
    """Tests for parse_redis_url."""

    def test_host_port_and_database(self):
        redis_settings = parse_redis_url("redis://cache.internal:6380/2")

        assert redis_settings.host == "cache.internal"
        assert redis_settings.port == 6380
        assert redis_settings.database == 2
        assert redis_settings.password is None

    def test_password(self):
        redis_settings = parse_redis_url("redis://:s3cret@localhost:6379/0")
        assert redis_settings.password == "s3cret"

    def test_defaults(self):
        redis_settings = parse_redis_url("redis://")

        assert redis_settings.host == "localhost"
        assert redis_settings.port == 6379
        assert redis_settings.database == 0


class TestSchedule:
    """Tests for the auto-checkout schedule helpers."""

    def test_parse_schedule_set(self):
        assert parse_schedule_set("0,12") == {0, 12}
        assert parse_schedule_set(" 0, 15 ,30,45 ") == {0, 15, 30, 45}
        assert parse_schedule_set("") == set()

    def test_hours_default_to_midnight(self, monkeypatch):
        monkeypatch.setattr(settings, "arq_auto_checkout_hours", "")
        assert get_auto_checkout_hours() == {0}

    def test_cron_uses_configured_time(self, monkeypatch):
        monkeypatch.setattr(settings, "arq_auto_checkout_hours", "6, 18")
        monkeypatch.setattr(settings, "arq_auto_checkout_minute", 30)

        job = build_auto_checkout_cron()

        assert job.hour == {6, 18}
        assert job.minute == 30
        assert job.second == 0


# =============================================================================
# Auto-checkout Job Tests
# =============================================================================


class TestRunAutoCheckout:
    """Tests for the scheduled auto-checkout job."""

    @pytest.fixture
    def worker_sessions(self, engine, monkeypatch):
        """Point the worker at the test database."""
        session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        monkeypatch.setattr(worker, "async_session_maker", session_maker)
        return session_maker

    @pytest.mark.asyncio
    async def test_closes_stale_records(
        self, db_session: AsyncSession, test_user: User, worker_sessions
    ):
        stale = await make_attendance(db_session, test_user, datetime.utcnow() - timedelta(days=2))

        result = await run_auto_checkout({})

        assert result["closed"] == 1
        assert "run_at" in result
        record = (
            await db_session.execute(
                select(Attendance)
                .where(Attendance.id == stale.id)
                .execution_options(populate_existing=True)
            )
        ).scalar_one()
        assert record.check_out_time is not None
        assert record.auto_checkout is True
        activity = (
            await db_session.execute(select(Activity).where(Activity.action == "AUTO_CHECKOUT"))
        ).scalars().all()
        assert len(activity) == 1

    @pytest.mark.asyncio
    async def test_leaves_todays_records_open(
        self, db_session: AsyncSession, test_user: User, worker_sessions
    ):
        await make_attendance(db_session, test_user, datetime.utcnow())

        result = await run_auto_checkout({})

        assert result["closed"] == 0

    @pytest.mark.asyncio
    async def test_database_errors_are_logged(self, monkeypatch, caplog):
        def unavailable():
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(worker, "async_session_maker", unavailable)

        result = await run_auto_checkout({})

        assert result["closed"] == 0
        assert "Error running auto-checkout" in caplog.text
