"""Tests for attendance endpoints and the attendance service."""

from datetime import datetime, time, timedelta
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import make_attendance
from teamdesk.models.activity import Activity
from teamdesk.models.attendance import Attendance
from teamdesk.models.project import Project
from teamdesk.models.user import User
from teamdesk.services.attendance_service import (
    auto_checkout_stale_records,
    compute_stats,
    count_exceptions,
    detect_exceptions,
    get_team_analytics,
    get_today_summary,
    group_records,
)
from teamdesk.schemas.attendance import HistoryGroupBy

# 2026-01-05 is a Monday
MONDAY = datetime(2026, 1, 5)


def at(day_offset: int, hour: int, minute: int = 0) -> datetime:
    return MONDAY + timedelta(days=day_offset, hours=hour, minutes=minute)


async def reload(db: AsyncSession, record_id) -> Attendance:
    result = await db.execute(
        select(Attendance).where(Attendance.id == record_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def actions(db: AsyncSession) -> list:
    result = await db.execute(select(Activity.action).order_by(Activity.created_at))
    return list(result.scalars().all())


def unsaved_record(check_in: datetime, hours, closed: bool = True) -> Attendance:
    """An Attendance row that never touches the database."""
    return Attendance(
        id=uuid4(),
        user_id=uuid4(),
        check_in_time=check_in,
        check_out_time=check_in + timedelta(hours=hours) if closed else None,
        total_hours=hours if closed else None,
        auto_checkout=False,
        created_at=check_in,
        updated_at=check_in,
    )


@pytest.mark.asyncio
class TestCheckIn:
    """Tests for POST /api/attendance/check-in."""

    async def test_check_in(self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, test_user: User):
        response = await client.post(
            "/api/attendance/check-in",
            json={"latitude": 52.5, "longitude": 13.4, "device_info": "laptop", "notes": "Office"},
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["user_id"] == str(test_user.id)
        assert data["check_out_time"] is None
        assert data["check_in_latitude"] == 52.5
        assert data["check_in_device_info"] == "laptop"
        assert await actions(db_session) == ["CHECK_IN"]

    async def test_check_in_with_project(
        self, client: AsyncClient, auth_headers: dict, test_project: Project
    ):
        response = await client.post(
            "/api/attendance/check-in",
            json={"project_id": str(test_project.id)},
            headers=auth_headers,
        )

        assert response.status_code == 201
        assert response.json()["project"]["title"] == "Test Project"

    async def test_unknown_project(self, client: AsyncClient, auth_headers: dict):
        response = await client.post(
            "/api/attendance/check-in",
            json={"project_id": str(uuid4())},
            headers=auth_headers,
        )
        assert response.status_code == 404

    async def test_unknown_task(self, client: AsyncClient, auth_headers: dict):
        response = await client.post(
            "/api/attendance/check-in",
            json={"task_id": str(uuid4())},
            headers=auth_headers,
        )
        assert response.status_code == 404

    async def test_double_check_in_rejected(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, test_user: User
    ):
        await make_attendance(db_session, test_user, datetime.utcnow())

        response = await client.post("/api/attendance/check-in", json={}, headers=auth_headers)

        assert response.status_code == 400

    async def test_stale_record_is_auto_closed(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, test_user: User
    ):
        check_in = datetime.combine((datetime.utcnow() - timedelta(days=2)).date(), time(9))
        stale = await make_attendance(db_session, test_user, check_in)

        response = await client.post("/api/attendance/check-in", json={}, headers=auth_headers)

        assert response.status_code == 201
        closed = await reload(db_session, stale.id)
        assert closed.auto_checkout is True
        assert closed.check_out_time == check_in + timedelta(hours=8)
        assert closed.total_hours == 8
        assert await actions(db_session) == ["AUTO_CHECKOUT", "CHECK_IN"]


@pytest.mark.asyncio
class TestCheckOut:
    """Tests for POST /api/attendance/check-out."""

    async def test_check_out_latest_open(self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict):
        await client.post("/api/attendance/check-in", json={}, headers=auth_headers)

        response = await client.post(
            "/api/attendance/check-out",
            json={"notes": "Done for the day"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["check_out_time"] is not None
        assert data["auto_checkout"] is False
        assert data["total_hours"] is not None
        assert data["notes"] == "Done for the day"
        assert await actions(db_session) == ["CHECK_IN", "CHECK_OUT"]

    async def test_no_open_record(self, client: AsyncClient, auth_headers: dict):
        response = await client.post("/api/attendance/check-out", json={}, headers=auth_headers)
        assert response.status_code == 404

    async def test_other_users_record(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers_2: dict, test_user: User
    ):
        record = await make_attendance(db_session, test_user, datetime.utcnow())

        response = await client.post(
            "/api/attendance/check-out",
            json={"attendance_id": str(record.id)},
            headers=auth_headers_2,
        )
        assert response.status_code == 403

    async def test_already_checked_out(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, test_user: User
    ):
        record = await make_attendance(db_session, test_user, at(0, 9), hours=8)

        response = await client.post(
            "/api/attendance/check-out",
            json={"attendance_id": str(record.id)},
            headers=auth_headers,
        )
        assert response.status_code == 400

    async def test_stale_check_out_is_auto(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, test_user: User
    ):
        record = await make_attendance(db_session, test_user, at(0, 14))

        response = await client.post(
            "/api/attendance/check-out",
            json={"attendance_id": str(record.id)},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["auto_checkout"] is True
        # Capped at the 17:00 workday end
        assert data["total_hours"] == 3


@pytest.mark.asyncio
class TestCurrent:
    """Tests for GET /api/attendance/current."""

    async def test_no_records(self, client: AsyncClient, auth_headers: dict):
        response = await client.get("/api/attendance/current", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"is_checked_in": False, "attendance": None}

    async def test_open_record(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, test_user: User
    ):
        record = await make_attendance(db_session, test_user, datetime.utcnow())

        response = await client.get("/api/attendance/current", headers=auth_headers)

        assert response.json()["is_checked_in"] is True
        assert response.json()["attendance"]["id"] == str(record.id)

    async def test_falls_back_to_last_record(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, test_user: User
    ):
        await make_attendance(db_session, test_user, at(0, 9), hours=8)
        latest = await make_attendance(db_session, test_user, at(1, 9), hours=8)

        response = await client.get("/api/attendance/current", headers=auth_headers)

        assert response.json()["is_checked_in"] is False
        assert response.json()["attendance"]["id"] == str(latest.id)


@pytest.mark.asyncio
class TestHistory:
    """Tests for GET /api/attendance/history."""

    async def seed(self, db: AsyncSession, user: User):
        await make_attendance(db, user, at(0, 9), hours=8)
        await make_attendance(db, user, at(1, 9), hours=4)
        await make_attendance(db, user, at(1, 14), hours=3)
        await make_attendance(db, user, at(8, 9), hours=6)

    async def test_flat_history(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, test_user: User
    ):
        await self.seed(db_session, test_user)

        response = await client.get(
            "/api/attendance/history",
            params={"start_date": "2026-01-01T00:00:00", "end_date": "2026-01-31T00:00:00", "limit": 3},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["pagination"]["total"] == 4
        assert data["pagination"]["total_pages"] == 2
        assert [r["total_hours"] for r in data["attendance_records"]] == [6, 3, 4]

    async def test_end_date_includes_whole_day(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, test_user: User
    ):
        await self.seed(db_session, test_user)

        response = await client.get(
            "/api/attendance/history",
            params={"start_date": "2026-01-06T00:00:00", "end_date": "2026-01-06T00:00:00"},
            headers=auth_headers,
        )

        assert response.json()["pagination"]["total"] == 2

    async def test_grouped_by_day(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, test_user: User
    ):
        await self.seed(db_session, test_user)

        response = await client.get(
            "/api/attendance/history",
            params={
                "start_date": "2026-01-01T00:00:00",
                "end_date": "2026-01-31T00:00:00",
                "group_by": "day",
            },
            headers=auth_headers,
        )

        data = response.json()
        assert data["group_by"] == "day"
        assert data["total_groups"] == 3
        assert [g["period"] for g in data["grouped_records"]] == ["2026-01-13", "2026-01-06", "2026-01-05"]
        tuesday = data["grouped_records"][1]
        assert tuesday["check_in_count"] == 2
        assert tuesday["total_hours"] == 7

    async def test_group_pagination(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, test_user: User
    ):
        await self.seed(db_session, test_user)

        response = await client.get(
            "/api/attendance/history",
            params={
                "start_date": "2026-01-01T00:00:00",
                "end_date": "2026-01-31T00:00:00",
                "group_by": "day",
                "page": 2,
                "limit": 1,
            },
            headers=auth_headers,
        )

        data = response.json()
        assert [g["period"] for g in data["grouped_records"]] == ["2026-01-06"]
        assert len(data["attendance_records"]) == 2
        assert data["pagination"]["total"] == 3

    async def test_utc_window(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, test_user: User
    ):
        await self.seed(db_session, test_user)

        response = await client.get(
            "/api/attendance/history",
            params={"start_date": "2026-01-06T00:00:00Z", "end_date": "2026-01-06T00:00:00Z"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["pagination"]["total"] == 2

    async def test_only_own_records(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers_2: dict, test_user: User
    ):
        await self.seed(db_session, test_user)

        response = await client.get("/api/attendance/history", headers=auth_headers_2)

        assert response.json()["attendance_records"] == []


class TestGroupRecords:
    """Tests for group_records."""

    def test_group_by_week(self):
        records = [
            unsaved_record(at(0, 9), 8),
            unsaved_record(at(1, 9), 7),
            unsaved_record(at(7, 9), 5),
        ]

        groups = group_records(records, HistoryGroupBy.WEEK)

        assert [g.period for g in groups] == ["2026-01-12 to 2026-01-18", "2026-01-05 to 2026-01-11"]
        assert groups[1].total_hours == 15
        assert groups[1].average_hours_per_day == 7.5

    def test_group_by_month_caps_day_total(self):
        records = [unsaved_record(at(0, 1), 20), unsaved_record(at(0, 22), 10)]

        groups = group_records(records, HistoryGroupBy.MONTH)

        assert groups[0].period == "2026-01"
        assert groups[0].total_hours == 24

class TestComputeStats:
    """Tests for compute_stats."""

    def test_week_stats(self):
        records = [unsaved_record(at(0, 9), 8), unsaved_record(at(1, 9, 30), 10)]

        stats = compute_stats(records, "week", at(0, 0), at(6, 23), now=at(2, 12))

        assert stats.total_hours == 18
        assert stats.average_hours == 9
        assert stats.attendance_days == 2
        assert stats.total_working_days == 3
        assert stats.attendance_rate == 66.7
        assert stats.on_time_rate == 50.0
        assert stats.overtime_hours == 2
        assert stats.records_count == 2

    def test_open_record_excluded_from_average(self):
        records = [unsaved_record(at(0, 9), 6), unsaved_record(at(1, 9), None, closed=False)]

        stats = compute_stats(records, "week", at(0, 0), at(6, 23), now=at(1, 12))

        assert stats.average_hours == 6
        assert stats.attendance_days == 2

    def test_empty(self):
        stats = compute_stats([], "month", at(0, 0), at(25, 23), now=at(3, 12))

        assert stats.total_hours == 0
        assert stats.attendance_rate == 0
        assert stats.on_time_rate == 0


@pytest.mark.asyncio
class TestStatsAndSettings:
    """Tests for the stats and settings endpoints."""

    async def test_stats_endpoint(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, test_user: User
    ):
        await make_attendance(db_session, test_user, datetime.utcnow(), hours=2)

        response = await client.get("/api/attendance/stats", params={"period": "year"}, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["period"] == "year"
        assert data["records_count"] == 1
        assert data["total_hours"] == 2

    async def test_invalid_period(self, client: AsyncClient, auth_headers: dict):
        response = await client.get("/api/attendance/stats", params={"period": "decade"}, headers=auth_headers)
        assert response.status_code == 422

    async def test_default_settings(self, client: AsyncClient, auth_headers: dict, test_user: User):
        response = await client.get("/api/attendance/settings", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["user_id"] == str(test_user.id)
        assert data["work_hours_per_day"] == 8
        assert data["work_days"] == "1,2,3,4,5"

    async def test_update_settings(self, client: AsyncClient, auth_headers: dict):
        response = await client.patch(
            "/api/attendance/settings",
            json={"work_days": "1, 2, 3", "reminder_time": "08:30", "auto_checkout_enabled": False},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["work_days"] == "1,2,3"
        assert data["reminder_time"] == "08:30"
        assert data["auto_checkout_enabled"] is False

    async def test_invalid_settings(self, client: AsyncClient, auth_headers: dict):
        bad_days = await client.patch("/api/attendance/settings", json={"work_days": "1,8"}, headers=auth_headers)
        bad_time = await client.patch("/api/attendance/settings", json={"reminder_time": "25:00"}, headers=auth_headers)

        assert bad_days.status_code == 422
        assert bad_time.status_code == 422


@pytest.mark.asyncio
class TestAdjust:
    """Tests for POST /api/attendance/adjust."""

    async def test_manager_adjusts(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        manager_headers: dict,
        manager_user: User,
        test_user: User,
    ):
        record = await make_attendance(db_session, test_user, at(0, 9))

        response = await client.post(
            "/api/attendance/adjust",
            json={
                "attendance_id": str(record.id),
                "check_out_time": at(0, 19).isoformat(),
                "reason": "Forgot to check out",
            },
            headers=manager_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total_hours"] == 10
        assert data["adjusted_by_id"] == str(manager_user.id)
        assert data["adjustment_reason"] == "Forgot to check out"
        assert data["user"]["id"] == str(test_user.id)
        assert "ADJUSTED" in await actions(db_session)

    async def test_regular_user_cannot_adjust(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, test_user: User
    ):
        record = await make_attendance(db_session, test_user, at(0, 9), hours=8)

        response = await client.post(
            "/api/attendance/adjust",
            json={"attendance_id": str(record.id), "reason": "Mine"},
            headers=auth_headers,
        )
        assert response.status_code == 403

    async def test_check_out_before_check_in(
        self, client: AsyncClient, db_session: AsyncSession, admin_headers: dict, test_user: User
    ):
        record = await make_attendance(db_session, test_user, at(0, 9), hours=8)

        response = await client.post(
            "/api/attendance/adjust",
            json={"attendance_id": str(record.id), "check_in_time": at(0, 18).isoformat(), "reason": "Oops"},
            headers=admin_headers,
        )
        assert response.status_code == 400

    async def test_utc_offsets_are_normalized(
        self, client: AsyncClient, db_session: AsyncSession, admin_headers: dict, test_user: User
    ):
        record = await make_attendance(db_session, test_user, at(0, 9), hours=8)

        response = await client.post(
            "/api/attendance/adjust",
            json={
                "attendance_id": str(record.id),
                "check_in_time": "2026-01-05T08:30:00Z",
                "check_out_time": "2026-01-05T19:00:00+02:00",
                "reason": "Times from the badge system",
            },
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["total_hours"] == 8.5
        updated = await reload(db_session, record.id)
        assert updated.check_in_time == at(0, 8, 30)
        assert updated.check_out_time == at(0, 17)

    async def test_missing_record(self, client: AsyncClient, admin_headers: dict):
        response = await client.post(
            "/api/attendance/adjust",
            json={"attendance_id": str(uuid4()), "reason": "Gone"},
            headers=admin_headers,
        )
        assert response.status_code == 404


@pytest.mark.asyncio
class TestExceptions:
    """Tests for exception detection."""

    async def seed(self, db: AsyncSession, user: User):
        await make_attendance(db, user, at(0, 9), hours=8)
        await make_attendance(db, user, at(1, 9, 45), hours=7)
        await make_attendance(db, user, at(2, 9), hours=8, auto_checkout=True)
        # Saturday check-ins never create absences
        await make_attendance(db, user, at(5, 10), hours=2)

    async def test_endpoint_counts_and_filter(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        admin_headers: dict,
        manager_user: User,
        test_user: User,
    ):
        await self.seed(db_session, test_user)
        params = {"start_date": "2026-01-05T00:00:00", "end_date": "2026-01-11T00:00:00"}

        everything = await client.get("/api/attendance/exceptions", params=params, headers=admin_headers)
        late_only = await client.get(
            "/api/attendance/exceptions", params={**params, "type": "late"}, headers=admin_headers
        )

        assert everything.status_code == 200
        counts = everything.json()["counts"]
        # The manager never checked in on Mon, Tue or Wed
        assert counts == {"absent": 3, "late": 2, "forgot_checkout": 1, "pattern": 0}
        assert late_only.json()["counts"] == counts
        late = late_only.json()["exceptions"]
        assert {e["type"] for e in late} == {"late"}
        assert {e["date"] for e in late} == {"2026-01-06", "2026-01-10"}

    async def test_utc_window(
        self, client: AsyncClient, db_session: AsyncSession, admin_headers: dict, test_user: User
    ):
        await self.seed(db_session, test_user)

        response = await client.get(
            "/api/attendance/exceptions",
            params={"start_date": "2026-01-05T00:00:00Z", "end_date": "2026-01-11T00:00:00Z", "type": "late"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["counts"]["late"] == 2

    async def test_regular_user_forbidden(self, client: AsyncClient, auth_headers: dict):
        response = await client.get("/api/attendance/exceptions", headers=auth_headers)
        assert response.status_code == 403

    async def test_lateness_pattern(self, db_session: AsyncSession, test_user: User):
        for day in range(3):
            await make_attendance(db_session, test_user, at(day, 10), hours=6)

        exceptions = await detect_exceptions(db_session, now=at(7, 12))

        counts = count_exceptions(exceptions)
        assert counts["late"] == 3
        assert counts["pattern"] == 1
        pattern = next(e for e in exceptions if e.type.value == "pattern")
        assert pattern.id == f"pattern-{test_user.id}-2026-01-12"

    async def test_today_is_never_absent(self, db_session: AsyncSession, test_user: User, test_user_2: User):
        await make_attendance(db_session, test_user, at(0, 9), hours=8)

        exceptions = await detect_exceptions(db_session, now=at(0, 12))

        assert count_exceptions(exceptions)["absent"] == 0

    async def test_inactive_users_ignored(self, db_session: AsyncSession, test_user: User, test_user_2: User):
        test_user_2.active = False
        await db_session.commit()
        await make_attendance(db_session, test_user, at(0, 9), hours=8)

        exceptions = await detect_exceptions(db_session, now=at(3, 12))

        assert count_exceptions(exceptions)["absent"] == 0


@pytest.mark.asyncio
class TestTodaySummary:
    """Tests for the daily summary."""

    async def test_weekday_summary(
        self, db_session: AsyncSession, admin_user: User, test_user: User, test_user_2: User, manager_user: User
    ):
        await make_attendance(db_session, test_user, at(0, 8, 55))
        await make_attendance(db_session, test_user_2, at(0, 10))

        summary = await get_today_summary(db_session, now=at(0, 12))

        assert summary.total_employees == 3
        assert summary.present_count == 2
        assert summary.late_count == 1
        assert summary.absent_count == 1

    async def test_weekend_summary_is_empty(self, db_session: AsyncSession, test_user: User):
        await make_attendance(db_session, test_user, at(5, 9))

        summary = await get_today_summary(db_session, now=at(5, 12))

        assert summary.present_count == 0
        assert summary.total_employees == 0

    async def test_endpoint_access(self, client: AsyncClient, manager_headers: dict, auth_headers: dict):
        allowed = await client.get("/api/attendance/today", headers=manager_headers)
        denied = await client.get("/api/attendance/today", headers=auth_headers)

        assert allowed.status_code == 200
        assert denied.status_code == 403


@pytest.mark.asyncio
class TestTeamAttendance:
    """Tests for GET /api/attendance/team/{project_id}."""

    async def test_single_day(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        auth_headers: dict,
        test_project: Project,
        test_user: User,
        test_user_2: User,
    ):
        await make_attendance(db_session, test_user, at(0, 9), hours=8)
        await make_attendance(db_session, test_user, at(0, 18), hours=1.5)
        await make_attendance(db_session, test_user_2, at(0, 9), hours=8)
        await make_attendance(db_session, test_user, at(1, 9), hours=8)

        response = await client.get(
            f"/api/attendance/team/{test_project.id}",
            params={"date": "2026-01-05T00:00:00"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert len(data["attendance_records"]) == 2
        assert data["attendance_records"][0]["user"]["id"] == str(test_user.id)
        assert data["summary"] == {"member_count": 2, "checked_in_count": 1, "total_hours": 9.5}

    async def test_range(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        manager_headers: dict,
        test_project: Project,
        test_user: User,
    ):
        await make_attendance(db_session, test_user, at(0, 9), hours=8)
        await make_attendance(db_session, test_user, at(1, 9), hours=8)

        response = await client.get(
            f"/api/attendance/team/{test_project.id}",
            params={"start_date": "2026-01-05T00:00:00", "end_date": "2026-01-06T00:00:00"},
            headers=manager_headers,
        )

        assert response.json()["summary"]["total_hours"] == 16

    async def test_utc_day(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        manager_headers: dict,
        test_project: Project,
        test_user: User,
    ):
        await make_attendance(db_session, test_user, at(0, 9), hours=8)
        await make_attendance(db_session, test_user, at(1, 9), hours=8)

        single = await client.get(
            f"/api/attendance/team/{test_project.id}",
            params={"date": "2026-01-05T00:00:00Z"},
            headers=manager_headers,
        )
        ranged = await client.get(
            f"/api/attendance/team/{test_project.id}",
            params={"start_date": "2026-01-05T00:00:00Z", "end_date": "2026-01-06T00:00:00+00:00"},
            headers=manager_headers,
        )

        assert single.status_code == 200
        assert single.json()["summary"]["total_hours"] == 8
        assert ranged.json()["summary"]["total_hours"] == 16

    async def test_outsider_forbidden(self, client: AsyncClient, auth_headers_2: dict, test_project: Project):
        response = await client.get(f"/api/attendance/team/{test_project.id}", headers=auth_headers_2)
        assert response.status_code == 403

    async def test_missing_project(self, client: AsyncClient, manager_headers: dict):
        response = await client.get(f"/api/attendance/team/{uuid4()}", headers=manager_headers)
        assert response.status_code == 404


@pytest.mark.asyncio
class TestAuditLog:
    """Tests for GET /api/attendance/audit-log."""

    async def test_filter_by_action_and_user(
        self,
        client: AsyncClient,
        manager_headers: dict,
        auth_headers: dict,
        auth_headers_2: dict,
        test_user: User,
    ):
        await client.post("/api/attendance/check-in", json={}, headers=auth_headers)
        await client.post("/api/attendance/check-out", json={}, headers=auth_headers)
        await client.post("/api/attendance/check-in", json={}, headers=auth_headers_2)

        check_ins = await client.get(
            "/api/attendance/audit-log", params={"action": "CHECK_IN"}, headers=manager_headers
        )
        mine = await client.get(
            "/api/attendance/audit-log", params={"user_id": str(test_user.id)}, headers=manager_headers
        )

        assert check_ins.json()["pagination"]["total"] == 2
        assert {log["action"] for log in mine.json()["logs"]} == {"CHECK_IN", "CHECK_OUT"}

    async def test_unknown_action(self, client: AsyncClient, manager_headers: dict):
        response = await client.get(
            "/api/attendance/audit-log", params={"action": "created"}, headers=manager_headers
        )
        assert response.status_code == 400

    async def test_regular_user_forbidden(self, client: AsyncClient, auth_headers: dict):
        response = await client.get("/api/attendance/audit-log", headers=auth_headers)
        assert response.status_code == 403


@pytest.mark.asyncio
class TestCorrections:
    """Tests for correction requests."""

    async def request_correction(self, client: AsyncClient, headers: dict, record: Attendance):
        return await client.post(
            "/api/attendance/corrections",
            json={
                "attendance_id": str(record.id),
                "requested_check_in_time": at(0, 8).isoformat(),
                "requested_check_out_time": at(0, 16, 30).isoformat(),
                "reason": "Badge reader was down",
            },
            headers=headers,
        )

    async def test_create_request(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, test_user: User
    ):
        record = await make_attendance(db_session, test_user, at(0, 9), hours=8)

        response = await self.request_correction(client, auth_headers, record)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["original_check_in_time"].startswith("2026-01-05T09:00")
        assert data["user"]["id"] == str(test_user.id)
        assert "CORRECTION_REQUESTED" in await actions(db_session)

    async def test_cannot_request_for_others(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers_2: dict, test_user: User
    ):
        record = await make_attendance(db_session, test_user, at(0, 9), hours=8)

        response = await self.request_correction(client, auth_headers_2, record)
        assert response.status_code == 403

    async def test_invalid_requested_times(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, test_user: User
    ):
        record = await make_attendance(db_session, test_user, at(0, 9), hours=8)

        response = await client.post(
            "/api/attendance/corrections",
            json={
                "attendance_id": str(record.id),
                "requested_check_in_time": at(0, 17).isoformat(),
                "requested_check_out_time": at(0, 9).isoformat(),
                "reason": "Backwards",
            },
            headers=auth_headers,
        )
        assert response.status_code == 400

    async def test_check_in_after_recorded_check_out(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, test_user: User
    ):
        record = await make_attendance(db_session, test_user, at(0, 9), hours=8)

        response = await client.post(
            "/api/attendance/corrections",
            json={
                "attendance_id": str(record.id),
                "requested_check_in_time": at(0, 18).isoformat(),
                "reason": "Started late",
            },
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert await actions(db_session) == []

    async def test_utc_offset_request(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, test_user: User
    ):
        record = await make_attendance(db_session, test_user, at(0, 9), hours=8)

        response = await client.post(
            "/api/attendance/corrections",
            json={
                "attendance_id": str(record.id),
                "requested_check_in_time": "2026-01-05T08:00:00Z",
                "requested_check_out_time": "2026-01-05T17:30:00+01:00",
                "reason": "Badge reader was down",
            },
            headers=auth_headers,
        )

        assert response.status_code == 201
        assert response.json()["requested_check_in_time"] == "2026-01-05T08:00:00"
        assert response.json()["requested_check_out_time"] == "2026-01-05T16:30:00"

    async def test_list_visibility(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        auth_headers: dict,
        auth_headers_2: dict,
        manager_headers: dict,
        test_user: User,
    ):
        record = await make_attendance(db_session, test_user, at(0, 9), hours=8)
        await self.request_correction(client, auth_headers, record)

        own = await client.get("/api/attendance/corrections", headers=auth_headers)
        other = await client.get("/api/attendance/corrections", headers=auth_headers_2)
        everyone = await client.get(
            "/api/attendance/corrections", params={"status": "pending"}, headers=manager_headers
        )
        approved = await client.get(
            "/api/attendance/corrections", params={"status": "approved"}, headers=manager_headers
        )

        assert len(own.json()) == 1
        assert other.json() == []
        assert len(everyone.json()) == 1
        assert approved.json() == []

    async def test_approve_applies_times(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        auth_headers: dict,
        manager_headers: dict,
        manager_user: User,
        test_user: User,
    ):
        record = await make_attendance(db_session, test_user, at(0, 9), hours=8)
        correction_id = (await self.request_correction(client, auth_headers, record)).json()["id"]

        response = await client.patch(
            f"/api/attendance/corrections/{correction_id}",
            json={"status": "approved", "review_notes": "Confirmed with security"},
            headers=manager_headers,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "approved"
        assert response.json()["reviewed_by_id"] == str(manager_user.id)

        updated = await reload(db_session, record.id)
        assert updated.check_in_time == at(0, 8)
        assert updated.check_out_time == at(0, 16, 30)
        assert updated.total_hours == 8.5
        assert updated.adjustment_reason == "Correction request: Badge reader was down"

    async def test_approval_checks_current_record(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        auth_headers: dict,
        admin_headers: dict,
        manager_headers: dict,
        test_user: User,
    ):
        record = await make_attendance(db_session, test_user, at(0, 9), hours=8)
        created = await client.post(
            "/api/attendance/corrections",
            json={
                "attendance_id": str(record.id),
                "requested_check_in_time": at(0, 10).isoformat(),
                "reason": "Arrived at ten",
            },
            headers=auth_headers,
        )
        assert created.status_code == 201
        # The record is shortened to end before the requested check-in
        await client.post(
            "/api/attendance/adjust",
            json={"attendance_id": str(record.id), "check_out_time": at(0, 9, 30).isoformat(), "reason": "Left"},
            headers=admin_headers,
        )

        response = await client.patch(
            f"/api/attendance/corrections/{created.json()['id']}",
            json={"status": "approved"},
            headers=manager_headers,
        )

        assert response.status_code == 400
        unchanged = await reload(db_session, record.id)
        assert unchanged.check_in_time == at(0, 9)
        assert unchanged.check_out_time == at(0, 9, 30)
        pending = await client.get(
            "/api/attendance/corrections", params={"status": "pending"}, headers=manager_headers
        )
        assert len(pending.json()) == 1

    async def test_approval_without_check_out_keeps_record_check_out(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        auth_headers: dict,
        manager_headers: dict,
        test_user: User,
    ):
        record = await make_attendance(db_session, test_user, at(0, 9), hours=8)
        created = await client.post(
            "/api/attendance/corrections",
            json={
                "attendance_id": str(record.id),
                "requested_check_in_time": at(0, 8).isoformat(),
                "reason": "Came in early",
            },
            headers=auth_headers,
        )

        response = await client.patch(
            f"/api/attendance/corrections/{created.json()['id']}",
            json={"status": "approved"},
            headers=manager_headers,
        )

        assert response.status_code == 200
        updated = await reload(db_session, record.id)
        assert updated.check_out_time == at(0, 17)
        assert updated.total_hours == 9

    async def test_reject_keeps_record(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        auth_headers: dict,
        manager_headers: dict,
        test_user: User,
    ):
        record = await make_attendance(db_session, test_user, at(0, 9), hours=8)
        correction_id = (await self.request_correction(client, auth_headers, record)).json()["id"]

        response = await client.patch(
            f"/api/attendance/corrections/{correction_id}",
            json={"status": "rejected"},
            headers=manager_headers,
        )

        assert response.json()["status"] == "rejected"
        unchanged = await reload(db_session, record.id)
        assert unchanged.check_in_time == at(0, 9)
        assert unchanged.total_hours == 8

    async def test_review_only_once(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        auth_headers: dict,
        manager_headers: dict,
        test_user: User,
    ):
        record = await make_attendance(db_session, test_user, at(0, 9), hours=8)
        correction_id = (await self.request_correction(client, auth_headers, record)).json()["id"]
        await client.patch(
            f"/api/attendance/corrections/{correction_id}",
            json={"status": "rejected"},
            headers=manager_headers,
        )

        response = await client.patch(
            f"/api/attendance/corrections/{correction_id}",
            json={"status": "approved"},
            headers=manager_headers,
        )
        assert response.status_code == 400

    async def test_review_validation_and_access(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        auth_headers: dict,
        manager_headers: dict,
        test_user: User,
    ):
        record = await make_attendance(db_session, test_user, at(0, 9), hours=8)
        correction_id = (await self.request_correction(client, auth_headers, record)).json()["id"]

        pending = await client.patch(
            f"/api/attendance/corrections/{correction_id}",
            json={"status": "pending"},
            headers=manager_headers,
        )
        self_review = await client.patch(
            f"/api/attendance/corrections/{correction_id}",
            json={"status": "approved"},
            headers=auth_headers,
        )
        missing = await client.patch(
            f"/api/attendance/corrections/{uuid4()}",
            json={"status": "approved"},
            headers=manager_headers,
        )

        assert pending.status_code == 422
        assert self_review.status_code == 403
        assert missing.status_code == 404


@pytest.mark.asyncio
class TestTeamAnalytics:
    """Tests for team attendance analytics."""

    async def test_workweek_figures(self, db_session: AsyncSession, test_user: User, test_user_2: User):
        await make_attendance(db_session, test_user, at(0, 9), hours=8)
        await make_attendance(db_session, test_user, at(1, 10), hours=6)
        await make_attendance(db_session, test_user_2, at(0, 8, 55), hours=8)

        analytics = await get_team_analytics(db_session, 5, now=at(4, 18))

        assert analytics.start_date == at(0, 0)
        assert analytics.total_members == 2
        assert analytics.active_members == 2
        assert analytics.total_hours == 22
        assert analytics.average_hours_per_day == 2.2
        assert analytics.attendance_rate == 30.0
        assert analytics.on_time_rate == 66.67

        assert [d.date for d in analytics.daily_stats] == [
            "2026-01-05", "2026-01-06", "2026-01-07", "2026-01-08", "2026-01-09",
        ]
        monday, tuesday = analytics.daily_stats[:2]
        assert (monday.total_hours, monday.attendance_count, monday.on_time_count) == (16, 2, 2)
        assert (tuesday.total_hours, tuesday.attendance_count, tuesday.on_time_count) == (6, 1, 0)

        busiest = analytics.user_stats[0]
        assert busiest.user_id == test_user.id
        assert busiest.total_hours == 14
        assert busiest.attendance_days == 2
        assert busiest.average_hours_per_day == 7.0
        assert busiest.attendance_rate == 40.0
        assert busiest.on_time_rate == 50.0
        assert analytics.user_stats[1].user_id == test_user_2.id

    async def test_project_members_only(
        self,
        db_session: AsyncSession,
        test_project: Project,
        manager_user: User,
        test_user: User,
        test_user_2: User,
    ):
        await make_attendance(db_session, test_user, at(0, 9), hours=8)
        await make_attendance(db_session, test_user_2, at(0, 9), hours=8)

        analytics = await get_team_analytics(db_session, 5, project_id=test_project.id, now=at(4, 18))

        assert analytics.total_members == 2
        assert analytics.active_members == 1
        assert analytics.total_hours == 8
        assert {s.user_id for s in analytics.user_stats} == {manager_user.id, test_user.id}

    async def test_no_members(self, db_session: AsyncSession):
        analytics = await get_team_analytics(db_session, 3, now=at(2, 12))

        assert analytics.total_members == 0
        assert analytics.attendance_rate == 0
        assert analytics.on_time_rate == 0
        assert analytics.user_stats == []
        assert len(analytics.daily_stats) == 3

    async def test_endpoint(
        self, client: AsyncClient, db_session: AsyncSession, manager_headers: dict, test_user: User
    ):
        today = datetime.utcnow().date()
        await make_attendance(db_session, test_user, datetime.combine(today, time(8)), hours=4)

        response = await client.get(
            "/api/attendance/team/analytics", params={"days": 7}, headers=manager_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert len(data["daily_stats"]) == 7
        assert data["daily_stats"][-1] == {
            "date": today.isoformat(),
            "total_hours": 4,
            "attendance_count": 1,
            "on_time_count": 1,
        }
        assert data["total_hours"] == 4

    async def test_endpoint_access_and_validation(
        self, client: AsyncClient, manager_headers: dict, auth_headers: dict
    ):
        denied = await client.get("/api/attendance/team/analytics", headers=auth_headers)
        missing = await client.get(
            "/api/attendance/team/analytics", params={"project_id": str(uuid4())}, headers=manager_headers
        )
        no_days = await client.get("/api/attendance/team/analytics", params={"days": 0}, headers=manager_headers)

        assert denied.status_code == 403
        assert missing.status_code == 404
        assert no_days.status_code == 422


@pytest.mark.asyncio
class TestAutoCheckoutSweep:
    """Tests for auto_checkout_stale_records."""

    async def test_closes_only_stale_records(
        self, db_session: AsyncSession, test_user: User, test_user_2: User
    ):
        stale = await make_attendance(db_session, test_user, at(0, 20))
        current = await make_attendance(db_session, test_user_2, at(1, 8))

        closed = await auto_checkout_stale_records(db_session, now=at(1, 12))

        assert closed == 1
        stale = await reload(db_session, stale.id)
        current = await reload(db_session, current.id)
        # 20:00 + 8h is capped at midnight; auto check-outs count one standard day at most
        assert stale.check_out_time == datetime(2026, 1, 5, 23, 59, 59, 999999)
        assert stale.auto_checkout is True
        assert stale.total_hours == 0
        assert current.check_out_time is None
        assert await actions(db_session) == ["AUTO_CHECKOUT"]

    async def test_nothing_to_close(self, db_session: AsyncSession):
        assert await auto_checkout_stale_records(db_session, now=at(1, 12)) == 0
