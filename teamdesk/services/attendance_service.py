"""Attendance business logic shared by the API and the background worker.

The check-out rule lives here so that a manual check-out of a stale record,
an auto-close during check-in and the worker's nightly sweep all produce the
same hours.
"""

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..constants import ActivityAction, SystemRole
from ..models.activity import Activity
from ..models.attendance import Attendance
from ..models.team_member import TeamMember
from ..models.user import User
from ..schemas.attendance import (
    AttendanceExceptionItem,
    AttendanceGroup,
    AttendanceResponse,
    AttendanceStatsResponse,
    ExceptionType,
    HistoryGroupBy,
    TeamAnalyticsResponse,
    TeamDailyStat,
    TeamUserStat,
    TodaySummaryResponse,
)
from ..schemas.activity import ActivityResponse
from ..utils.time_utils import (
    auto_checkout_time,
    calculate_total_hours,
    count_working_days,
    format_duration,
    get_day_boundaries,
    get_workday_start,
    is_late_check_in,
    is_weekend_day,
    week_label,
)
from .activity_service import log_activity

logger = logging.getLogger(__name__)

MAX_ADJUSTED_HOURS = 24
RECENT_EXCEPTION_DAYS = 7
RECENT_EXCEPTION_LIMIT = 5


# ============================================================================
# Check-out rule
# ============================================================================


async def get_open_record(db: AsyncSession, user_id: UUID) -> Optional[Attendance]:
    """The user's latest record that has no check-out yet."""
    result = await db.execute(
        select(Attendance)
        .where(Attendance.user_id == user_id, Attendance.check_out_time.is_(None))
        .order_by(Attendance.check_in_time.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


def is_stale(record: Attendance, now: datetime) -> bool:
    """An open record whose check-in day is before `now`'s day."""
    return record.check_in_time.date() < now.date()


def close_record(
    db: AsyncSession,
    record: Attendance,
    actor_id: UUID,
    now: Optional[datetime] = None,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    ip_address: Optional[str] = None,
    device_info: Optional[str] = None,
    notes: Optional[str] = None,
) -> ActivityAction:
    """
    Check a record out and log the matching activity.

    A record checked in on an earlier day is closed at the default shift
    length after check-in, capped at the end of that day, and flagged as an
    auto check-out. Otherwise it is closed at `now`.

    Returns:
        CHECK_OUT or AUTO_CHECKOUT
    """
    now = now or datetime.utcnow()
    auto = is_stale(record, now)
    check_out = auto_checkout_time(record.check_in_time) if auto else now

    record.check_out_time = check_out
    record.auto_checkout = auto
    record.total_hours = calculate_total_hours(
        record.check_in_time,
        check_out,
        is_auto_checkout=auto,
    )
    if latitude is not None:
        record.check_out_latitude = latitude
    if longitude is not None:
        record.check_out_longitude = longitude
    if ip_address is not None:
        record.check_out_ip_address = ip_address
    if device_info is not None:
        record.check_out_device_info = device_info
    if notes is not None:
        record.notes = notes

    action = ActivityAction.AUTO_CHECKOUT if auto else ActivityAction.CHECK_OUT
    verb = "Automatically checked out" if auto else "Checked out"
    log_activity(
        db,
        action=action,
        entity_type="attendance",
        entity_id=record.id,
        description=f"{verb} after {record.total_hours} hours",
        user_id=actor_id,
        project_id=record.project_id,
    )
    return action


async def auto_checkout_stale_records(db: AsyncSession, now: Optional[datetime] = None) -> int:
    """
    Close every open record checked in before today.

    Commits once after all records are closed.

    Returns:
        Number of records closed
    """
    now = now or datetime.utcnow()
    start_of_today, _ = get_day_boundaries(now)
    result = await db.execute(
        select(Attendance).where(
            Attendance.check_out_time.is_(None),
            Attendance.check_in_time < start_of_today,
        )
    )
    records = list(result.scalars().all())
    for record in records:
        close_record(db, record, actor_id=record.user_id, now=now)
    if records:
        await db.commit()
    return len(records)


def adjusted_hours(check_in: datetime, check_out: Optional[datetime]) -> Optional[float]:
    """Hours for an admin-set time range, capped at a full day."""
    if check_out is None:
        return None
    return calculate_total_hours(
        check_in,
        check_out,
        max_hours_per_day=MAX_ADJUSTED_HOURS,
        apply_workday_bounds=False,
    )


# ============================================================================
# History and statistics
# ============================================================================


def _group_key(record: Attendance, group_by: HistoryGroupBy) -> str:
    moment = record.check_in_time
    if group_by == HistoryGroupBy.WEEK:
        return week_label(moment)
    if group_by == HistoryGroupBy.MONTH:
        return moment.strftime("%Y-%m")
    return moment.date().isoformat()


def group_records(records: Iterable[Attendance], group_by: HistoryGroupBy) -> List[AttendanceGroup]:
    """
    Aggregate records by day, week or month, newest group first.

    Day totals are capped at 24 hours; the average is per distinct day.
    """
    buckets: Dict[str, List[Attendance]] = defaultdict(list)
    for record in records:
        buckets[_group_key(record, group_by)].append(record)

    groups = []
    for key in sorted(buckets, reverse=True):
        items = sorted(buckets[key], key=lambda r: r.check_in_time, reverse=True)
        per_day: Dict = defaultdict(float)
        for record in items:
            per_day[record.check_in_time.date()] += record.total_hours or 0
        total = sum(min(hours, 24) for hours in per_day.values())
        groups.append(
            AttendanceGroup(
                period=key,
                records=[AttendanceResponse.model_validate(r) for r in items],
                total_hours=round(total, 2),
                check_in_count=len(items),
                average_hours_per_day=round(total / len(per_day), 2) if per_day else 0,
            )
        )
    return groups


def compute_stats(
    records: List[Attendance],
    period: str,
    start: datetime,
    end: datetime,
    now: Optional[datetime] = None,
) -> AttendanceStatsResponse:
    """
    Summarize one user's records for a window.

    Working days only count up to `now`, so the current week is not
    penalized for days that have not happened yet.
    """
    now = now or datetime.utcnow()
    hours_by_day: Dict = defaultdict(float)
    completed_days = set()
    first_check_in: Dict = {}

    for record in records:
        day = record.check_in_time.date()
        hours_by_day[day] += record.total_hours or 0
        if record.check_out_time is not None:
            completed_days.add(day)
        if day not in first_check_in or record.check_in_time < first_check_in[day]:
            first_check_in[day] = record.check_in_time

    total_hours = round(sum(hours_by_day.values()), 2)
    completed_hours = sum(hours_by_day[d] for d in completed_days)
    average = round(completed_hours / len(completed_days), 2) if completed_days else 0
    attendance_days = len(hours_by_day)

    working_days = count_working_days(start, min(end, now))
    attendance_rate = min(100.0, round(attendance_days / working_days * 100, 1)) if working_days else 0.0

    on_time = sum(1 for moment in first_check_in.values() if not is_late_check_in(moment))
    on_time_rate = round(on_time / len(first_check_in) * 100, 1) if first_check_in else 0.0

    overtime = sum(max(0.0, hours - settings.hours_per_day) for hours in hours_by_day.values())

    return AttendanceStatsResponse(
        period=period,
        start_date=start,
        end_date=end,
        total_hours=total_hours,
        average_hours=average,
        attendance_days=attendance_days,
        total_working_days=working_days,
        attendance_rate=attendance_rate,
        on_time_rate=on_time_rate,
        overtime_hours=round(overtime, 2),
        records_count=len(records),
    )


# ============================================================================
# Administration
# ============================================================================


async def get_attendance_staff(db: AsyncSession) -> List[User]:
    """Active users that are expected to check in (everyone but admins)."""
    result = await db.execute(
        select(User).where(User.active.is_(True), User.role != SystemRole.ADMIN.value)
    )
    return list(result.scalars().all())


def _late_details(check_in: datetime) -> str:
    late_by = (check_in - get_workday_start(check_in)).total_seconds()
    return f"Late arrival at {check_in.strftime('%H:%M')} ({format_duration(late_by)} late)"


def _exception(user: Optional[User], user_id: UUID, kind: ExceptionType, day: str, details: str, key: str) -> AttendanceExceptionItem:
    return AttendanceExceptionItem(
        id=f"{key}-{user_id}-{day}",
        user_id=user_id,
        user_name=(user.name or "") if user else "",
        user_email=user.email if user else "",
        user_image=user.image if user else None,
        date=day,
        type=kind,
        details=details,
    )


async def detect_exceptions(
    db: AsyncSession,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> List[AttendanceExceptionItem]:
    """
    Find absences, late arrivals, forgotten check-outs and lateness patterns.

    Absence is judged only against dates on which someone checked in, and
    never for weekends, today or the future.
    """
    now = now or datetime.utcnow()
    staff = await get_attendance_staff(db)
    users = {u.id: u for u in staff}
    if not users:
        return []

    query = select(Attendance).where(Attendance.user_id.in_(list(users)))
    if start is not None:
        query = query.where(Attendance.check_in_time >= get_day_boundaries(start)[0])
    if end is not None:
        query = query.where(Attendance.check_in_time <= get_day_boundaries(end)[1])
    result = await db.execute(query.order_by(Attendance.check_in_time))
    records = list(result.scalars().all())

    dates_by_user: Dict[UUID, set] = defaultdict(set)
    seen_dates = {}
    for record in records:
        day = record.check_in_time.date()
        dates_by_user[record.user_id].add(day)
        seen_dates[day] = record.check_in_time

    exceptions: List[AttendanceExceptionItem] = []
    today = now.date()

    for day in sorted(seen_dates):
        if day >= today or is_weekend_day(seen_dates[day]):
            continue
        for user_id, user in users.items():
            if day not in dates_by_user[user_id]:
                exceptions.append(
                    _exception(
                        user, user_id, ExceptionType.ABSENT, day.isoformat(),
                        f"Absent without notice on {day.strftime('%A, %B %d')}", "absent",
                    )
                )

    late_counts: Dict[UUID, int] = defaultdict(int)
    for record in records:
        day = record.check_in_time.date().isoformat()
        user = users.get(record.user_id)
        if is_late_check_in(record.check_in_time):
            late_counts[record.user_id] += 1
            exceptions.append(
                _exception(user, record.user_id, ExceptionType.LATE, day, _late_details(record.check_in_time), "late")
            )
        if record.auto_checkout:
            exceptions.append(
                _exception(
                    user, record.user_id, ExceptionType.FORGOT_CHECKOUT, day,
                    f"Forgot to check out after checking in at {record.check_in_time.strftime('%H:%M')}",
                    "forgot",
                )
            )

    for user_id, count in late_counts.items():
        if count >= settings.late_pattern_threshold:
            exceptions.append(
                _exception(
                    users.get(user_id), user_id, ExceptionType.PATTERN, today.isoformat(),
                    f"Pattern of tardiness detected: Late {count} times in the selected period",
                    "pattern",
                )
            )

    return exceptions


def count_exceptions(exceptions: Iterable[AttendanceExceptionItem]) -> Dict[str, int]:
    """Counts for every exception type, zero-filled."""
    counts = {kind.value: 0 for kind in ExceptionType}
    for item in exceptions:
        counts[item.type.value] += 1
    return counts


async def get_today_summary(db: AsyncSession, now: Optional[datetime] = None) -> TodaySummaryResponse:
    """Present, late and absent counts for today plus recent exceptions."""
    now = now or datetime.utcnow()
    staff = await get_attendance_staff(db)

    recent = await db.execute(
        select(Activity)
        .where(
            Activity.action.in_([ActivityAction.AUTO_CHECKOUT.value, ActivityAction.ADJUSTED.value]),
            Activity.created_at >= now - timedelta(days=RECENT_EXCEPTION_DAYS),
        )
        .order_by(Activity.created_at.desc())
        .limit(RECENT_EXCEPTION_LIMIT)
    )
    recent_exceptions = [ActivityResponse.model_validate(a) for a in recent.scalars().all()]

    if is_weekend_day(now):
        return TodaySummaryResponse(
            present_count=0,
            late_count=0,
            absent_count=0,
            total_employees=0,
            recent_exceptions=recent_exceptions,
        )

    start, end = get_day_boundaries(now)
    staff_ids = [u.id for u in staff]
    present = set()
    late = set()
    if staff_ids:
        result = await db.execute(
            select(Attendance.user_id, Attendance.check_in_time).where(
                Attendance.user_id.in_(staff_ids),
                Attendance.check_in_time >= start,
                Attendance.check_in_time <= end,
            )
        )
        for user_id, check_in in result.all():
            present.add(user_id)
            if is_late_check_in(check_in):
                late.add(user_id)

    return TodaySummaryResponse(
        present_count=len(present),
        late_count=len(late),
        absent_count=max(0, len(staff) - len(present)),
        total_employees=len(staff),
        recent_exceptions=recent_exceptions,
    )


def resolve_range(
    start_date: Optional[datetime],
    end_date: Optional[datetime],
    default_days: int = 0,
    now: Optional[datetime] = None,
) -> Tuple[datetime, datetime]:
    """
    Day-aligned window from optional bounds.

    A missing end is today; a missing start is `default_days` before the end.
    """
    now = now or datetime.utcnow()
    end_day = end_date or now
    start_day = start_date or (end_day - timedelta(days=default_days))
    return get_day_boundaries(start_day)[0], get_day_boundaries(end_day)[1]


# ============================================================================
# Team analytics
# ============================================================================


async def get_analytics_members(db: AsyncSession, project_id: Optional[UUID] = None) -> List[User]:
    """A project's members, or all attendance staff when no project is given."""
    if project_id is None:
        return await get_attendance_staff(db)
    result = await db.execute(
        select(User)
        .join(TeamMember, TeamMember.user_id == User.id)
        .where(TeamMember.project_id == project_id)
    )
    return list(result.scalars().all())


def build_team_analytics(
    members: List[User],
    records: List[Attendance],
    start: datetime,
    end: datetime,
) -> TeamAnalyticsResponse:
    """
    Aggregate members' records over a day-aligned window.

    Attendance rates compare distinct user-days against the working days in
    the window; on-time rates count records not checked in late.
    """
    working_days = count_working_days(start, end)

    daily: Dict[str, TeamDailyStat] = {}
    current = start
    while current <= end:
        key = current.strftime("%Y-%m-%d")
        daily[key] = TeamDailyStat(date=key)
        current += timedelta(days=1)

    hours_by_user: Dict[UUID, float] = defaultdict(float)
    days_by_user: Dict[UUID, set] = defaultdict(set)
    on_time_by_user: Dict[UUID, int] = defaultdict(int)
    records_by_user: Dict[UUID, int] = defaultdict(int)

    for record in records:
        hours = record.total_hours or 0
        on_time = not is_late_check_in(record.check_in_time)
        key = record.check_in_time.strftime("%Y-%m-%d")

        hours_by_user[record.user_id] += hours
        days_by_user[record.user_id].add(key)
        records_by_user[record.user_id] += 1
        if on_time:
            on_time_by_user[record.user_id] += 1

        day = daily.get(key)
        if day is not None:
            day.total_hours = round(day.total_hours + hours, 2)
            day.attendance_count += 1
            if on_time:
                day.on_time_count += 1

    user_stats = []
    for member in members:
        attendance_days = len(days_by_user[member.id])
        total = hours_by_user[member.id]
        count = records_by_user[member.id]
        user_stats.append(
            TeamUserStat(
                user_id=member.id,
                name=member.name or "",
                email=member.email,
                image=member.image,
                total_hours=round(total, 2),
                attendance_days=attendance_days,
                average_hours_per_day=round(total / attendance_days, 2) if attendance_days else 0,
                attendance_rate=min(100.0, round(attendance_days / working_days * 100, 2)) if working_days else 0,
                on_time_count=on_time_by_user[member.id],
                on_time_rate=round(on_time_by_user[member.id] / count * 100, 2) if count else 0,
            )
        )
    user_stats.sort(key=lambda s: s.total_hours, reverse=True)

    total_hours = sum(hours_by_user.values())
    active = len(records_by_user)
    user_days = sum(len(d) for d in days_by_user.values())
    expected_days = len(members) * working_days
    on_time_total = sum(on_time_by_user.values())

    return TeamAnalyticsResponse(
        start_date=start,
        end_date=end,
        total_members=len(members),
        active_members=active,
        total_hours=round(total_hours, 2),
        average_hours_per_day=round(total_hours / (active * working_days), 2) if active and working_days else 0,
        attendance_rate=min(100.0, round(user_days / expected_days * 100, 2)) if expected_days else 0,
        on_time_rate=round(on_time_total / len(records) * 100, 2) if records else 0,
        daily_stats=list(daily.values()),
        user_stats=user_stats,
    )


async def get_team_analytics(
    db: AsyncSession,
    days: int,
    project_id: Optional[UUID] = None,
    now: Optional[datetime] = None,
) -> TeamAnalyticsResponse:
    """Team analytics for the `days` calendar days ending today."""
    now = now or datetime.utcnow()
    start = get_day_boundaries(now - timedelta(days=days - 1))[0]
    end = get_day_boundaries(now)[1]

    members = await get_analytics_members(db, project_id)
    records: List[Attendance] = []
    if members:
        result = await db.execute(
            select(Attendance).where(
                Attendance.user_id.in_([m.id for m in members]),
                Attendance.check_in_time >= start,
                Attendance.check_in_time <= end,
            )
        )
        records = list(result.scalars().all())
    logger.debug(f"Team analytics: {len(members)} members, {len(records)} records since {start.date()}")
    return build_team_analytics(members, records, start, end)
