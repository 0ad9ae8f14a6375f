"""Date and time helpers for attendance.

All datetimes are naive and interpreted on the server's UTC clock, the same
clock used for the stored timestamps. Workday times, the late grace period
and weekend days come from settings.
"""

import logging
from calendar import monthrange
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple

from ..config import settings

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600


def parse_hhmm(value: str) -> time:
    """Parse 'HH:MM' into a time."""
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def get_workday_start(day: datetime) -> datetime:
    """The configured workday start on the date of `day`."""
    return datetime.combine(day.date(), parse_hhmm(settings.work_day_start))


def get_workday_end(day: datetime) -> datetime:
    """The configured workday end on the date of `day`."""
    return datetime.combine(day.date(), parse_hhmm(settings.work_day_end))


def get_late_threshold(day: datetime) -> datetime:
    """Workday start plus the late-arrival grace period."""
    return get_workday_start(day) + timedelta(minutes=settings.late_grace_minutes)


def is_late_check_in(check_in_time: datetime) -> bool:
    """A check-in strictly after the late threshold is late."""
    return check_in_time > get_late_threshold(check_in_time)


def get_day_boundaries(day: datetime) -> Tuple[datetime, datetime]:
    """First and last instant of the day, for range queries."""
    start = datetime.combine(day.date(), time.min)
    end = datetime.combine(day.date(), time.max)
    return start, end


def is_weekend_day(day: datetime) -> bool:
    return day.weekday() in settings.weekend_day_list


def is_work_day(day: datetime) -> bool:
    return not is_weekend_day(day)


def is_within_work_hours(moment: datetime) -> bool:
    """Workday start inclusive, workday end exclusive."""
    return get_workday_start(moment) <= moment < get_workday_end(moment)


def calculate_work_hours(check_in_time: datetime, check_out_time: datetime) -> float:
    """Raw hours between two moments, never negative."""
    return max(0.0, (check_out_time - check_in_time).total_seconds() / SECONDS_PER_HOUR)


def calculate_total_hours(
    check_in_time: datetime,
    check_out_time: datetime,
    max_hours_per_day: Optional[float] = None,
    apply_workday_bounds: bool = True,
    is_auto_checkout: bool = False,
) -> float:
    """
    Worked hours with business rules applied, rounded to 2 decimals.

    Args:
        check_in_time: Start of the record
        check_out_time: End of the record
        max_hours_per_day: Upper cap; defaults to settings.max_hours_per_day
        apply_workday_bounds: Clamp auto check-outs to the workday
        is_auto_checkout: The end time was chosen by the system

    Returns:
        0 for an empty or inverted range. For an auto check-out with bounds,
        the end is capped at the workday end of the check-in day and any
        result longer than a standard day is reported as exactly one
        standard day. Otherwise the duration capped at max_hours_per_day.
    """
    if max_hours_per_day is None:
        max_hours_per_day = settings.max_hours_per_day

    if check_in_time >= check_out_time:
        return 0

    effective_end = check_out_time

    if apply_workday_bounds and is_auto_checkout:
        workday_end = get_workday_end(check_in_time)
        if check_out_time > workday_end:
            effective_end = workday_end

        standard_day = timedelta(hours=settings.hours_per_day)
        if effective_end - check_in_time > standard_day:
            return settings.hours_per_day

    hours = (effective_end - check_in_time).total_seconds() / SECONDS_PER_HOUR
    if hours < 0:
        return 0
    return round(min(hours, max_hours_per_day), 2)


def calculate_work_percentage(check_in_time: datetime, check_out_time: datetime) -> int:
    """Share of a standard workday covered, 0-100."""
    seconds = (check_out_time - check_in_time).total_seconds()
    standard = settings.hours_per_day * SECONDS_PER_HOUR
    if seconds <= 0 or standard <= 0:
        return 0
    return min(100, round(seconds / standard * 100))


def auto_checkout_time(check_in_time: datetime) -> datetime:
    """
    Check-out moment assigned to a record left open past its day.

    The default shift length after check-in, but never past the end of the
    check-in day.
    """
    _, end_of_day = get_day_boundaries(check_in_time)
    return min(check_in_time + timedelta(hours=settings.default_checkout_hours), end_of_day)


def format_duration(seconds: float) -> str:
    """Format a duration as '2h 30m', '45m', '3h' or '0m'."""
    if seconds <= 0:
        return "0m"
    hours = int(seconds // SECONDS_PER_HOUR)
    minutes = int((seconds % SECONDS_PER_HOUR) // 60)
    if hours == 0:
        return f"{minutes}m"
    if minutes == 0:
        return f"{hours}h"
    return f"{hours}h {minutes}m"


def format_time_string(value: str) -> str:
    """'14:05' -> '2:05 PM'. Unparseable input is returned unchanged."""
    if not value or ":" not in value:
        return value or ""
    hours_str, minutes_str = value.split(":", 1)
    try:
        hours = int(hours_str)
        minutes = int(minutes_str)
    except ValueError:
        return value
    period = "PM" if hours >= 12 else "AM"
    display_hours = hours % 12 or 12
    return f"{display_hours}:{minutes:02d} {period}"


def get_time_difference(start: datetime, end: datetime) -> str:
    return format_duration((end - start).total_seconds())


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC. Naive values pass through."""
    if value is None or value.tzinfo is None:
        return value
    return value.replace(tzinfo=None) - (value.utcoffset() or timedelta(0))


def safe_parse_iso(value: Optional[str]) -> datetime:
    """Parse an ISO date or datetime string, falling back to now."""
    if not value:
        return datetime.utcnow()
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Invalid date string: {value}")
        return datetime.utcnow()
    # Stored timestamps are naive UTC
    return to_naive_utc(parsed)


def get_period_range(period: str, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    Start and end of the day/week/month/year containing `now`.

    Weeks start on Monday.
    """
    now = now or datetime.utcnow()
    today = now.date()
    if period == "day":
        start_date, end_date = today, today
    elif period == "week":
        start_date = today - timedelta(days=today.weekday())
        end_date = start_date + timedelta(days=6)
    elif period == "month":
        start_date = today.replace(day=1)
        end_date = today.replace(day=monthrange(today.year, today.month)[1])
    elif period == "year":
        start_date = date(today.year, 1, 1)
        end_date = date(today.year, 12, 31)
    else:
        raise ValueError(f"Unknown period: {period}")
    return datetime.combine(start_date, time.min), datetime.combine(end_date, time.max)


def count_working_days(start: datetime, end: datetime) -> int:
    """Non-weekend days from start to end, both inclusive."""
    if end < start:
        return 0
    count = 0
    current = start.date()
    while current <= end.date():
        if current.weekday() not in settings.weekend_day_list:
            count += 1
        current += timedelta(days=1)
    return count


def week_label(day: datetime) -> str:
    """'YYYY-MM-DD to YYYY-MM-DD' for the Monday-Sunday week of `day`."""
    monday = day.date() - timedelta(days=day.weekday())
    sunday = monday + timedelta(days=6)
    return f"{monday.isoformat()} to {sunday.isoformat()}"
