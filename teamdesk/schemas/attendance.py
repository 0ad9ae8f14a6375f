"""Pydantic schemas for attendance records, settings, reports and corrections."""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.time_utils import to_naive_utc
from .activity import ActivityResponse
from .common import Pagination
from .user import UserSummary

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class StatsPeriod(str, Enum):
    """Reporting windows for attendance statistics."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class HistoryPeriod(str, Enum):
    """Shortcut windows for attendance history."""

    WEEK = "week"
    MONTH = "month"


class HistoryGroupBy(str, Enum):
    """Grouping modes for attendance history."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class ExceptionType(str, Enum):
    """Kinds of attendance exceptions."""

    ABSENT = "absent"
    LATE = "late"
    FORGOT_CHECKOUT = "forgot_checkout"
    PATTERN = "pattern"


class CorrectionStatus(str, Enum):
    """Lifecycle of a correction request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# ============================================================================
# Check-in / check-out
# ============================================================================


class CheckInRequest(BaseModel):
    """Optional client context captured at check-in."""

    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    ip_address: Optional[str] = Field(None, max_length=64)
    device_info: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = Field(None, max_length=2000)
    project_id: Optional[UUID] = None
    task_id: Optional[UUID] = None


class CheckOutRequest(BaseModel):
    """Optional record selector and client context captured at check-out."""

    attendance_id: Optional[UUID] = Field(None, description="Record to close; defaults to the latest open one")
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    ip_address: Optional[str] = Field(None, max_length=64)
    device_info: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = Field(None, max_length=2000)


class AttendanceProjectInfo(BaseModel):
    id: UUID
    title: str

    model_config = ConfigDict(from_attributes=True)


class AttendanceTaskInfo(BaseModel):
    id: UUID
    title: str

    model_config = ConfigDict(from_attributes=True)


class AttendanceResponse(BaseModel):
    """Attendance record as returned by the API."""

    id: UUID
    user_id: UUID
    check_in_time: datetime
    check_out_time: Optional[datetime] = None
    check_in_latitude: Optional[float] = None
    check_in_longitude: Optional[float] = None
    check_out_latitude: Optional[float] = None
    check_out_longitude: Optional[float] = None
    check_in_ip_address: Optional[str] = None
    check_out_ip_address: Optional[str] = None
    check_in_device_info: Optional[str] = None
    check_out_device_info: Optional[str] = None
    total_hours: Optional[float] = None
    notes: Optional[str] = None
    project_id: Optional[UUID] = None
    task_id: Optional[UUID] = None
    project: Optional[AttendanceProjectInfo] = None
    task: Optional[AttendanceTaskInfo] = None
    auto_checkout: bool = False
    adjusted_by_id: Optional[UUID] = None
    adjustment_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AttendanceWithUser(AttendanceResponse):
    """Attendance record including the user."""

    user: Optional[UserSummary] = None


class CurrentAttendanceResponse(BaseModel):
    """The user's current check-in state."""

    is_checked_in: bool
    attendance: Optional[AttendanceResponse] = None


# ============================================================================
# History and statistics
# ============================================================================


class AttendanceGroup(BaseModel):
    """Records aggregated by day, week or month."""

    period: str = Field(..., examples=["2024-05-06", "2024-05-06 to 2024-05-12", "2024-05"])
    records: List[AttendanceResponse]
    total_hours: float
    check_in_count: int
    average_hours_per_day: float


class AttendanceHistoryResponse(BaseModel):
    """Paginated history, optionally grouped."""

    attendance_records: List[AttendanceResponse]
    grouped_records: List[AttendanceGroup] = Field(default_factory=list)
    total_groups: Optional[int] = None
    group_by: Optional[HistoryGroupBy] = None
    period: Optional[HistoryPeriod] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    pagination: Pagination


class AttendanceStatsResponse(BaseModel):
    """Attendance statistics for one reporting window."""

    period: StatsPeriod
    start_date: datetime
    end_date: datetime
    total_hours: float
    average_hours: float
    attendance_days: int
    total_working_days: int
    attendance_rate: float
    on_time_rate: float
    overtime_hours: float
    records_count: int


# ============================================================================
# Settings
# ============================================================================


class AttendanceSettingsUpdate(BaseModel):
    """Partial update of a user's attendance settings."""

    work_hours_per_day: Optional[float] = Field(None, ge=1, le=24)
    work_days: Optional[str] = Field(None, description="Comma-separated ISO weekday numbers, 1 = Monday", examples=["1,2,3,4,5"])
    reminder_enabled: Optional[bool] = None
    reminder_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    auto_checkout_enabled: Optional[bool] = None
    auto_checkout_time: Optional[str] = Field(None, pattern=TIME_PATTERN)

    @field_validator("work_days")
    @classmethod
    def check_work_days(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        parts = [p.strip() for p in value.split(",") if p.strip()]
        if not parts or not all(p.isdigit() and 1 <= int(p) <= 7 for p in parts):
            raise ValueError("work_days must be a comma-separated list of weekday numbers")
        return ",".join(parts)


class AttendanceSettingsResponse(BaseModel):
    """A user's attendance settings."""

    id: UUID
    user_id: UUID
    work_hours_per_day: float
    work_days: str
    reminder_enabled: bool
    reminder_time: str
    auto_checkout_enabled: bool
    auto_checkout_time: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# Administration
# ============================================================================


class AttendanceAdjustRequest(BaseModel):
    """Admin/manager correction of a record."""

    attendance_id: UUID
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    reason: str = Field(..., min_length=1, max_length=2000)
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("check_in_time", "check_out_time", mode="after")
    @classmethod
    def normalize_times(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class AttendanceExceptionItem(BaseModel):
    """One detected attendance exception."""

    id: str = Field(..., examples=["late-<user_id>-2024-05-06"])
    user_id: UUID
    user_name: str = ""
    user_email: str = ""
    user_image: Optional[str] = None
    date: str
    type: ExceptionType
    details: str


class AttendanceExceptionsResponse(BaseModel):
    """Exceptions plus counts for every type."""

    exceptions: List[AttendanceExceptionItem]
    counts: Dict[str, int]


class TodaySummaryResponse(BaseModel):
    """Today's attendance counts for the admin dashboard."""

    present_count: int
    late_count: int
    absent_count: int
    total_employees: int
    recent_exceptions: List[ActivityResponse] = Field(default_factory=list)


class TeamAttendanceSummary(BaseModel):
    member_count: int
    checked_in_count: int
    total_hours: float


class TeamAttendanceResponse(BaseModel):
    """Attendance of a project's members."""

    project_id: UUID
    start_date: datetime
    end_date: datetime
    attendance_records: List[AttendanceWithUser]
    summary: TeamAttendanceSummary


class TeamDailyStat(BaseModel):
    date: str = Field(..., examples=["2024-05-06"])
    total_hours: float = 0
    attendance_count: int = 0
    on_time_count: int = 0


class TeamUserStat(BaseModel):
    """One member's attendance over the analytics window."""

    user_id: UUID
    name: str = ""
    email: str = ""
    image: Optional[str] = None
    total_hours: float = 0
    attendance_days: int = 0
    average_hours_per_day: float = 0
    attendance_rate: float = 0
    on_time_count: int = 0
    on_time_rate: float = 0


class TeamAnalyticsResponse(BaseModel):
    """Team-wide attendance figures for the last `days` days."""

    start_date: datetime
    end_date: datetime
    total_members: int
    active_members: int
    total_hours: float
    average_hours_per_day: float
    attendance_rate: float
    on_time_rate: float
    daily_stats: List[TeamDailyStat] = Field(default_factory=list)
    user_stats: List[TeamUserStat] = Field(default_factory=list)


class AuditLogResponse(BaseModel):
    """Paginated attendance activities."""

    logs: List[ActivityResponse]
    pagination: Pagination


# ============================================================================
# Correction requests
# ============================================================================


class CorrectionRequestCreate(BaseModel):
    """A user's proposed correction to one of their records."""

    attendance_id: UUID
    requested_check_in_time: datetime
    requested_check_out_time: Optional[datetime] = None
    reason: str = Field(..., min_length=1, max_length=2000)

    @field_validator("requested_check_in_time", "requested_check_out_time", mode="after")
    @classmethod
    def normalize_times(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class CorrectionReview(BaseModel):
    """Reviewer decision on a correction request."""

    status: CorrectionStatus = Field(..., description="approved or rejected")
    review_notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("status")
    @classmethod
    def check_decision(cls, value: CorrectionStatus) -> CorrectionStatus:
        if value == CorrectionStatus.PENDING:
            raise ValueError("status must be approved or rejected")
        return value


class CorrectionRequestResponse(BaseModel):
    """Correction request as returned by the API."""

    id: UUID
    attendance_id: UUID
    user_id: UUID
    original_check_in_time: datetime
    original_check_out_time: Optional[datetime] = None
    requested_check_in_time: datetime
    requested_check_out_time: Optional[datetime] = None
    reason: str
    status: CorrectionStatus
    reviewed_by_id: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    user: Optional[UserSummary] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
