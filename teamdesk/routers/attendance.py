"""Attendance API endpoints.

Check-in/check-out, history, statistics and per-user settings for every
user; adjustments, exception reports, the daily summary, the audit log and
correction reviews for admins and managers.

An open record from an earlier day is closed automatically (at most the
default shift length, never past the end of that day) when the user next
checks in or out, and nightly by the worker.
"""

import logging
from datetime import datetime
from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..constants import ATTENDANCE_ACTIONS, ActivityAction
from ..database import get_db
from ..models.activity import Activity
from ..models.attendance import Attendance, AttendanceCorrectionRequest, AttendanceSettings
from ..models.task import Task
from ..models.team_member import TeamMember
from ..models.user import User
from ..schemas.activity import ActivityResponse
from ..schemas.attendance import (
    AttendanceAdjustRequest,
    AttendanceExceptionsResponse,
    AttendanceHistoryResponse,
    AttendanceResponse,
    AttendanceSettingsResponse,
    AttendanceSettingsUpdate,
    AttendanceStatsResponse,
    AttendanceWithUser,
    AuditLogResponse,
    CheckInRequest,
    CheckOutRequest,
    CorrectionRequestCreate,
    CorrectionRequestResponse,
    CorrectionReview,
    CorrectionStatus,
    CurrentAttendanceResponse,
    ExceptionType,
    HistoryGroupBy,
    HistoryPeriod,
    StatsPeriod,
    TeamAnalyticsResponse,
    TeamAttendanceResponse,
    TeamAttendanceSummary,
    TodaySummaryResponse,
)
from ..schemas.common import Pagination
from ..services.activity_service import log_activity
from ..services.attendance_service import (
    adjusted_hours,
    close_record,
    compute_stats,
    count_exceptions,
    detect_exceptions,
    get_open_record,
    get_team_analytics,
    get_today_summary,
    group_records,
    is_stale,
    resolve_range,
)
from ..services.auth_service import get_current_active_user
from ..services.permission_service import (
    PermissionService,
    is_admin_or_manager,
    require_admin_or_manager,
)
from ..services.project_service import get_project_or_404
from ..utils.time_utils import get_day_boundaries, get_period_range, to_naive_utc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/attendance", tags=["Attendance"])


# ============================================================================
# Helper Functions
# ============================================================================


async def get_record_or_404(db: AsyncSession, attendance_id: UUID, refresh: bool = False) -> Attendance:
    query = select(Attendance).where(Attendance.id == attendance_id)
    if refresh:
        query = query.execution_options(populate_existing=True)
    record = (await db.execute(query)).scalar_one_or_none()
    if not record:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Attendance record with ID {attendance_id} not found",
        )
    return record


async def get_or_create_settings(db: AsyncSession, user_id: UUID) -> AttendanceSettings:
    result = await db.execute(select(AttendanceSettings).where(AttendanceSettings.user_id == user_id))
    user_settings = result.scalar_one_or_none()
    if user_settings is None:
        user_settings = AttendanceSettings(user_id=user_id)
        db.add(user_settings)
        await db.commit()
        await db.refresh(user_settings)
    return user_settings


async def can_manage_attendance(db: AsyncSession, user: User) -> bool:
    if is_admin_or_manager(user):
        return True
    return await PermissionService(db).user_has_permission(user, "attendance_management")


def ensure_check_out_after(check_in: datetime, check_out: Optional[datetime]) -> None:
    if check_out is not None and check_out <= check_in:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Check-out time must be after check-in time",
        )


# ============================================================================
# Check-in / check-out
# ============================================================================


@router.post(
    "/check-in",
    response_model=AttendanceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Check in",
    responses={
        201: {"description": "Checked in"},
        400: {"description": "Already checked in today"},
        404: {"description": "Project or task not found"},
    },
)
async def check_in(
    request: CheckInRequest,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> AttendanceResponse:
    """
    Start an attendance record.

    - **latitude** / **longitude**, **ip_address**, **device_info**: Client context
    - **notes**: Free text
    - **project_id** / **task_id**: What the user is working on

    An open record from an earlier day is auto-closed first.
    """
    now = datetime.utcnow()
    open_record = await get_open_record(db, current_user.id)
    if open_record is not None:
        if not is_stale(open_record, now):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Already checked in",
            )
        close_record(db, open_record, actor_id=current_user.id, now=now)
        logger.info(f"Auto-closed stale attendance {open_record.id} for user {current_user.id}")

    if request.project_id is not None:
        await get_project_or_404(db, request.project_id)
    if request.task_id is not None:
        exists_task = (await db.execute(select(Task.id).where(Task.id == request.task_id))).first()
        if exists_task is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Task with ID {request.task_id} not found",
            )

    record = Attendance(
        user_id=current_user.id,
        check_in_time=now,
        check_in_latitude=request.latitude,
        check_in_longitude=request.longitude,
        check_in_ip_address=request.ip_address,
        check_in_device_info=request.device_info,
        notes=request.notes,
        project_id=request.project_id,
        task_id=request.task_id,
    )
    db.add(record)
    await db.flush()
    log_activity(
        db,
        action=ActivityAction.CHECK_IN,
        entity_type="attendance",
        entity_id=record.id,
        description=f"Checked in at {now.strftime('%H:%M')}",
        user_id=current_user.id,
        project_id=request.project_id,
    )
    await db.commit()
    return await get_record_or_404(db, record.id, refresh=True)


@router.post(
    "/check-out",
    response_model=AttendanceResponse,
    summary="Check out",
    responses={
        200: {"description": "Checked out"},
        400: {"description": "Record already checked out"},
        403: {"description": "Record belongs to another user"},
        404: {"description": "No open record"},
    },
)
async def check_out(
    request: CheckOutRequest,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> AttendanceResponse:
    """
    Close an attendance record.

    - **attendance_id**: Record to close; defaults to the latest open one

    A record checked in on an earlier day is closed as an auto check-out.
    """
    if request.attendance_id is not None:
        record = await get_record_or_404(db, request.attendance_id)
        if record.user_id != current_user.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only check out of your own attendance records",
            )
        if record.check_out_time is not None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Already checked out",
            )
    else:
        record = await get_open_record(db, current_user.id)
        if record is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="No active check-in found",
            )

    close_record(
        db,
        record,
        actor_id=current_user.id,
        latitude=request.latitude,
        longitude=request.longitude,
        ip_address=request.ip_address,
        device_info=request.device_info,
        notes=request.notes,
    )
    await db.commit()
    return await get_record_or_404(db, record.id, refresh=True)


@router.get(
    "/current",
    response_model=CurrentAttendanceResponse,
    summary="Current attendance state",
)
async def get_current_attendance(
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> CurrentAttendanceResponse:
    """The open record, else today's latest, else the last record ever."""
    open_record = await get_open_record(db, current_user.id)
    if open_record is not None:
        return CurrentAttendanceResponse(
            is_checked_in=True,
            attendance=AttendanceResponse.model_validate(open_record),
        )

    start, end = get_day_boundaries(datetime.utcnow())
    base = select(Attendance).where(Attendance.user_id == current_user.id)
    today = (
        await db.execute(
            base.where(Attendance.check_in_time >= start, Attendance.check_in_time <= end)
            .order_by(Attendance.check_in_time.desc())
            .limit(1)
        )
    ).scalar_one_or_none()
    record = today or (
        await db.execute(base.order_by(Attendance.check_in_time.desc()).limit(1))
    ).scalar_one_or_none()

    return CurrentAttendanceResponse(
        is_checked_in=False,
        attendance=AttendanceResponse.model_validate(record) if record else None,
    )


# ============================================================================
# History and statistics
# ============================================================================


@router.get(
    "/history",
    response_model=AttendanceHistoryResponse,
    summary="Attendance history",
)
async def get_history(
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
    period: Optional[HistoryPeriod] = Query(None, description="week or month"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    group_by: Optional[HistoryGroupBy] = Query(None, description="day, week or month"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> AttendanceHistoryResponse:
    """
    The current user's records, newest first.

    - **period**: Current week or month; overrides start/end
    - **start_date** / **end_date**: Explicit window
    - **group_by**: Aggregate into day/week/month groups; pagination then applies to groups
    """
    start_date, end_date = to_naive_utc(start_date), to_naive_utc(end_date)
    query = select(Attendance).where(Attendance.user_id == current_user.id)
    window_start = window_end = None
    if period is not None:
        window_start, window_end = get_period_range(period.value)
    elif start_date or end_date:
        if start_date:
            window_start = get_day_boundaries(start_date)[0]
        if end_date:
            window_end = get_day_boundaries(end_date)[1]
    if window_start:
        query = query.where(Attendance.check_in_time >= window_start)
    if window_end:
        query = query.where(Attendance.check_in_time <= window_end)
    query = query.order_by(Attendance.check_in_time.desc())

    if group_by is not None:
        records = (await db.execute(query)).scalars().all()
        groups = group_records(records, group_by)
        page_groups = groups[(page - 1) * limit:page * limit]
        return AttendanceHistoryResponse(
            attendance_records=[r for g in page_groups for r in g.records],
            grouped_records=page_groups,
            total_groups=len(groups),
            group_by=group_by,
            period=period,
            start_date=window_start,
            end_date=window_end,
            pagination=Pagination.build(len(groups), page, limit),
        )

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    records = (await db.execute(query.offset((page - 1) * limit).limit(limit))).scalars().all()
    return AttendanceHistoryResponse(
        attendance_records=[AttendanceResponse.model_validate(r) for r in records],
        period=period,
        start_date=window_start,
        end_date=window_end,
        pagination=Pagination.build(total, page, limit),
    )


@router.get(
    "/stats",
    response_model=AttendanceStatsResponse,
    summary="Attendance statistics",
)
async def get_stats(
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
    period: StatsPeriod = Query(StatsPeriod.WEEK),
) -> AttendanceStatsResponse:
    """Hours, attendance rate, punctuality and overtime for the period."""
    now = datetime.utcnow()
    start, end = get_period_range(period.value, now)
    result = await db.execute(
        select(Attendance)
        .where(
            Attendance.user_id == current_user.id,
            Attendance.check_in_time >= start,
            Attendance.check_in_time <= end,
        )
        .order_by(Attendance.check_in_time)
    )
    return compute_stats(list(result.scalars().all()), period.value, start, end, now)


# ============================================================================
# Settings
# ============================================================================


@router.get(
    "/settings",
    response_model=AttendanceSettingsResponse,
    summary="Get attendance settings",
)
async def get_settings(
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> AttendanceSettingsResponse:
    """The user's settings, created with defaults on first access."""
    return await get_or_create_settings(db, current_user.id)


@router.patch(
    "/settings",
    response_model=AttendanceSettingsResponse,
    summary="Update attendance settings",
)
async def update_settings(
    update: AttendanceSettingsUpdate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> AttendanceSettingsResponse:
    """
    Update settings.

    - **work_hours_per_day**: 1-24
    - **work_days**: Comma-separated ISO weekdays, e.g. `1,2,3,4,5`
    - **reminder_time** / **auto_checkout_time**: HH:MM
    """
    user_settings = await get_or_create_settings(db, current_user.id)
    for field, value in update.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(user_settings, field, value)
    await db.commit()
    await db.refresh(user_settings)
    return user_settings


# ============================================================================
# Administration
# ============================================================================


@router.post(
    "/adjust",
    response_model=AttendanceWithUser,
    summary="Adjust an attendance record",
    responses={
        400: {"description": "Check-out not after check-in"},
        403: {"description": "Admin, manager or attendance_management required"},
        404: {"description": "Record not found"},
    },
)
async def adjust_attendance(
    request: AttendanceAdjustRequest,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> AttendanceWithUser:
    """
    Correct the times of a record.

    - **attendance_id**: Record to adjust
    - **check_in_time** / **check_out_time**: New times; omitted ones are kept
    - **reason**: Required explanation
    """
    if not await can_manage_attendance(db, current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to adjust attendance records",
        )
    record = await get_record_or_404(db, request.attendance_id)

    check_in = request.check_in_time or record.check_in_time
    check_out = request.check_out_time or record.check_out_time
    ensure_check_out_after(check_in, check_out)

    record.check_in_time = check_in
    record.check_out_time = check_out
    record.total_hours = adjusted_hours(check_in, check_out)
    record.adjusted_by_id = current_user.id
    record.adjustment_reason = request.reason
    if request.notes is not None:
        record.notes = request.notes

    log_activity(
        db,
        action=ActivityAction.ADJUSTED,
        entity_type="attendance",
        entity_id=record.id,
        description=f"Adjusted attendance record: {request.reason}",
        user_id=current_user.id,
        project_id=record.project_id,
    )
    await db.commit()
    return await get_record_or_404(db, record.id, refresh=True)


@router.get(
    "/exceptions",
    response_model=AttendanceExceptionsResponse,
    summary="Attendance exceptions",
    responses={403: {"description": "Admin or manager role required"}},
)
async def list_exceptions(
    current_user: Annotated[User, Depends(require_admin_or_manager)],
    db: AsyncSession = Depends(get_db),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    type: Optional[ExceptionType] = Query(None, description="absent, late, forgot_checkout or pattern"),
) -> AttendanceExceptionsResponse:
    """
    Absences, late arrivals, forgotten check-outs and lateness patterns.

    `counts` always covers every type, whatever `type` filter is applied.
    """
    exceptions = await detect_exceptions(db, to_naive_utc(start_date), to_naive_utc(end_date))
    counts = count_exceptions(exceptions)
    if type is not None:
        exceptions = [e for e in exceptions if e.type == type]
    return AttendanceExceptionsResponse(exceptions=exceptions, counts=counts)


@router.get(
    "/today",
    response_model=TodaySummaryResponse,
    summary="Today's attendance summary",
    responses={403: {"description": "Admin or manager role required"}},
)
async def get_today(
    current_user: Annotated[User, Depends(require_admin_or_manager)],
    db: AsyncSession = Depends(get_db),
) -> TodaySummaryResponse:
    """Present, late and absent counts; zero on weekends."""
    return await get_today_summary(db)


@router.get(
    "/team/analytics",
    response_model=TeamAnalyticsResponse,
    summary="Team attendance analytics",
    responses={
        403: {"description": "Admin or manager role required"},
        404: {"description": "Project not found"},
    },
)
async def get_team_analytics_report(
    current_user: Annotated[User, Depends(require_admin_or_manager)],
    db: AsyncSession = Depends(get_db),
    days: int = Query(30, ge=1, le=365, description="Window length in days, ending today"),
    project_id: Optional[UUID] = Query(None, description="Only this project's members"),
) -> TeamAnalyticsResponse:
    """
    Hours, attendance and punctuality across a team.

    - **days**: Calendar days to cover, today included
    - **project_id**: Limit to a project's members; otherwise all non-admin staff

    Includes per-day totals and per-member figures, busiest members first.
    """
    if project_id is not None:
        await get_project_or_404(db, project_id)
    return await get_team_analytics(db, days, project_id)


@router.get(
    "/team/{project_id}",
    response_model=TeamAttendanceResponse,
    summary="Attendance of a project's members",
    responses={
        403: {"description": "Not a member of this project"},
        404: {"description": "Project not found"},
    },
)
async def get_team_attendance(
    project_id: UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
    date: Optional[datetime] = Query(None, description="Single day"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
) -> TeamAttendanceResponse:
    """Members' records for a day (default today) or a range, with a summary."""
    project = await get_project_or_404(db, project_id)
    if not await PermissionService(db).can_view_project(current_user, project):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this project's attendance",
        )

    if date is not None:
        start, end = get_day_boundaries(to_naive_utc(date))
    elif start_date or end_date:
        start, end = resolve_range(to_naive_utc(start_date), to_naive_utc(end_date))
    else:
        start, end = get_day_boundaries(datetime.utcnow())

    member_ids = (
        await db.execute(select(TeamMember.user_id).where(TeamMember.project_id == project_id))
    ).scalars().all()

    records: List[Attendance] = []
    if member_ids:
        result = await db.execute(
            select(Attendance)
            .where(
                Attendance.user_id.in_(member_ids),
                Attendance.check_in_time >= start,
                Attendance.check_in_time <= end,
            )
            .order_by(Attendance.check_in_time.desc())
        )
        records = list(result.scalars().all())

    return TeamAttendanceResponse(
        project_id=project_id,
        start_date=start,
        end_date=end,
        attendance_records=[AttendanceWithUser.model_validate(r) for r in records],
        summary=TeamAttendanceSummary(
            member_count=len(member_ids),
            checked_in_count=len({r.user_id for r in records}),
            total_hours=round(sum(r.total_hours or 0 for r in records), 2),
        ),
    )


@router.get(
    "/audit-log",
    response_model=AuditLogResponse,
    summary="Attendance audit log",
    responses={
        400: {"description": "Unknown attendance action"},
        403: {"description": "Admin or manager role required"},
    },
)
async def get_audit_log(
    current_user: Annotated[User, Depends(require_admin_or_manager)],
    db: AsyncSession = Depends(get_db),
    user_id: Optional[UUID] = Query(None),
    action: Optional[str] = Query(None, description="e.g. CHECK_IN, ADJUSTED"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> AuditLogResponse:
    """Attendance activities, newest first."""
    if action is not None and action not in ATTENDANCE_ACTIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown attendance action: {action}",
        )
    query = select(Activity).where(Activity.action.in_([action] if action else ATTENDANCE_ACTIONS))
    if user_id is not None:
        query = query.where(Activity.user_id == user_id)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    result = await db.execute(
        query.order_by(Activity.created_at.desc()).offset((page - 1) * limit).limit(limit)
    )
    return AuditLogResponse(
        logs=[ActivityResponse.model_validate(a) for a in result.scalars().all()],
        pagination=Pagination.build(total, page, limit),
    )


# ============================================================================
# Correction requests
# ============================================================================


@router.post(
    "/corrections",
    response_model=CorrectionRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a correction",
    responses={
        400: {"description": "Requested check-out not after check-in"},
        403: {"description": "Not your record"},
        404: {"description": "Record not found"},
    },
)
async def create_correction(
    request: CorrectionRequestCreate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> CorrectionRequestResponse:
    """Ask an admin or manager to change the times of one of your records."""
    record = await get_record_or_404(db, request.attendance_id)
    if record.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only request corrections for your own records",
        )
    # A correction without a check-out keeps the record's current one
    ensure_check_out_after(
        request.requested_check_in_time,
        request.requested_check_out_time or record.check_out_time,
    )

    correction = AttendanceCorrectionRequest(
        attendance_id=record.id,
        user_id=current_user.id,
        original_check_in_time=record.check_in_time,
        original_check_out_time=record.check_out_time,
        requested_check_in_time=request.requested_check_in_time,
        requested_check_out_time=request.requested_check_out_time,
        reason=request.reason,
        status=CorrectionStatus.PENDING.value,
    )
    db.add(correction)
    await db.flush()
    log_activity(
        db,
        action=ActivityAction.CORRECTION_REQUESTED,
        entity_type="attendance",
        entity_id=record.id,
        description=f"Requested attendance correction: {request.reason}",
        user_id=current_user.id,
    )
    await db.commit()

    result = await db.execute(
        select(AttendanceCorrectionRequest)
        .where(AttendanceCorrectionRequest.id == correction.id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


@router.get(
    "/corrections",
    response_model=List[CorrectionRequestResponse],
    summary="List correction requests",
)
async def list_corrections(
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
    status_filter: Optional[CorrectionStatus] = Query(None, alias="status"),
) -> List[CorrectionRequestResponse]:
    """Your own requests; admins and managers see everyone's."""
    query = select(AttendanceCorrectionRequest)
    if not is_admin_or_manager(current_user):
        query = query.where(AttendanceCorrectionRequest.user_id == current_user.id)
    if status_filter is not None:
        query = query.where(AttendanceCorrectionRequest.status == status_filter.value)
    result = await db.execute(query.order_by(AttendanceCorrectionRequest.created_at.desc()))
    return list(result.scalars().all())


@router.patch(
    "/corrections/{correction_id}",
    response_model=CorrectionRequestResponse,
    summary="Approve or reject a correction",
    responses={
        400: {"description": "Request already reviewed or its times are out of order"},
        403: {"description": "Admin or manager role required"},
        404: {"description": "Request not found"},
    },
)
async def review_correction(
    correction_id: UUID,
    review: CorrectionReview,
    current_user: Annotated[User, Depends(require_admin_or_manager)],
    db: AsyncSession = Depends(get_db),
) -> CorrectionRequestResponse:
    """
    Review a pending request.

    Approval applies the requested times to the record and recomputes its hours.
    """
    result = await db.execute(
        select(AttendanceCorrectionRequest).where(AttendanceCorrectionRequest.id == correction_id)
    )
    correction = result.scalar_one_or_none()
    if not correction:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Correction request with ID {correction_id} not found",
        )
    if correction.status != CorrectionStatus.PENDING.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Correction request is already {correction.status}",
        )

    if review.status == CorrectionStatus.APPROVED:
        # The record may have been adjusted since the request was made
        record = await get_record_or_404(db, correction.attendance_id)
        check_out = correction.requested_check_out_time or record.check_out_time
        ensure_check_out_after(correction.requested_check_in_time, check_out)
        record.check_in_time = correction.requested_check_in_time
        record.check_out_time = check_out
        record.total_hours = adjusted_hours(record.check_in_time, record.check_out_time)
        record.adjusted_by_id = current_user.id
        record.adjustment_reason = f"Correction request: {correction.reason}"

    correction.status = review.status.value
    correction.reviewed_by_id = current_user.id
    correction.reviewed_at = datetime.utcnow()
    correction.review_notes = review.review_notes

    log_activity(
        db,
        action=ActivityAction.CORRECTION_REVIEWED,
        entity_type="attendance",
        entity_id=correction.attendance_id,
        description=f"Correction request {review.status.value}",
        user_id=current_user.id,
    )
    await db.commit()
    await db.refresh(correction)
    return correction
