"""Attendance models: check-in records, per-user settings and correction requests."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from ..database import Base

if TYPE_CHECKING:
    from .project import Project
    from .task import Task
    from .user import User


class Attendance(Base):
    """
    One check-in / check-out cycle of a user.

    A record is open while check_out_time is NULL.

    Attributes:
        id: Unique identifier (UUID)
        user_id: FK to the user
        check_in_time: When the user checked in
        check_out_time: When the user checked out (None while open)
        check_in_latitude / check_in_longitude: Check-in location
        check_out_latitude / check_out_longitude: Check-out location
        check_in_ip_address / check_out_ip_address: Client addresses
        check_in_device_info / check_out_device_info: Client device strings
        total_hours: Worked hours, set on check-out
        notes: Free text notes
        project_id: Optional project worked on
        task_id: Optional task worked on
        auto_checkout: True when the system closed the record
        adjusted_by_id: FK to the admin/manager who last adjusted it
        adjustment_reason: Reason given for the adjustment
    """

    __tablename__ = "Attendance"
    __allow_unmapped__ = True

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    user_id = Column(
        Uuid,
        ForeignKey("Users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    check_in_time = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    check_out_time = Column(DateTime, nullable=True)

    # Client context
    check_in_latitude = Column(Float, nullable=True)
    check_in_longitude = Column(Float, nullable=True)
    check_out_latitude = Column(Float, nullable=True)
    check_out_longitude = Column(Float, nullable=True)
    check_in_ip_address = Column(String(64), nullable=True)
    check_out_ip_address = Column(String(64), nullable=True)
    check_in_device_info = Column(String(500), nullable=True)
    check_out_device_info = Column(String(500), nullable=True)

    total_hours = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)

    project_id = Column(
        Uuid,
        ForeignKey("Projects.id", ondelete="SET NULL"),
        nullable=True,
    )
    task_id = Column(
        Uuid,
        ForeignKey("Tasks.id", ondelete="SET NULL"),
        nullable=True,
    )

    auto_checkout = Column(Boolean, nullable=False, default=False)
    adjusted_by_id = Column(
        Uuid,
        ForeignKey("Users.id", ondelete="SET NULL"),
        nullable=True,
    )
    adjustment_reason = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    # Relationships
    user = relationship(
        "User",
        foreign_keys=[user_id],
        back_populates="attendance_records",
        lazy="joined",
    )
    project = relationship("Project", lazy="joined")
    task = relationship("Task", lazy="joined")

    def __repr__(self) -> str:
        return f"<Attendance(id={self.id}, user_id={self.user_id}, check_in={self.check_in_time})>"


class AttendanceSettings(Base):
    """
    Per-user attendance preferences.

    Attributes:
        user_id: FK to the user (unique)
        work_hours_per_day: Expected daily hours
        work_days: Comma-separated ISO weekday numbers (1 = Monday)
        reminder_enabled: Whether check-in reminders are sent
        reminder_time: HH:MM reminder time
        auto_checkout_enabled: Whether the worker may close open records
        auto_checkout_time: HH:MM preferred auto-checkout time
    """

    __tablename__ = "AttendanceSettings"
    __allow_unmapped__ = True

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    user_id = Column(
        Uuid,
        ForeignKey("Users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    work_hours_per_day = Column(Float, nullable=False, default=8)
    work_days = Column(String(20), nullable=False, default="1,2,3,4,5")
    reminder_enabled = Column(Boolean, nullable=False, default=True)
    reminder_time = Column(String(5), nullable=False, default="09:00")
    auto_checkout_enabled = Column(Boolean, nullable=False, default=True)
    auto_checkout_time = Column(String(5), nullable=False, default="18:00")

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AttendanceSettings(user_id={self.user_id})>"


class AttendanceCorrectionRequest(Base):
    """
    A user's request to correct the times of one of their records.

    Attributes:
        attendance_id: FK to the record to correct
        user_id: FK to the requesting user
        original_check_in_time / original_check_out_time: Times at request
        requested_check_in_time / requested_check_out_time: Proposed times
        reason: Why the correction is needed
        status: pending, approved or rejected
        reviewed_by_id: FK to the reviewer
        reviewed_at: When the request was reviewed
        review_notes: Reviewer's notes
    """

    __tablename__ = "AttendanceCorrectionRequests"
    __allow_unmapped__ = True

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    attendance_id = Column(
        Uuid,
        ForeignKey("Attendance.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        Uuid,
        ForeignKey("Users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    original_check_in_time = Column(DateTime, nullable=False)
    original_check_out_time = Column(DateTime, nullable=True)
    requested_check_in_time = Column(DateTime, nullable=False)
    requested_check_out_time = Column(DateTime, nullable=True)
    reason = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="pending", index=True)
    reviewed_by_id = Column(
        Uuid,
        ForeignKey("Users.id", ondelete="SET NULL"),
        nullable=True,
    )
    reviewed_at = Column(DateTime, nullable=True)
    review_notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    user = relationship("User", foreign_keys=[user_id], lazy="joined")

    def __repr__(self) -> str:
        return f"<AttendanceCorrectionRequest(id={self.id}, status={self.status})>"
