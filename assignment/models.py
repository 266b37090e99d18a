from __future__ import annotations
import datetime as dt
from datetime import datetime, time
from enum import Enum
from typing import Any
from sqlalchemy import (
    JSON, Date, DateTime, Enum as SAEnum, ForeignKey, Index, Integer, Text, Time, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from core.database import Base


class AssignmentStatus(str, Enum):
    assigned = "assigned"
    confirmed = "confirmed"
    declined = "declined"
    swap_requested = "swap_requested"
    cancelled = "cancelled"


ACTIVE_STATUSES = (
    AssignmentStatus.assigned,
    AssignmentStatus.confirmed,
    AssignmentStatus.swap_requested,
)


class PerformanceRating(str, Enum):
    excellent = "excellent"
    good = "good"
    satisfactory = "satisfactory"
    needs_improvement = "needs_improvement"
    poor = "poor"


class ShiftAssignment(Base):
    __tablename__ = "shift_assignments"

    id: Mapped[int] = mapped_column(primary_key=True)
    org_id: Mapped[int] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), index=True
    )
    hr_code: Mapped[str | None] = mapped_column(Text(), nullable=True)

    # roster deletion detaches assignments rather than removing them
    roster_id: Mapped[int | None] = mapped_column(
        ForeignKey("shift_rosters.id", ondelete="SET NULL"), nullable=True, index=True
    )
    shift_id: Mapped[int] = mapped_column(ForeignKey("shifts.id"), index=True)
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"), index=True
    )
    date: Mapped[dt.date] = mapped_column(Date(), nullable=False, index=True)

    status: Mapped[AssignmentStatus] = mapped_column(
        SAEnum(AssignmentStatus, name="assignment_status"),
        default=AssignmentStatus.assigned,
        nullable=False,
        index=True,
    )
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    declined_at:  Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    decline_reason: Mapped[str | None] = mapped_column(Text(), nullable=True)

    swap_requested_with: Mapped[int | None] = mapped_column(
        ForeignKey("employees.id", ondelete="SET NULL"), nullable=True
    )
    swap_requested_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    swap_approved_by:  Mapped[int | None] = mapped_column(Integer, nullable=True)
    swap_approved_at:  Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    actual_start_time: Mapped[time | None] = mapped_column(Time(), nullable=True)
    actual_end_time:   Mapped[time | None] = mapped_column(Time(), nullable=True)
    actual_break_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    overtime_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    performance: Mapped[PerformanceRating | None] = mapped_column(
        SAEnum(PerformanceRating, name="assignment_performance"), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(Text(), nullable=True)
    meta: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, nullable=False, default=dict)

    created_by: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    # relationships
    shift = relationship("Shift", lazy="joined")
    roster = relationship("ShiftRoster", back_populates="assignments")
    employee = relationship("Employee", foreign_keys=[employee_id], lazy="joined")


# at most one active binding per (employee, shift, date)
Index(
    "uq_assignments_active_binding",
    ShiftAssignment.employee_id,
    ShiftAssignment.shift_id,
    ShiftAssignment.date,
    unique=True,
    postgresql_where=ShiftAssignment.status.in_(ACTIVE_STATUSES),
    sqlite_where=ShiftAssignment.status.in_(ACTIVE_STATUSES),
)
Index("ix_assignments_employee_date", ShiftAssignment.employee_id, ShiftAssignment.date)
Index("ix_assignments_org_date", ShiftAssignment.org_id, ShiftAssignment.date)
