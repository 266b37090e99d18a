from __future__ import annotations
from datetime import datetime, time
from typing import Any
from sqlalchemy import (
    JSON, Boolean, CheckConstraint, DateTime, Float, ForeignKey, Index, Integer, String, Text, Time, func,
)
from sqlalchemy.orm import Mapped, mapped_column
from core.database import Base

DEFAULT_SHIFT_COLOR = "#2196F3"
# 0 = Sunday .. 6 = Saturday
DEFAULT_APPLICABLE_DAYS = [1, 2, 3, 4, 5]


class Shift(Base):
    """Reusable shift template owned by an organization."""

    __tablename__ = "shifts"

    id: Mapped[int] = mapped_column(primary_key=True)

    org_id: Mapped[int] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), index=True
    )
    hr_code: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text(), nullable=True)

    start_time: Mapped[time] = mapped_column(Time(), nullable=False)
    end_time: Mapped[time] = mapped_column(Time(), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    break_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_night_shift: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    color: Mapped[str] = mapped_column(String(9), nullable=False, default=DEFAULT_SHIFT_COLOR)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    applicable_days: Mapped[list[int]] = mapped_column(
        JSON, nullable=False, default=lambda: list(DEFAULT_APPLICABLE_DAYS)
    )

    overtime_allowed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    overtime_rate: Mapped[float] = mapped_column(Float, nullable=False, default=1.5)
    grace_period_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=15)

    minimum_staff: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    maximum_staff: Mapped[int | None] = mapped_column(Integer, nullable=True)

    meta: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, nullable=False, default=dict)

    created_by: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )
    # soft delete keeps historical assignments pointing at a real row
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("duration_minutes BETWEEN 1 AND 1440", name="ck_shifts_duration"),
        CheckConstraint("break_minutes BETWEEN 0 AND 480", name="ck_shifts_break"),
        CheckConstraint("overtime_rate BETWEEN 1.0 AND 3.0", name="ck_shifts_overtime_rate"),
        CheckConstraint("minimum_staff >= 1", name="ck_shifts_min_staff"),
        Index("ix_shifts_org_active", "org_id", "is_active"),
    )
