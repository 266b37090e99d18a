from __future__ import annotations
from datetime import date, datetime
from enum import Enum
from typing import Any
from sqlalchemy import (
    JSON, Boolean, CheckConstraint, Date, DateTime, Enum as SAEnum, ForeignKey, Index, Integer, String, Text, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from core.database import Base


class RosterStatus(str, Enum):
    draft = "draft"
    pending_approval = "pending_approval"
    approved = "approved"
    published = "published"
    archived = "archived"


class RotationPattern(str, Enum):
    weekly = "weekly"
    biweekly = "biweekly"
    monthly = "monthly"
    custom = "custom"


class ShiftRoster(Base):
    __tablename__ = "shift_rosters"

    id: Mapped[int] = mapped_column(primary_key=True)
    org_id: Mapped[int] = mapped_column(ForeignKey("organizations.id", ondelete="CASCADE"), index=True)
    department_id: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    hr_code: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text(), nullable=True)

    start_date: Mapped[date] = mapped_column(Date(), nullable=False)
    end_date:   Mapped[date] = mapped_column(Date(), nullable=False)

    status: Mapped[RosterStatus] = mapped_column(
        SAEnum(RosterStatus, name="roster_status"),
        default=RosterStatus.draft,
        nullable=False,
        index=True,
    )
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    published_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    approved_by:  Mapped[int | None] = mapped_column(Integer, nullable=True)
    approved_at:  Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    auto_assign_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    rotation_pattern: Mapped[RotationPattern] = mapped_column(
        SAEnum(RotationPattern, name="roster_rotation_pattern"),
        default=RotationPattern.weekly,
        nullable=False,
    )
    notify_on_publish: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    notify_on_change:  Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    reminder_days:     Mapped[int]  = mapped_column(Integer, nullable=False, default=1)

    meta: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, nullable=False, default=dict)

    created_by: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    assignments = relationship(
        "ShiftAssignment",
        back_populates="roster",
        passive_deletes=True,
        order_by="ShiftAssignment.date",
    )

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="ck_rosters_date_range"),
        CheckConstraint("reminder_days BETWEEN 0 AND 7", name="ck_rosters_reminder_days"),
        Index("ix_rosters_dates", "start_date", "end_date"),
    )
