# shift/service.py
from __future__ import annotations
import logging
from datetime import date, datetime, time, timezone
from typing import Any, Optional
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from core.errors import ConflictError, NotFoundError, ValidationError
from assignment.models import ShiftAssignment
from .models import Shift
from .schemas import ShiftCreate, ShiftUpdate

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60

# columns a partial update may set back to NULL
_NULLABLE_FIELDS = {"hr_code", "description", "maximum_staff"}
_TIMING_FIELDS = (
    "start_time", "end_time", "duration_minutes", "break_minutes", "is_night_shift",
    "overtime_allowed", "overtime_rate", "minimum_staff", "maximum_staff",
)


def window_minutes(start: time, end: time, is_night_shift: bool) -> int:
    """Length of the start..end window; a night shift may wrap past midnight."""
    span = (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)
    if span > 0:
        return span
    if not is_night_shift:
        raise ValidationError("end_time must be after start_time unless the shift is a night shift")
    return span + MINUTES_PER_DAY


def check_shift_rules(values: dict[str, Any]) -> dict[str, Any]:
    """Validate the timing/staffing fields together and fill in a derived duration."""
    span = window_minutes(values["start_time"], values["end_time"], values["is_night_shift"])

    duration = values.get("duration_minutes")
    if duration is None:
        values["duration_minutes"] = span
    elif duration != span:
        raise ValidationError(
            f"duration_minutes ({duration}) does not match the "
            f"{values['start_time']:%H:%M}-{values['end_time']:%H:%M} window ({span} minutes)"
        )

    if values["break_minutes"] >= values["duration_minutes"]:
        raise ValidationError("break_minutes must be shorter than the shift")

    if not 1.0 <= float(values["overtime_rate"]) <= 3.0:
        raise ValidationError("overtime_rate must be between 1.0 and 3.0")

    maximum = values.get("maximum_staff")
    if maximum is not None and maximum < values["minimum_staff"]:
        raise ValidationError("maximum_staff must be greater than or equal to minimum_staff")
    return values


def get_shifts(
    db: Session,
    *,
    org_id: int,
    is_active: Optional[bool] = None,
    is_night_shift: Optional[bool] = None,
    hr_code: Optional[str] = None,
) -> list[Shift]:
    stmt = select(Shift).where(Shift.org_id == org_id, Shift.deleted_at.is_(None))
    if is_active is not None:
        stmt = stmt.where(Shift.is_active == is_active)
    if is_night_shift is not None:
        stmt = stmt.where(Shift.is_night_shift == is_night_shift)
    if hr_code:
        stmt = stmt.where(Shift.hr_code == hr_code)
    stmt = stmt.order_by(Shift.created_at.desc(), Shift.id.desc())
    return list(db.scalars(stmt))


def get_shift_for_org(db: Session, shift_id: int, org_id: int) -> Optional[Shift]:
    stmt = select(Shift).where(
        Shift.id == shift_id, Shift.org_id == org_id, Shift.deleted_at.is_(None)
    )
    return db.scalars(stmt).first()


def create_shift(db: Session, shift: ShiftCreate) -> Shift:
    values = check_shift_rules(shift.model_dump())
    row = Shift(**values)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("shift_created", extra={"shift_id": row.id, "org_id": row.org_id, "actor_id": row.created_by})
    return row


def update_shift(db: Session, shift_id: int, patch: ShiftUpdate, *, org_id: int, actor_id: int) -> Shift:
    row = get_shift_for_org(db, shift_id, org_id)
    if not row:
        raise NotFoundError("Shift not found")

    data = patch.model_dump(exclude_unset=True)
    for k, v in data.items():
        if v is None and k not in _NULLABLE_FIELDS:
            raise ValidationError(f"{k} cannot be null")

    merged = {k: getattr(row, k) for k in _TIMING_FIELDS}
    merged.update({k: v for k, v in data.items() if k in _TIMING_FIELDS})
    window_changed = any(k in data for k in ("start_time", "end_time", "is_night_shift"))
    if window_changed and "duration_minutes" not in data:
        merged["duration_minutes"] = None
    check_shift_rules(merged)

    # existing assignments keep their recorded actual times
    for k, v in data.items():
        setattr(row, k, v)
    row.duration_minutes = merged["duration_minutes"]
    row.updated_by = actor_id

    db.commit()
    db.refresh(row)
    logger.info("shift_updated", extra={"shift_id": row.id, "actor_id": actor_id, "fields": sorted(data)})
    return row


def delete_shift(db: Session, shift_id: int, *, org_id: int, today: Optional[date] = None) -> None:
    row = get_shift_for_org(db, shift_id, org_id)
    if not row:
        raise NotFoundError("Shift not found")

    today = today or date.today()
    upcoming = db.scalar(
        select(func.count())
        .select_from(ShiftAssignment)
        .where(ShiftAssignment.shift_id == shift_id, ShiftAssignment.date >= today)
    )
    if upcoming:
        raise ConflictError("Cannot delete shift with upcoming assignments")

    row.deleted_at = datetime.now(timezone.utc)
    db.commit()
    logger.info("shift_deleted", extra={"shift_id": shift_id, "org_id": org_id})
