from __future__ import annotations
import logging
from datetime import date, timedelta
from typing import Optional, List

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from assignment.models import ShiftAssignment
from core.config_loader import settings
from core.errors import ValidationError
from employee.service import get_direct_report_ids

logger = logging.getLogger(__name__)


def resolve_window(
    start_date: Optional[date],
    end_date: Optional[date],
    *,
    today: Optional[date] = None,
) -> tuple[date, date]:
    """Fill in the default personal-schedule window and check its order."""
    start = start_date or today or date.today()
    end = end_date or start + timedelta(days=settings.SCHEDULE_DEFAULT_WINDOW_DAYS)
    if end < start:
        raise ValidationError("end_date must be on or after start_date")
    return start, end


def employee_schedule(
    db: Session,
    *,
    org_id: int,
    employee_id: int,
    start_date: date,
    end_date: date,
) -> List[ShiftAssignment]:
    if end_date < start_date:
        raise ValidationError("end_date must be on or after start_date")
    stmt = (
        select(ShiftAssignment)
        .where(
            ShiftAssignment.org_id == org_id,
            ShiftAssignment.employee_id == employee_id,
            ShiftAssignment.date >= start_date,
            ShiftAssignment.date <= end_date,
        )
        .options(selectinload(ShiftAssignment.roster))
        .order_by(ShiftAssignment.date.asc(), ShiftAssignment.id.asc())
    )
    return list(db.scalars(stmt))


def team_schedule(
    db: Session,
    *,
    org_id: int,
    manager_id: int,
    on_date: date,
) -> tuple[List[int], List[ShiftAssignment]]:
    """Assignments of the manager's direct reports on one day, by employee."""
    report_ids = get_direct_report_ids(db, manager_id=manager_id, org_id=org_id)
    if not report_ids:
        logger.info("team_schedule_no_reports", extra={"manager_id": manager_id, "org_id": org_id})
        return [], []

    stmt = (
        select(ShiftAssignment)
        .where(
            ShiftAssignment.org_id == org_id,
            ShiftAssignment.employee_id.in_(report_ids),
            ShiftAssignment.date == on_date,
        )
        .options(selectinload(ShiftAssignment.roster))
        .order_by(ShiftAssignment.employee_id.asc(), ShiftAssignment.id.asc())
    )
    return report_ids, list(db.scalars(stmt))
