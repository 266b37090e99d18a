from __future__ import annotations
import logging
from datetime import date, datetime, timezone
from typing import Optional, List

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from core.database import transaction
from core.errors import ConflictError, NotFoundError, ValidationError
from employee.service import get_employee_for_org
from events.service import (
    ASSIGNMENT_CREATED,
    ASSIGNMENT_SWAP_APPROVED,
    ASSIGNMENT_SWAP_REQUESTED,
    record_event,
)
from roster.models import RosterStatus, ShiftRoster
from roster.service import get_roster_for_org
from shift.models import Shift
from shift.service import get_shift_for_org

from .models import ACTIVE_STATUSES, AssignmentStatus, ShiftAssignment
from .schema import AssignmentCreate, AssignmentUpdate
from .state_machine import ActorRole, AssignmentAction, check_transition

logger = logging.getLogger(__name__)

DUPLICATE_BINDING = "Employee already has this shift assigned on this date"

# correction fields that may be cleared; overtime_minutes always holds a number
_NULLABLE_CORRECTIONS = {"actual_start_time", "actual_end_time", "actual_break_minutes", "performance", "notes"}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def shift_weekday(d: date) -> int:
    """Weekday in the shift catalog's numbering: 0 = Sunday .. 6 = Saturday."""
    return (d.weekday() + 1) % 7


# LIST (org-scoped)
def get_assignments(
    db: Session,
    *,
    org_id: int,
    employee_id: Optional[int] = None,
    shift_id: Optional[int] = None,
    roster_id: Optional[int] = None,
    status: Optional[AssignmentStatus] = None,
    hr_code: Optional[str] = None,
    on_date: Optional[date] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[ShiftAssignment]:
    stmt = select(ShiftAssignment).where(ShiftAssignment.org_id == org_id)
    if employee_id is not None:
        stmt = stmt.where(ShiftAssignment.employee_id == employee_id)
    if shift_id is not None:
        stmt = stmt.where(ShiftAssignment.shift_id == shift_id)
    if roster_id is not None:
        stmt = stmt.where(ShiftAssignment.roster_id == roster_id)
    if status is not None:
        stmt = stmt.where(ShiftAssignment.status == status)
    if hr_code:
        stmt = stmt.where(ShiftAssignment.hr_code == hr_code)
    if on_date is not None:
        stmt = stmt.where(ShiftAssignment.date == on_date)
    else:
        if start_date is not None:
            stmt = stmt.where(ShiftAssignment.date >= start_date)
        if end_date is not None:
            stmt = stmt.where(ShiftAssignment.date <= end_date)
    stmt = stmt.order_by(
        ShiftAssignment.date.asc(), ShiftAssignment.created_at.desc(), ShiftAssignment.id.desc()
    )
    return list(db.scalars(stmt).unique())


# Single (org-scoped)
def get_assignment_for_org(db: Session, assignment_id: int, org_id: int) -> ShiftAssignment | None:
    stmt = select(ShiftAssignment).where(
        ShiftAssignment.id == assignment_id, ShiftAssignment.org_id == org_id
    )
    return db.scalars(stmt).first()


def _load_for_update(db: Session, assignment_id: int, org_id: int) -> ShiftAssignment:
    # row lock so two transitions on the same assignment serialize (no-op on SQLite)
    stmt = (
        select(ShiftAssignment)
        .where(ShiftAssignment.id == assignment_id, ShiftAssignment.org_id == org_id)
        .with_for_update(of=ShiftAssignment)
        .execution_options(populate_existing=True)
    )
    row = db.scalars(stmt).first()
    if not row:
        raise NotFoundError("Assignment not found")
    return row


def _find_active_binding(db: Session, *, employee_id: int, shift_id: int, on_date: date) -> ShiftAssignment | None:
    stmt = select(ShiftAssignment).where(
        ShiftAssignment.employee_id == employee_id,
        ShiftAssignment.shift_id == shift_id,
        ShiftAssignment.date == on_date,
        ShiftAssignment.status.in_(ACTIVE_STATUSES),
    )
    return db.scalars(stmt).first()


def _check_binding(
    db: Session,
    *,
    org_id: int,
    shift: Shift,
    employee_id: int,
    on_date: date,
    roster: Optional[ShiftRoster] = None,
) -> None:
    """Rules every new employee/shift/date binding must pass."""
    employee = get_employee_for_org(db, employee_id, org_id)
    if not employee:
        raise NotFoundError("Employee not found")
    if not employee.is_active:
        raise ConflictError("Employee is inactive")

    if not shift.is_active:
        raise ConflictError("Shift is inactive")

    if roster is not None:
        if roster.status == RosterStatus.archived:
            raise ConflictError("Cannot add assignments to an archived roster")
        if not roster.start_date <= on_date <= roster.end_date:
            raise ValidationError("Assignment date must fall within the roster's date range")

    if _find_active_binding(db, employee_id=employee_id, shift_id=shift.id, on_date=on_date):
        raise ConflictError(DUPLICATE_BINDING)


def shift_warnings(db: Session, *, shift: Shift, on_date: date) -> list[str]:
    """Catalog hints a scheduler may override; they never block an assignment."""
    warnings = []
    if shift_weekday(on_date) not in (shift.applicable_days or []):
        warnings.append(f"Shift '{shift.name}' does not normally apply on {on_date:%A}s")
    if shift.maximum_staff is not None:
        staffed = db.scalar(
            select(func.count())
            .select_from(ShiftAssignment)
            .where(
                ShiftAssignment.shift_id == shift.id,
                ShiftAssignment.date == on_date,
                ShiftAssignment.status.in_(ACTIVE_STATUSES),
            )
        )
        if staffed > shift.maximum_staff:
            warnings.append(f"Shift '{shift.name}' is over its maximum staffing of {shift.maximum_staff}")
    return warnings


def create_assignment(db: Session, dto: AssignmentCreate) -> ShiftAssignment:
    # duplicate check and insert share one transaction; the partial unique
    # index catches a concurrent insert that slips past the check
    with transaction(db, conflict_detail=DUPLICATE_BINDING):
        shift = get_shift_for_org(db, dto.shift_id, dto.org_id)
        if not shift:
            raise NotFoundError("Shift not found")

        roster = None
        if dto.roster_id is not None:
            roster = get_roster_for_org(db, dto.roster_id, dto.org_id)
            if not roster:
                raise NotFoundError("Roster not found")

        _check_binding(
            db, org_id=dto.org_id, shift=shift, employee_id=dto.employee_id, on_date=dto.date, roster=roster
        )

        row = ShiftAssignment(
            org_id=dto.org_id,
            hr_code=dto.hr_code or (roster.hr_code if roster else None) or shift.hr_code,
            roster_id=dto.roster_id,
            shift_id=dto.shift_id,
            employee_id=dto.employee_id,
            date=dto.date,
            status=AssignmentStatus.assigned,
            notes=dto.notes,
            created_by=dto.created_by,
        )
        db.add(row)
        db.flush()

        warnings = shift_warnings(db, shift=shift, on_date=row.date)
        record_event(
            db,
            org_id=row.org_id,
            event_type=ASSIGNMENT_CREATED,
            aggregate_id=row.id,
            actor_id=dto.created_by,
            payload={
                "assignment_id": row.id,
                "employee_id": row.employee_id,
                "shift_id": row.shift_id,
                "date": row.date.isoformat(),
                "roster_id": row.roster_id,
            },
        )

    db.refresh(row)
    if warnings:
        logger.warning(
            "assignment_shift_warnings",
            extra={"assignment_id": row.id, "shift_id": row.shift_id, "warnings": warnings},
        )
    logger.info(
        "assignment_created",
        extra={
            "assignment_id": row.id,
            "employee_id": row.employee_id,
            "shift_id": row.shift_id,
            "date": row.date.isoformat(),
            "actor_id": dto.created_by,
        },
    )
    return row


def _actor_role(row: ShiftAssignment, actor_id: int) -> ActorRole:
    return ActorRole.owner if row.employee_id == actor_id else ActorRole.scheduler


def _log_transition(row: ShiftAssignment, previous: AssignmentStatus, action: AssignmentAction, actor_id: int) -> None:
    logger.info(
        "assignment_transition",
        extra={
            "assignment_id": row.id,
            "action": action.value,
            "from_status": AssignmentStatus(previous).value,
            "to_status": AssignmentStatus(row.status).value,
            "actor_id": actor_id,
        },
    )


def confirm_assignment(db: Session, assignment_id: int, *, org_id: int, employee_id: int) -> ShiftAssignment:
    with transaction(db, conflict_detail="Assignment was modified concurrently"):
        row = _load_for_update(db, assignment_id, org_id)
        previous = row.status
        row.status = check_transition(row.status, AssignmentAction.confirm, _actor_role(row, employee_id))
        row.confirmed_at = _now()
        row.updated_by = employee_id

    db.refresh(row)
    _log_transition(row, previous, AssignmentAction.confirm, employee_id)
    return row


def decline_assignment(
    db: Session, assignment_id: int, *, org_id: int, employee_id: int, reason: str
) -> ShiftAssignment:
    with transaction(db, conflict_detail="Assignment was modified concurrently"):
        row = _load_for_update(db, assignment_id, org_id)
        previous = row.status
        nxt = check_transition(row.status, AssignmentAction.decline, _actor_role(row, employee_id))
        if not reason or not reason.strip():
            raise ValidationError("Decline reason is required")
        row.status = nxt
        row.declined_at = _now()
        row.decline_reason = reason.strip()
        row.updated_by = employee_id

    db.refresh(row)
    _log_transition(row, previous, AssignmentAction.decline, employee_id)
    return row


def request_swap(
    db: Session,
    assignment_id: int,
    *,
    org_id: int,
    employee_id: int,
    target_employee_id: int,
) -> ShiftAssignment:
    with transaction(db, conflict_detail="Assignment was modified concurrently"):
        row = _load_for_update(db, assignment_id, org_id)
        previous = row.status
        nxt = check_transition(row.status, AssignmentAction.request_swap, _actor_role(row, employee_id))
        if target_employee_id == row.employee_id:
            raise ValidationError("Cannot swap a shift with yourself")
        if not get_employee_for_org(db, target_employee_id, org_id):
            raise NotFoundError("Employee not found")

        row.status = nxt
        row.swap_requested_with = target_employee_id
        row.swap_requested_at = _now()
        row.updated_by = employee_id

        record_event(
            db,
            org_id=org_id,
            event_type=ASSIGNMENT_SWAP_REQUESTED,
            aggregate_id=row.id,
            actor_id=employee_id,
            payload={
                "assignment_id": row.id,
                "employee_id": row.employee_id,
                "target_employee_id": target_employee_id,
                "shift_id": row.shift_id,
                "date": row.date.isoformat(),
                "roster_id": row.roster_id,
            },
        )

    db.refresh(row)
    _log_transition(row, previous, AssignmentAction.request_swap, employee_id)
    return row


def approve_swap(
    db: Session, assignment_id: int, *, org_id: int, approver_id: int
) -> tuple[ShiftAssignment, ShiftAssignment]:
    """Hand the assignment to the swap target.

    The replacement assignment, the cancellation of the original and the
    ``assignment.swap_approved`` event are one transaction: if any part
    fails, none of it is stored.
    """
    with transaction(db, conflict_detail=DUPLICATE_BINDING):
        row = _load_for_update(db, assignment_id, org_id)
        previous = row.status
        nxt = check_transition(row.status, AssignmentAction.approve_swap, ActorRole.approver)
        if row.swap_requested_with is None:
            raise ConflictError("No swap target recorded for this assignment")

        shift = db.get(Shift, row.shift_id)
        _check_binding(
            db,
            org_id=org_id,
            shift=shift,
            employee_id=row.swap_requested_with,
            on_date=row.date,
        )

        now = _now()
        replacement = ShiftAssignment(
            org_id=row.org_id,
            hr_code=row.hr_code,
            roster_id=row.roster_id,
            shift_id=row.shift_id,
            employee_id=row.swap_requested_with,
            date=row.date,
            status=AssignmentStatus.assigned,
            meta={"swapped_from_assignment_id": row.id},
            created_by=approver_id,
        )
        db.add(replacement)

        row.status = nxt
        row.swap_approved_by = approver_id
        row.swap_approved_at = now
        row.cancelled_at = now
        row.updated_by = approver_id
        db.flush()

        record_event(
            db,
            org_id=org_id,
            event_type=ASSIGNMENT_SWAP_APPROVED,
            aggregate_id=row.id,
            actor_id=approver_id,
            payload={
                "assignment_id": row.id,
                "replacement_assignment_id": replacement.id,
                "from_employee_id": row.employee_id,
                "to_employee_id": replacement.employee_id,
                "shift_id": row.shift_id,
                "date": row.date.isoformat(),
                "roster_id": row.roster_id,
                "approver_id": approver_id,
            },
        )

    db.refresh(row)
    db.refresh(replacement)
    _log_transition(row, previous, AssignmentAction.approve_swap, approver_id)
    logger.info(
        "assignment_swap_approved",
        extra={"assignment_id": row.id, "replacement_id": replacement.id, "actor_id": approver_id},
    )
    return row, replacement


def cancel_assignment(db: Session, assignment_id: int, *, org_id: int, actor_id: int) -> ShiftAssignment:
    with transaction(db, conflict_detail="Assignment was modified concurrently"):
        row = _load_for_update(db, assignment_id, org_id)
        previous = row.status
        row.status = check_transition(row.status, AssignmentAction.cancel, ActorRole.scheduler)
        row.cancelled_at = _now()
        row.updated_by = actor_id

    db.refresh(row)
    _log_transition(row, previous, AssignmentAction.cancel, actor_id)
    return row


def update_assignment(
    db: Session,
    assignment_id: int,
    patch: AssignmentUpdate,
    *,
    org_id: int,
    actor_id: int,
) -> ShiftAssignment:
    # AssignmentUpdate only carries correction fields; employee/shift/date stay as created
    data = patch.model_dump(exclude_unset=True)
    for k, v in data.items():
        if v is None and k not in _NULLABLE_CORRECTIONS:
            raise ValidationError(f"{k} cannot be null")

    with transaction(db, conflict_detail="Assignment was modified concurrently"):
        row = _load_for_update(db, assignment_id, org_id)
        for k, v in data.items():
            setattr(row, k, v)
        row.updated_by = actor_id

    db.refresh(row)
    logger.info("assignment_updated", extra={"assignment_id": row.id, "actor_id": actor_id, "fields": sorted(data)})
    return row


def delete_assignment(db: Session, assignment_id: int, *, org_id: int) -> None:
    with transaction(db, conflict_detail="Assignment was modified concurrently"):
        row = _load_for_update(db, assignment_id, org_id)
        db.delete(row)
    logger.info("assignment_deleted", extra={"assignment_id": assignment_id, "org_id": org_id})
