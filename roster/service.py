from __future__ import annotations
import logging
from datetime import date, datetime, timezone
from typing import Optional, List

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from assignment.models import ACTIVE_STATUSES, ShiftAssignment
from core.database import transaction
from core.errors import ConflictError, NotFoundError, ValidationError
from events.service import ROSTER_PUBLISHED, record_event

from .models import RosterStatus, ShiftRoster
from .schema import RosterCreate, RosterUpdate

logger = logging.getLogger(__name__)

S = RosterStatus

# statuses reachable through update_roster; published is entered only by publish_roster
ROSTER_TRANSITIONS: dict[RosterStatus, frozenset[RosterStatus]] = {
    S.draft: frozenset({S.pending_approval, S.archived}),
    S.pending_approval: frozenset({S.approved, S.draft, S.archived}),
    S.approved: frozenset({S.draft, S.archived}),
    S.published: frozenset({S.archived}),
    S.archived: frozenset(),
}


def is_locked(roster: ShiftRoster) -> bool:
    """A roster that has ever been published keeps its structure."""
    return roster.is_published or roster.published_at is not None


def check_roster_transition(current: RosterStatus, target: RosterStatus) -> None:
    if target == S.published:
        raise ConflictError("Rosters are published through the publish action")
    if target not in ROSTER_TRANSITIONS[RosterStatus(current)]:
        raise ConflictError(f"Cannot move roster from {RosterStatus(current).value} to {target.value}")


# LIST (org-scoped)
def get_rosters(
    db: Session,
    *,
    org_id: int,
    department_id: Optional[str] = None,
    status: Optional[RosterStatus] = None,
    is_published: Optional[bool] = None,
    hr_code: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[ShiftRoster]:
    stmt = select(ShiftRoster).where(ShiftRoster.org_id == org_id)
    if department_id:
        stmt = stmt.where(ShiftRoster.department_id == department_id)
    if status is not None:
        stmt = stmt.where(ShiftRoster.status == status)
    if is_published is not None:
        stmt = stmt.where(ShiftRoster.is_published == is_published)
    if hr_code:
        stmt = stmt.where(ShiftRoster.hr_code == hr_code)
    # overlap: roster [start, end] intersects the query range
    if start_date is not None:
        stmt = stmt.where(ShiftRoster.end_date >= start_date)
    if end_date is not None:
        stmt = stmt.where(ShiftRoster.start_date <= end_date)
    stmt = stmt.order_by(ShiftRoster.start_date.desc(), ShiftRoster.id.desc())
    return list(db.scalars(stmt))


def get_roster_for_org(db: Session, roster_id: int, org_id: int) -> ShiftRoster | None:
    stmt = select(ShiftRoster).where(ShiftRoster.id == roster_id, ShiftRoster.org_id == org_id)
    return db.scalars(stmt).first()


def create_roster(db: Session, dto: RosterCreate) -> ShiftRoster:
    if dto.end_date < dto.start_date:
        raise ValidationError("end_date must be on or after start_date")

    row = ShiftRoster(**dto.model_dump(), status=S.draft, is_published=False)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("roster_created", extra={"roster_id": row.id, "org_id": row.org_id, "actor_id": row.created_by})
    return row


def _load_for_update(db: Session, roster_id: int, org_id: int) -> ShiftRoster:
    # publish, update and delete serialize on the roster row
    stmt = (
        select(ShiftRoster)
        .where(ShiftRoster.id == roster_id, ShiftRoster.org_id == org_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    row = db.scalars(stmt).first()
    if not row:
        raise NotFoundError("Roster not found")
    return row


def update_roster(
    db: Session,
    roster_id: int,
    patch: RosterUpdate,
    *,
    org_id: int,
    actor_id: int,
) -> ShiftRoster:
    data = patch.model_dump(exclude_unset=True)
    target = data.pop("status", None)

    for k in ("name", "start_date", "end_date", "rotation_pattern", "auto_assign_enabled",
              "notify_on_publish", "notify_on_change", "reminder_days", "meta"):
        if k in data and data[k] is None:
            raise ValidationError(f"{k} cannot be null")

    with transaction(db, conflict_detail="Roster was modified concurrently"):
        row = _load_for_update(db, roster_id, org_id)
        if data and is_locked(row):
            raise ConflictError("Published rosters only accept status changes")

        start = data.get("start_date", row.start_date)
        end = data.get("end_date", row.end_date)
        if end < start:
            raise ValidationError("end_date must be on or after start_date")

        previous = row.status
        if target is not None and target != row.status:
            check_roster_transition(row.status, target)
            row.status = target
            row.is_published = False
            if target == S.approved:
                row.approved_by = actor_id
                row.approved_at = datetime.now(timezone.utc)

        for k, v in data.items():
            setattr(row, k, v)
        row.updated_by = actor_id

    db.refresh(row)
    logger.info(
        "roster_updated",
        extra={
            "roster_id": row.id,
            "actor_id": actor_id,
            "fields": sorted(data),
            "from_status": RosterStatus(previous).value,
            "to_status": RosterStatus(row.status).value,
        },
    )
    return row


def publish_roster(db: Session, roster_id: int, *, org_id: int, actor_id: int) -> ShiftRoster:
    """Publish a roster and stage the ``roster.published`` event.

    Publishing twice is refused rather than repeated, so the event is
    staged exactly once per roster.
    """
    with transaction(db, conflict_detail="Roster was modified concurrently"):
        row = _load_for_update(db, roster_id, org_id)
        if row.is_published or row.status == S.published:
            raise ConflictError("Roster is already published")
        if row.status == S.archived:
            raise ConflictError("Cannot publish an archived roster")

        now = datetime.now(timezone.utc)
        row.status = S.published
        row.is_published = True
        row.published_at = now
        row.published_by = actor_id
        row.updated_by = actor_id

        active = db.scalars(
            select(ShiftAssignment)
            .where(ShiftAssignment.roster_id == row.id, ShiftAssignment.status.in_(ACTIVE_STATUSES))
            .order_by(ShiftAssignment.date, ShiftAssignment.employee_id)
        ).all()
        record_event(
            db,
            org_id=org_id,
            event_type=ROSTER_PUBLISHED,
            aggregate_id=row.id,
            actor_id=actor_id,
            payload={
                "roster_id": row.id,
                "name": row.name,
                "start_date": row.start_date.isoformat(),
                "end_date": row.end_date.isoformat(),
                "department_id": row.department_id,
                "notify_on_publish": row.notify_on_publish,
                "notify_on_change": row.notify_on_change,
                "reminder_days": row.reminder_days,
                "assignments": [
                    {
                        "assignment_id": a.id,
                        "employee_id": a.employee_id,
                        "shift_id": a.shift_id,
                        "date": a.date.isoformat(),
                        "status": a.status.value,
                    }
                    for a in active
                ],
            },
        )

    db.refresh(row)
    logger.info(
        "roster_published",
        extra={"roster_id": row.id, "actor_id": actor_id, "assignment_count": len(active)},
    )
    return row


def delete_roster(db: Session, roster_id: int, *, org_id: int) -> None:
    with transaction(db, conflict_detail="Roster was modified concurrently"):
        row = _load_for_update(db, roster_id, org_id)
        if is_locked(row):
            raise ConflictError("Cannot delete a published roster")

        # assignments survive with their roster reference cleared
        detached = db.execute(
            update(ShiftAssignment)
            .where(ShiftAssignment.roster_id == roster_id)
            .values(roster_id=None)
            .execution_options(synchronize_session="fetch")
        ).rowcount
        db.delete(row)

    logger.info("roster_deleted", extra={"roster_id": roster_id, "org_id": org_id, "detached": detached})
