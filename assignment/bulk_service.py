from __future__ import annotations
import logging
from typing import Sequence

from sqlalchemy.orm import Session

from core.errors import SchedulingError

from .models import ShiftAssignment
from .schema import AssignmentCreate, BulkAssignFailure, BulkAssignItem
from .service import create_assignment

logger = logging.getLogger(__name__)


def bulk_assign(
    db: Session,
    items: Sequence[BulkAssignItem],
    *,
    org_id: int,
    actor_id: int,
) -> tuple[list[ShiftAssignment], list[BulkAssignFailure]]:
    """Create each item independently.

    Every item is its own transaction: a rejected item is reported in the
    failure list and never undoes the items already stored.
    """
    successful: list[ShiftAssignment] = []
    failed: list[BulkAssignFailure] = []

    for index, item in enumerate(items):
        dto = AssignmentCreate(
            org_id=org_id,
            created_by=actor_id,
            shift_id=item.shift_id,
            employee_id=item.employee_id,
            date=item.date,
            roster_id=item.roster_id,
            notes=item.notes,
        )
        try:
            successful.append(create_assignment(db, dto))
        except SchedulingError as exc:
            failed.append(
                BulkAssignFailure(
                    index=index,
                    shift_id=item.shift_id,
                    employee_id=item.employee_id,
                    date=item.date,
                    roster_id=item.roster_id,
                    code=exc.code,
                    error=exc.detail,
                )
            )

    logger.info(
        "bulk_assign_finished",
        extra={
            "org_id": org_id,
            "actor_id": actor_id,
            "total": len(items),
            "total_success": len(successful),
            "total_failed": len(failed),
        },
    )
    return successful, failed
