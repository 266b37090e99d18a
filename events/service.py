from __future__ import annotations
import logging
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import SchedulingEvent

logger = logging.getLogger(__name__)

ROSTER_PUBLISHED = "roster.published"
ASSIGNMENT_CREATED = "assignment.created"
ASSIGNMENT_SWAP_REQUESTED = "assignment.swap_requested"
ASSIGNMENT_SWAP_APPROVED = "assignment.swap_approved"

EVENT_TYPES = (
    ROSTER_PUBLISHED,
    ASSIGNMENT_CREATED,
    ASSIGNMENT_SWAP_REQUESTED,
    ASSIGNMENT_SWAP_APPROVED,
)


def record_event(
    db: Session,
    *,
    org_id: int,
    event_type: str,
    aggregate_id: int,
    payload: dict[str, Any],
    actor_id: Optional[int] = None,
) -> SchedulingEvent:
    """Stage an event in the caller's transaction; it becomes visible when the caller commits."""
    if event_type not in EVENT_TYPES:
        raise ValueError(f"Unknown scheduling event type: {event_type}")
    event = SchedulingEvent(
        org_id=org_id,
        event_type=event_type,
        aggregate_id=aggregate_id,
        actor_id=actor_id,
        payload=payload,
    )
    db.add(event)
    logger.info(
        "scheduling_event_staged",
        extra={"event_type": event_type, "aggregate_id": aggregate_id, "org_id": org_id, "actor_id": actor_id},
    )
    return event


def get_events(
    db: Session,
    *,
    org_id: int,
    after_id: int = 0,
    event_type: Optional[str] = None,
    limit: int = 100,
) -> list[SchedulingEvent]:
    stmt = select(SchedulingEvent).where(
        SchedulingEvent.org_id == org_id, SchedulingEvent.id > after_id
    )
    if event_type:
        stmt = stmt.where(SchedulingEvent.event_type == event_type)
    stmt = stmt.order_by(SchedulingEvent.id).limit(limit)
    return list(db.scalars(stmt))
