from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.config_loader import settings
from core.database import get_db
from auth.services.auth_service import get_current_active_user
from authz.deps import require_manager

from .schema import SchedulingEventSchema
from . import service

events_router = APIRouter(prefix="/events", tags=["Events"])

# Polled by the external notifier; resume from the last id it processed
@events_router.get("", response_model=list[SchedulingEventSchema])
def list_events(
    after_id: int = Query(0, ge=0, description="Return events with id greater than this"),
    event_type: Optional[str] = Query(None, description="e.g. roster.published"),
    limit: int = Query(settings.EVENTS_PAGE_SIZE, ge=1, le=1000),
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    _mgr = Depends(require_manager),
):
    return service.get_events(
        db,
        org_id=user.org_id,
        after_id=after_id,
        event_type=event_type,
        limit=limit,
    )
