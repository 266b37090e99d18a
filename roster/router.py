from __future__ import annotations
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from core.database import get_db
from auth.services.auth_service import get_current_active_user
from authz.deps import require_admin, require_manager

from .models import RosterStatus
from .schema import RosterSchema, RosterDetailSchema, RosterCreatePayload, RosterCreate, RosterUpdate
from . import service

roster_router = APIRouter(prefix="/rosters", tags=["Rosters"])

# List (scoped to caller's org)
@roster_router.get("", response_model=list[RosterSchema])
def list_rosters(
    department_id: Optional[str] = Query(None),
    status: Optional[RosterStatus] = Query(None),
    is_published: Optional[bool] = Query(None),
    hr_code: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None, description="Rosters ending on or after this day"),
    end_date: Optional[date] = Query(None, description="Rosters starting on or before this day"),
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
):
    return service.get_rosters(
        db,
        org_id=user.org_id,
        department_id=department_id,
        status=status,
        is_published=is_published,
        hr_code=hr_code,
        start_date=start_date,
        end_date=end_date,
    )

# Get by id with assignments (scoped)
@roster_router.get("/{roster_id}", response_model=RosterDetailSchema)
def get_roster(
    roster_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
):
    obj = service.get_roster_for_org(db, roster_id, user.org_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Roster not found")
    return obj

# Create (manager only)
@roster_router.post("", response_model=RosterSchema, status_code=status.HTTP_201_CREATED)
def create_roster(
    payload: RosterCreatePayload,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    _mgr = Depends(require_manager),
):
    dto = RosterCreate(org_id=user.org_id, created_by=user.id, **payload.model_dump())
    return service.create_roster(db, dto)

# Update (manager only); published rosters take status changes only
@roster_router.patch("/{roster_id}", response_model=RosterSchema)
def update_roster(
    roster_id: int,
    payload: RosterUpdate,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    _mgr = Depends(require_manager),
):
    return service.update_roster(db, roster_id, payload, org_id=user.org_id, actor_id=user.id)

# Publish (HR/admin only)
@roster_router.post("/{roster_id}/publish", response_model=RosterSchema)
def publish_roster(
    roster_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    _admin = Depends(require_admin),
):
    return service.publish_roster(db, roster_id, org_id=user.org_id, actor_id=user.id)

# Delete (HR/admin only); unpublished rosters only
@roster_router.delete("/{roster_id}")
def delete_roster(
    roster_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    _admin = Depends(require_admin),
):
    service.delete_roster(db, roster_id, org_id=user.org_id)
    return {"message": "Roster deleted"}
