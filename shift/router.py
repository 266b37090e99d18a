from typing import Optional
from fastapi import APIRouter, Depends, Query, status, HTTPException
from sqlalchemy.orm import Session
from core.database import get_db
from auth.services.auth_service import get_current_active_user
from authz.deps import require_admin
from .schemas import ShiftSchema, ShiftCreatePayload, ShiftCreate, ShiftUpdate
from shift import service

shift_router = APIRouter(prefix="/shifts", tags=["Shifts"])

@shift_router.get("", response_model=list[ShiftSchema])
def list_shifts(
    is_active: Optional[bool] = Query(None),
    is_night_shift: Optional[bool] = Query(None),
    hr_code: Optional[str] = Query(None, description="Filter by scoping code"),
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
):
    return service.get_shifts(
        db,
        org_id=user.org_id,
        is_active=is_active,
        is_night_shift=is_night_shift,
        hr_code=hr_code,
    )

@shift_router.get("/{shift_id}", response_model=ShiftSchema)
def get_shift(shift_id: int, db: Session = Depends(get_db), user = Depends(get_current_active_user)):
    obj = service.get_shift_for_org(db, shift_id, user.org_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Shift not found")
    return obj

@shift_router.post("", response_model=ShiftSchema, status_code=status.HTTP_201_CREATED)
def create_shift(
    payload: ShiftCreatePayload,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    _admin = Depends(require_admin),
):
    internal = ShiftCreate(org_id=user.org_id, created_by=user.id, **payload.model_dump())
    return service.create_shift(db, internal)

@shift_router.patch("/{shift_id}", response_model=ShiftSchema)
def patch_shift(
    shift_id: int,
    payload: ShiftUpdate,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    _admin = Depends(require_admin),
):
    return service.update_shift(db, shift_id, payload, org_id=user.org_id, actor_id=user.id)

@shift_router.delete("/{shift_id}")
def delete_shift(
    shift_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    _admin = Depends(require_admin),
):
    service.delete_shift(db, shift_id, org_id=user.org_id)
    return {"message": "Shift deleted"}
