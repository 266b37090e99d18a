from __future__ import annotations
from typing import Optional
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from core.config_loader import settings
from core.database import get_db
from auth.services.auth_service import get_current_active_user
from authz.deps import require_manager

from .models import AssignmentStatus
from .schema import (
    AssignmentSchema,
    AssignmentDetailSchema,
    AssignmentCreatePayload,
    AssignmentCreate,
    AssignmentUpdate,
    DeclinePayload,
    SwapRequestPayload,
    SwapApprovalResult,
    BulkAssignRequest,
    BulkAssignResponse,
    )
from . import service
from .bulk_service import bulk_assign


assignment_router = APIRouter(prefix="/assignments", tags=["Assignments"])

# List assignments (scoped to caller's org). Optional filters.
@assignment_router.get("", response_model=list[AssignmentDetailSchema])
def list_assignments(
    employee_id: Optional[int] = Query(None),
    shift_id: Optional[int] = Query(None),
    roster_id: Optional[int] = Query(None),
    status: Optional[AssignmentStatus] = Query(None),
    hr_code: Optional[str] = Query(None),
    on_date: Optional[date] = Query(None, alias="date", description="Exact day; overrides the range"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    ):
    return service.get_assignments(
        db,
        org_id=user.org_id,
        employee_id=employee_id,
        shift_id=shift_id,
        roster_id=roster_id,
        status=status,
        hr_code=hr_code,
        on_date=on_date,
        start_date=start_date,
        end_date=end_date,
    )

# Bulk create (manager only); each item succeeds or fails on its own
@assignment_router.post("/bulk", response_model=BulkAssignResponse)
def bulk_create_assignments(
    payload: BulkAssignRequest,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    _mgr = Depends(require_manager),
    ):
    if len(payload.assignments) > settings.BULK_ASSIGN_MAX_ITEMS:
        raise HTTPException(
            status_code=422,
            detail=f"At most {settings.BULK_ASSIGN_MAX_ITEMS} assignments per request",
        )
    successful, failed = bulk_assign(db, payload.assignments, org_id=user.org_id, actor_id=user.id)
    return BulkAssignResponse(
        successful=[AssignmentSchema.model_validate(a) for a in successful],
        failed=failed,
        total_success=len(successful),
        total_failed=len(failed),
    )

# Get single assignment (scoped)
@assignment_router.get("/{assignment_id}", response_model=AssignmentDetailSchema)
def get_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    ):
    obj = service.get_assignment_for_org(db, assignment_id, user.org_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Assignment not found")
    return obj

# Create assignment (manager only)
@assignment_router.post("", response_model=AssignmentSchema, status_code=status.HTTP_201_CREATED)
def create_assignment(
    payload: AssignmentCreatePayload,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    _mgr = Depends(require_manager),
    ):
    dto = AssignmentCreate(org_id=user.org_id, created_by=user.id, **payload.model_dump())
    return service.create_assignment(db, dto)

# Post-hoc corrections (manager only)
@assignment_router.patch("/{assignment_id}", response_model=AssignmentSchema)
def update_assignment(
    assignment_id: int,
    payload: AssignmentUpdate,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    _mgr = Depends(require_manager),
    ):
    return service.update_assignment(db, assignment_id, payload, org_id=user.org_id, actor_id=user.id)

# Owner actions: the service refuses anyone but the assigned employee
@assignment_router.post("/{assignment_id}/confirm", response_model=AssignmentSchema)
def confirm_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    ):
    return service.confirm_assignment(db, assignment_id, org_id=user.org_id, employee_id=user.id)

@assignment_router.post("/{assignment_id}/decline", response_model=AssignmentSchema)
def decline_assignment(
    assignment_id: int,
    payload: DeclinePayload,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    ):
    return service.decline_assignment(
        db, assignment_id, org_id=user.org_id, employee_id=user.id, reason=payload.reason
    )

@assignment_router.post("/{assignment_id}/request-swap", response_model=AssignmentSchema)
def request_swap(
    assignment_id: int,
    payload: SwapRequestPayload,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    ):
    return service.request_swap(
        db,
        assignment_id,
        org_id=user.org_id,
        employee_id=user.id,
        target_employee_id=payload.swap_with_employee_id,
    )

@assignment_router.post("/{assignment_id}/approve-swap", response_model=SwapApprovalResult)
def approve_swap(
    assignment_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    _mgr = Depends(require_manager),
    ):
    original, replacement = service.approve_swap(
        db, assignment_id, org_id=user.org_id, approver_id=user.id
    )
    return SwapApprovalResult(
        original=AssignmentSchema.model_validate(original),
        replacement=AssignmentSchema.model_validate(replacement),
    )

@assignment_router.post("/{assignment_id}/cancel", response_model=AssignmentSchema)
def cancel_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    _mgr = Depends(require_manager),
    ):
    return service.cancel_assignment(db, assignment_id, org_id=user.org_id, actor_id=user.id)

# Hard delete for administrative correction (manager only)
@assignment_router.delete("/{assignment_id}")
def delete_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    _mgr = Depends(require_manager),
    ):
    service.delete_assignment(db, assignment_id, org_id=user.org_id)
    return {"message": "assignment deleted"}
