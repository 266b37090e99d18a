from __future__ import annotations
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from core.database import get_db
from auth.services.auth_service import get_current_active_user
from authz.deps import require_manager
from employee.service import get_employee_for_org

from .schema import EmployeeSchedule, ScheduleEntry, TeamSchedule, TeamScheduleEntry
from . import service

schedule_router = APIRouter(prefix="/schedule", tags=["Schedule"])

# Caller's own schedule; defaults to today + the configured window
@schedule_router.get("/me", response_model=EmployeeSchedule)
def my_schedule(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
):
    start, end = service.resolve_window(start_date, end_date)
    rows = service.employee_schedule(
        db, org_id=user.org_id, employee_id=user.id, start_date=start, end_date=end
    )
    return EmployeeSchedule(
        employee_id=user.id,
        start_date=start,
        end_date=end,
        assignments=[ScheduleEntry.model_validate(r) for r in rows],
    )

# Direct reports on one day (manager only)
@schedule_router.get("/team", response_model=TeamSchedule)
def team_schedule(
    on_date: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    _mgr = Depends(require_manager),
):
    day = on_date or date.today()
    report_ids, rows = service.team_schedule(db, org_id=user.org_id, manager_id=user.id, on_date=day)
    return TeamSchedule(
        manager_id=user.id,
        date=day,
        employee_ids=report_ids,
        assignments=[TeamScheduleEntry.model_validate(r) for r in rows],
    )

# Any employee's schedule (manager only)
@schedule_router.get("/employees/{employee_id}", response_model=EmployeeSchedule)
def employee_schedule(
    employee_id: int,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    _mgr = Depends(require_manager),
):
    if not get_employee_for_org(db, employee_id, user.org_id):
        raise HTTPException(status_code=404, detail="Employee not found")
    start, end = service.resolve_window(start_date, end_date)
    rows = service.employee_schedule(
        db, org_id=user.org_id, employee_id=employee_id, start_date=start, end_date=end
    )
    return EmployeeSchedule(
        employee_id=employee_id,
        start_date=start,
        end_date=end,
        assignments=[ScheduleEntry.model_validate(r) for r in rows],
    )
