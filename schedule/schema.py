from __future__ import annotations
import datetime as dt
from typing import Optional
from pydantic import BaseModel, ConfigDict

from assignment.models import AssignmentStatus
from assignment.schema import RosterSummary
from employee.schema import EmployeeSummary
from shift.schemas import ShiftSummary


# One calendar cell: enough to render without further lookups
class ScheduleEntry(BaseModel):
    id: int
    employee_id: int
    date: dt.date
    status: AssignmentStatus
    notes: Optional[str] = None
    shift: ShiftSummary
    roster: Optional[RosterSummary] = None
    model_config = ConfigDict(from_attributes=True)


class TeamScheduleEntry(ScheduleEntry):
    employee: EmployeeSummary


class EmployeeSchedule(BaseModel):
    employee_id: int
    start_date: dt.date
    end_date: dt.date
    assignments: list[ScheduleEntry]


class TeamSchedule(BaseModel):
    manager_id: int
    date: dt.date
    employee_ids: list[int]
    assignments: list[TeamScheduleEntry]
