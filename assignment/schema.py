from __future__ import annotations
import datetime as dt
from datetime import datetime, time
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_serializer, field_validator

from employee.schema import EmployeeSummary
from shift.schemas import ShiftSummary, format_hhmm, parse_time_of_day
from .models import AssignmentStatus, PerformanceRating
from .state_machine import allowed_actions as actions_for


class RosterSummary(BaseModel):
    id: int
    name: str
    is_published: bool
    model_config = ConfigDict(from_attributes=True)


class AssignmentSchema(BaseModel):
    id: int
    org_id: int
    hr_code: Optional[str] = None
    roster_id: Optional[int] = None
    shift_id: int
    employee_id: int
    date: dt.date
    status: AssignmentStatus
    confirmed_at: Optional[datetime] = None
    declined_at: Optional[datetime] = None
    decline_reason: Optional[str] = None
    swap_requested_with: Optional[int] = None
    swap_requested_at: Optional[datetime] = None
    swap_approved_by: Optional[int] = None
    swap_approved_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    actual_start_time: Optional[time] = None
    actual_end_time: Optional[time] = None
    actual_break_minutes: Optional[int] = None
    overtime_minutes: int = 0
    performance: Optional[PerformanceRating] = None
    notes: Optional[str] = None
    created_by: int
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def allowed_actions(self) -> list[str]:
        return [a.value for a in actions_for(self.status)]

    @field_serializer("actual_start_time", "actual_end_time")
    def _hhmm(self, value: Optional[time]) -> Optional[str]:
        return format_hhmm(value)


# Calendar rows: enough to render without further lookups
class AssignmentDetailSchema(AssignmentSchema):
    shift: ShiftSummary
    employee: EmployeeSummary
    roster: Optional[RosterSummary] = None


# PUBLIC payload from clients
class AssignmentCreatePayload(BaseModel):
    shift_id: int
    employee_id: int
    date: dt.date
    roster_id: Optional[int] = None
    notes: Optional[str] = Field(None, max_length=1000)
    model_config = ConfigDict(extra="forbid")


# INTERNAL DTO for the service
class AssignmentCreate(BaseModel):
    org_id: int
    created_by: int
    shift_id: int
    employee_id: int
    date: dt.date
    roster_id: Optional[int] = None
    hr_code: Optional[str] = None
    notes: Optional[str] = None


# Post-hoc corrections only; who/what/when are fixed once created
class AssignmentUpdate(BaseModel):
    actual_start_time: Optional[time] = None
    actual_end_time: Optional[time] = None
    actual_break_minutes: Optional[int] = Field(None, ge=0)
    overtime_minutes: Optional[int] = Field(None, ge=0)
    performance: Optional[PerformanceRating] = None
    notes: Optional[str] = Field(None, max_length=1000)
    model_config = ConfigDict(extra="forbid")

    @field_validator("actual_start_time", "actual_end_time", mode="before")
    @classmethod
    def _parse_time(cls, v):
        return parse_time_of_day(v)


class DeclinePayload(BaseModel):
    reason: str = Field(..., max_length=500)
    model_config = ConfigDict(extra="forbid")


class SwapRequestPayload(BaseModel):
    swap_with_employee_id: int
    model_config = ConfigDict(extra="forbid")


class SwapApprovalResult(BaseModel):
    original: AssignmentSchema
    replacement: AssignmentSchema


class BulkAssignItem(BaseModel):
    shift_id: int
    employee_id: int
    date: dt.date
    roster_id: Optional[int] = None
    notes: Optional[str] = Field(None, max_length=1000)
    model_config = ConfigDict(extra="forbid")


class BulkAssignRequest(BaseModel):
    assignments: list[BulkAssignItem] = Field(..., min_length=1)
    model_config = ConfigDict(extra="forbid")


class BulkAssignFailure(BaseModel):
    index: int
    shift_id: int
    employee_id: int
    date: dt.date
    roster_id: Optional[int] = None
    code: str
    error: str


class BulkAssignResponse(BaseModel):
    successful: list[AssignmentSchema]
    failed: list[BulkAssignFailure]
    total_success: int
    total_failed: int
