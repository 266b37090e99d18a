from __future__ import annotations
from datetime import date, datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
from assignment.schema import AssignmentDetailSchema
from .models import RosterStatus, RotationPattern


class RosterSchema(BaseModel):
    id: int
    org_id: int
    department_id: Optional[str] = None
    hr_code: Optional[str] = None
    name: str
    description: Optional[str] = None
    start_date: date
    end_date: date
    status: RosterStatus
    is_published: bool
    published_at: Optional[datetime] = None
    published_by: Optional[int] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    auto_assign_enabled: bool
    rotation_pattern: RotationPattern
    notify_on_publish: bool
    notify_on_change: bool
    reminder_days: int
    meta: dict[str, Any] = Field(default_factory=dict)
    created_by: int
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


# Roster with its assignments, each carrying shift/employee summaries
class RosterDetailSchema(RosterSchema):
    assignments: list[AssignmentDetailSchema] = Field(default_factory=list)


class RosterCreatePayload(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    start_date: date = Field(..., description="Inclusive first day of the roster")
    end_date: date = Field(..., description="Inclusive last day of the roster")
    department_id: Optional[str] = Field(None, max_length=100)
    hr_code: Optional[str] = Field(None, max_length=50)
    auto_assign_enabled: bool = False
    rotation_pattern: RotationPattern = RotationPattern.weekly
    notify_on_publish: bool = True
    notify_on_change: bool = True
    reminder_days: int = Field(1, ge=0, le=7)
    meta: dict[str, Any] = Field(default_factory=dict)
    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class RosterCreate(BaseModel):
    org_id: int
    created_by: int
    name: str
    description: Optional[str] = None
    start_date: date
    end_date: date
    department_id: Optional[str] = None
    hr_code: Optional[str] = None
    auto_assign_enabled: bool = False
    rotation_pattern: RotationPattern = RotationPattern.weekly
    notify_on_publish: bool = True
    notify_on_change: bool = True
    reminder_days: int = Field(1, ge=0, le=7)
    meta: dict[str, Any] = Field(default_factory=dict)


class RosterUpdate(BaseModel):
    # dates are checked against the stored values in the service
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    department_id: Optional[str] = Field(None, max_length=100)
    hr_code: Optional[str] = Field(None, max_length=50)
    status: Optional[RosterStatus] = None
    auto_assign_enabled: Optional[bool] = None
    rotation_pattern: Optional[RotationPattern] = None
    notify_on_publish: Optional[bool] = None
    notify_on_change: Optional[bool] = None
    reminder_days: Optional[int] = Field(None, ge=0, le=7)
    meta: Optional[dict[str, Any]] = None
    model_config = ConfigDict(extra="forbid")
