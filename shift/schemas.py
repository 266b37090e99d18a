from __future__ import annotations
import re
from datetime import datetime, time
from typing import Any, Optional, Union
from pydantic import BaseModel, Field, ConfigDict, field_serializer, field_validator

from .models import DEFAULT_APPLICABLE_DAYS, DEFAULT_SHIFT_COLOR

_TIME_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]?\d)(?::([0-5]?\d))?$")
_HEX_COLOR_RE = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")


def parse_time_of_day(value: Any) -> Any:
    """Accept "9:0", "09:00" or "09:00:00" and normalize to minute precision."""
    if value is None:
        return None
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    if isinstance(value, str):
        m = _TIME_RE.match(value.strip())
        if m:
            return time(int(m.group(1)), int(m.group(2)))
    raise ValueError("time must be in H:M or HH:MM format")


def normalize_color(value: Any) -> Any:
    # Flutter clients send 32-bit ARGB integers; the alpha channel is dropped
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        if 0 <= value <= 0xFFFFFFFF:
            return f"#{value & 0xFFFFFF:06x}"
    elif isinstance(value, str) and _HEX_COLOR_RE.match(value):
        return value
    raise ValueError("color must be a hex color string or a 32-bit ARGB integer")


def normalize_days(value: Any) -> Any:
    if value is None:
        return None
    days = set()
    for day in value:
        if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
            raise ValueError("each applicable day must be an integer between 0 (Sunday) and 6 (Saturday)")
        days.add(day)
    return sorted(days)


def format_hhmm(value: Optional[time]) -> Optional[str]:
    return value.strftime("%H:%M") if value is not None else None


class ShiftSummary(BaseModel):
    id: int
    name: str
    start_time: time
    end_time: time
    duration_minutes: int
    is_night_shift: bool
    color: str

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("start_time", "end_time")
    def _hhmm(self, value: time) -> str:
        return format_hhmm(value)


class ShiftSchema(BaseModel):
    id: int
    org_id: int
    hr_code: Optional[str] = None
    name: str
    description: Optional[str] = None
    start_time: time
    end_time: time
    duration_minutes: int
    break_minutes: int
    is_night_shift: bool
    color: str
    is_active: bool
    applicable_days: list[int]
    overtime_allowed: bool
    overtime_rate: float
    grace_period_minutes: int
    minimum_staff: int
    maximum_staff: Optional[int] = None
    meta: dict[str, Any] = Field(default_factory=dict)
    created_by: int
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("start_time", "end_time")
    def _hhmm(self, value: time) -> str:
        return format_hhmm(value)


class _ShiftFields(BaseModel):
    """Field parsing shared by the create and update payloads."""

    @field_validator("start_time", "end_time", mode="before", check_fields=False)
    @classmethod
    def _parse_time(cls, v):
        return parse_time_of_day(v)

    @field_validator("color", mode="before", check_fields=False)
    @classmethod
    def _parse_color(cls, v):
        return normalize_color(v)

    @field_validator("applicable_days", mode="before", check_fields=False)
    @classmethod
    def _parse_days(cls, v):
        return normalize_days(v)

    @field_validator("name", check_fields=False)
    @classmethod
    def _name_not_blank(cls, v):
        if v is not None and not v.strip():
            raise ValueError("name cannot be blank")
        return v.strip() if v is not None else v


class ShiftCreatePayload(_ShiftFields):
    hr_code: Optional[str] = Field(None, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    start_time: time = Field(..., description="HH:MM, local time of day")
    end_time: time = Field(..., description="HH:MM; may be before start_time for night shifts")
    duration_minutes: Optional[int] = Field(None, ge=1, le=1440, description="Derived from the window when omitted")
    break_minutes: int = Field(0, ge=0, le=480)
    is_night_shift: bool = False
    color: Union[str, int] = DEFAULT_SHIFT_COLOR
    is_active: bool = True
    applicable_days: list[int] = Field(default_factory=lambda: list(DEFAULT_APPLICABLE_DAYS))
    overtime_allowed: bool = False
    overtime_rate: float = Field(1.5, ge=1.0, le=3.0)
    grace_period_minutes: int = Field(15, ge=0, le=60)
    minimum_staff: int = Field(1, ge=1)
    maximum_staff: Optional[int] = Field(None, ge=1)
    meta: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


# Internal DTO the service uses
class ShiftCreate(ShiftCreatePayload):
    org_id: int
    created_by: int


class ShiftUpdate(_ShiftFields):
    hr_code: Optional[str] = Field(None, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    duration_minutes: Optional[int] = Field(None, ge=1, le=1440)
    break_minutes: Optional[int] = Field(None, ge=0, le=480)
    is_night_shift: Optional[bool] = None
    color: Optional[Union[str, int]] = None
    is_active: Optional[bool] = None
    applicable_days: Optional[list[int]] = None
    overtime_allowed: Optional[bool] = None
    overtime_rate: Optional[float] = Field(None, ge=1.0, le=3.0)
    grace_period_minutes: Optional[int] = Field(None, ge=0, le=60)
    minimum_staff: Optional[int] = Field(None, ge=1)
    maximum_staff: Optional[int] = Field(None, ge=1)
    meta: Optional[dict[str, Any]] = None

    model_config = ConfigDict(extra="forbid")
