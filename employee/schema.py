from __future__ import annotations
from typing import Optional
from pydantic import BaseModel, ConfigDict


class EmployeeSummary(BaseModel):
    id: int
    display_name: str
    email: Optional[str] = None
    department: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)
