from __future__ import annotations
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict


class SchedulingEventSchema(BaseModel):
    id: int
    org_id: int
    event_type: str
    aggregate_id: int
    actor_id: Optional[int] = None
    payload: dict[str, Any]
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)
