from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware
from core.config_loader import settings
from core.errors import SchedulingError, scheduling_error_handler
from core.logging_utils import setup_logging

from shift.router import shift_router
from roster.router import roster_router
from assignment.router import assignment_router
from schedule.router import schedule_router
from events.router import events_router
import models_bootstrap

setup_logging(settings.LOG_LEVEL, json_output=settings.LOG_JSON)

openapi_tags = [
    {"name": "Shifts", "description": "Reusable shift templates"},
    {"name": "Rosters", "description": "Dated rosters and their publication"},
    {"name": "Assignments", "description": "Employee assignments and their lifecycle"},
    {"name": "Schedule", "description": "Personal and team schedules"},
    {"name": "Events", "description": "Scheduling events for notifiers"},
    {"name": "Health Checks", "description": "Application health checks"},
]

app = FastAPI(title="Rosterline", openapi_tags=openapi_tags)

if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip("/") for origin in settings.cors_origins],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.add_exception_handler(SchedulingError, scheduling_error_handler)

app.include_router(shift_router, prefix="/api")
app.include_router(roster_router, prefix="/api")
app.include_router(assignment_router, prefix="/api")
app.include_router(schedule_router, prefix="/api")
app.include_router(events_router, prefix="/api")


@app.get("/health", tags=['Health Checks'])
def read_root():
    return {"health": "true"}
