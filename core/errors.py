from __future__ import annotations
import logging

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class SchedulingError(HTTPException):
    """Business-rule failure raised by the scheduling services.

    Subclasses HTTPException so routers can let it propagate unchanged; the
    handler registered in ``main`` adds the machine readable ``code``.
    """

    status: int = 400
    code: str = "BAD_REQUEST"

    def __init__(self, detail: str):
        super().__init__(status_code=self.status, detail=detail)


class NotFoundError(SchedulingError):
    status = 404
    code = "NOT_FOUND"


class ValidationError(SchedulingError):
    status = 422
    code = "VALIDATION_ERROR"


class ConflictError(SchedulingError):
    status = 409
    code = "CONFLICT"


class AuthorizationError(SchedulingError):
    status = 403
    code = "FORBIDDEN"


async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    logger.info(
        "scheduling_rule_rejected",
        extra={
            "path": request.url.path,
            "method": request.method,
            "code": exc.code,
            "status_code": exc.status_code,
            "detail": exc.detail,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
    )
