"""
Central error handling for the tardiness engine backend

Domain errors subclass HTTPException so services can raise them directly and
the API renders them through http_exception_handler. Each carries a stable
`code` for callers that need to tell configuration problems apart from
ordinary request failures.
"""
from typing import Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException


class TardinessError(HTTPException):
    """Base class for tardiness and disciplinary domain errors"""

    code = "TARDINESS_ERROR"
    status_code_default = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str, status_code: Optional[int] = None):
        super().__init__(status_code=status_code or self.status_code_default, detail=detail)


class RuleNotFoundError(TardinessError):
    """No tardiness rule applies, or the configured rule is missing (seed data problem)"""

    code = "RULE_NOT_FOUND"
    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR


class MalformedScheduleTimeError(TardinessError):
    """Scheduled start time is not a valid HH:MM string"""

    code = "MALFORMED_SCHEDULE_TIME"
    status_code_default = status.HTTP_422_UNPROCESSABLE_ENTITY


class ConcurrentAccumulationConflictError(TardinessError):
    """Get-or-create of a monthly accumulation kept colliding with concurrent inserts"""

    code = "CONCURRENT_ACCUMULATION_CONFLICT"
    status_code_default = status.HTTP_409_CONFLICT


class AttendanceEventConflictError(TardinessError):
    """attendance_id was already processed for a different employee"""

    code = "ATTENDANCE_EVENT_CONFLICT"
    status_code_default = status.HTTP_409_CONFLICT


class PersistenceFailureError(TardinessError):
    """Store or transaction failure; the whole unit of work was rolled back"""

    code = "PERSISTENCE_FAILURE"
    status_code_default = status.HTTP_503_SERVICE_UNAVAILABLE


class InvalidRecordTransitionError(TardinessError):
    """Disciplinary record status change not allowed from its current status"""

    code = "INVALID_RECORD_TRANSITION"
    status_code_default = status.HTTP_409_CONFLICT

    def __init__(self, from_status: str, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Invalid transition from '{from_status}' to '{to_status}'")


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """
    Handle HTTPException with consistent JSON response format

    Args:
        request: FastAPI request object
        exc: HTTPException instance

    Returns:
        JSONResponse with error details
    """
    content = {
        "error": True,
        "status_code": exc.status_code,
        "detail": exc.detail,
        "path": str(request.url.path)
    }
    if isinstance(exc, TardinessError):
        content["code"] = exc.code
    return JSONResponse(status_code=exc.status_code, content=content)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle RequestValidationError with consistent JSON response format

    Does not leak internal validation details in production.
    """
    from app.core.config import settings

    if settings.APP_ENV == "prod":
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "status_code": 422,
                "detail": "Validation error: Invalid request data",
                "path": str(request.url.path)
            }
        )

    # Sanitize for JSON: e.g. ctx.error ValueError -> str
    errors = []
    for e in exc.errors():
        err = dict(e)
        if "ctx" in err and isinstance(err["ctx"], dict):
            err["ctx"] = {
                k: (str(v) if not isinstance(v, (str, int, float, bool, type(None))) else v)
                for k, v in err["ctx"].items()
            }
        errors.append(err)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": True,
            "status_code": 422,
            "detail": "Validation error",
            "errors": errors,
            "path": str(request.url.path)
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions with consistent JSON response format

    Does not leak internal error details in production.
    """
    from app.core.config import settings
    import logging
    import traceback

    logger = logging.getLogger(__name__)
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    if settings.APP_ENV == "prod":
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "status_code": 500,
                "detail": "Internal server error",
                "path": str(request.url.path)
            }
        )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": True,
            "status_code": 500,
            "detail": str(exc),
            "path": str(request.url.path),
            "traceback": traceback.format_exc() if settings.APP_ENV == "local" else None
        }
    )
