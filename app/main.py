"""
Tardiness Engine Backend - Main Application Entry Point
"""
import logging
from urllib.parse import urlparse, urlunparse

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from app.api.router import api_router
from app.core.config import settings
from app.core.constants import DEFAULT_VERSION
from app.core.errors import (
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from app.core.logging import setup_logging
from app.db.init_db import seed_reference_data
from app.db.session import SessionLocal

# Setup logging first
setup_logging()
logger = logging.getLogger(__name__)


def _mask_database_url(url: str) -> str:
    """Mask password in DATABASE_URL for safe logging; show full path for sqlite."""
    try:
        parsed = urlparse(url)
        if parsed.scheme == "sqlite":
            return url  # Safe to log path
        if parsed.password:
            netloc = f"{parsed.username}:****@{parsed.hostname or ''}"
            if parsed.port:
                netloc += f":{parsed.port}"
            return urlunparse(parsed._replace(netloc=netloc))
    except ValueError:
        return "***"
    return url


# Create FastAPI app
app = FastAPI(
    title="Tardiness Engine Backend",
    description="Tardiness accumulation and disciplinary escalation",
    version=settings.VERSION or DEFAULT_VERSION
)

# Configure CORS - must be before other middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register exception handlers
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Include all API routes under /api/v1
app.include_router(api_router, prefix="/api/v1")


@app.on_event("startup")
def startup_log_config() -> None:
    """Log DATABASE_URL and timezone at startup so they can be verified against Alembic."""
    masked = _mask_database_url(settings.DATABASE_URL)
    logger.info("DATABASE_URL (app): %s", masked)
    logger.info("Schedule timezone: %s", settings.SCHEDULE_TIMEZONE)


@app.on_event("startup")
def bootstrap_reference_rules() -> None:
    """
    Seed the tardiness and disciplinary rules if they are missing.
    Without them every late check-in fails with RULE_NOT_FOUND.
    """
    db = SessionLocal()
    try:
        seed_reference_data(db)
    except OperationalError as e:
        # Tables may not exist yet
        db.rollback()
        if "no such table" in str(e).lower() or "does not exist" in str(e).lower():
            logger.warning("Database tables not ready yet, skipping rule bootstrap")
        else:
            logger.error("Database error during rule bootstrap: %s", e)
    finally:
        db.close()


# Handle missing table errors with a clear message
def _is_no_such_table(err: BaseException) -> bool:
    msg = str(err).lower()
    return "no such table" in msg or "does not exist" in msg


async def _handle_operational_error(request, exc: Exception):
    if _is_no_such_table(exc):
        return JSONResponse(
            status_code=500,
            content={"detail": "Run alembic upgrade head"},
        )
    return await generic_exception_handler(request, exc)


app.add_exception_handler(OperationalError, _handle_operational_error)
