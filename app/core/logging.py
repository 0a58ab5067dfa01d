"""
Logging setup shared by the API process and the maintenance scripts
"""
import logging
import sys

from app.core.config import settings
from app.core.constants import SERVICE_NAME

LOG_FORMAT = f"%(asctime)s {SERVICE_NAME} %(levelname)s [%(name)s] %(message)s"

# Library loggers that drown out the engine's own records at INFO
_LIBRARY_LEVELS = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "alembic": logging.INFO,
}


def setup_logging() -> None:
    """
    Send every record to stdout at settings.LOG_LEVEL.

    Termination proposals and employee terminations are logged at WARNING, so
    they stay visible when LOG_LEVEL is raised in production. With
    LOG_LEVEL=DEBUG outside prod the SQL statements are logged as well.
    """
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )

    for name, library_level in _LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(library_level)
    if level == logging.DEBUG and settings.APP_ENV != "prod":
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)

    logging.getLogger(__name__).info(
        "logging configured: level=%s env=%s schedule_tz=%s",
        settings.LOG_LEVEL, settings.APP_ENV, settings.SCHEDULE_TIMEZONE,
    )
