# app/utils/my_logging.py
"""Logging configuration"""
import logging
import sys
from app.config.settings import get_settings

NOISY_LOGGERS = [
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "alembic",
    "urllib3",
    "uvicorn.access",
    "celery.redirected",
]


class CorrelationIdFilter(logging.Filter):
    """Guarantee a correlation_id attribute so the format string never fails"""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = "-"
        return True


def setup_logging(verbose=True):
    """Configure application logging"""
    settings = get_settings()

    if verbose:
        level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    else:
        level = logging.WARNING

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdFilter())

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s",
        handlers=[handler],
        force=True,
    )

    # SQL echo only when debugging
    quiet_level = logging.INFO if settings.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)
