# app/config/logging_config.py
"""
Logging setup shared by the API, services and scheduler
"""

import logging
import time
from typing import Any

from app.config.settings import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"


def setup_logging(level: str = None):
    """Configure root logging once for the process"""
    logging.basicConfig(
        level=getattr(logging, (level or settings.LOG_LEVEL), logging.INFO),
        format=LOG_FORMAT,
    )


def _format_context(context: dict) -> str:
    if not context:
        return ""
    return " " + " ".join(f"{key}={value}" for key, value in context.items())


def log_security_event(logger: logging.Logger, message: str, **context: Any):
    """Log a security relevant event as a warning"""
    logger.warning(f"SECURITY: {message}{_format_context(context)}")


def log_duration(logger: logging.Logger, operation: str, started: float, **context: Any):
    """Log how long an operation took, `started` comes from time.perf_counter()"""
    duration_ms = (time.perf_counter() - started) * 1000
    logger.info(f"Performance: {operation} durationMs={duration_ms:.1f}{_format_context(context)}")
