"""
structlog setup for tagallery.

Every module logs through ``get_logger(__name__)`` with snake_case event
names and keyword context. ``configure_structured_logging`` runs once when
the Streamlit app starts; the ``log_*`` helpers give audit, performance,
error and security events fixed logger names so they can be filtered
downstream.
"""

import logging
import os
import sys
from typing import Any

import structlog

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

DEVELOPMENT_ENVIRONMENTS = ("development", "dev", "local")


def get_log_level() -> int:
    """Level named by LOG_LEVEL; unknown names fall back to INFO."""
    return LOG_LEVELS.get(os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)


def is_development_environment() -> bool:
    return os.getenv("ENVIRONMENT", "development").lower() in DEVELOPMENT_ENVIRONMENTS


def _renderer(is_dev: bool) -> Any:
    if is_dev:
        return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    return structlog.processors.JSONRenderer()


def configure_structured_logging() -> None:
    """
    Route structlog through the stdlib root logger on stderr.

    Local runs get readable console lines; Cloud Run and tests get one JSON
    object per event.
    """
    log_level = get_log_level()
    is_dev = is_development_environment()

    logging.basicConfig(level=log_level, format="%(message)s", stream=sys.stderr)
    logging.getLogger().setLevel(log_level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _renderer(is_dev),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    structlog.get_logger("tagallery.logging").info(
        "logging_configured",
        log_level=logging.getLevelName(log_level),
        environment="development" if is_dev else "production",
    )


def get_logger(name: str) -> Any:
    return structlog.get_logger(name)


def log_performance(operation: str, duration: float, **context: Any) -> None:
    """Record how long an operation took, in seconds."""
    get_logger("tagallery.performance").info(
        "performance_metric", operation=operation, duration_seconds=duration, **context
    )


def log_user_action(user_id: str, action: str, **context: Any) -> None:
    """Audit trail entry for a change a signed-in user made."""
    get_logger("tagallery.user_actions").info("user_action", user_id=user_id, action=action, **context)


def log_error(error: Exception, context: dict[str, Any] | None = None) -> None:
    fields = {"error_type": type(error).__name__, "error_message": str(error), **(context or {})}
    get_logger("tagallery.errors").error("error_occurred", **fields)


def log_security_event(event_type: str, user_id: str | None = None, **context: Any) -> None:
    """Missing IAP headers, rejected tokens and access to foreign galleries."""
    get_logger("tagallery.security").warning("security_event", event_type=event_type, user_id=user_id, **context)
