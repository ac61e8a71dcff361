"""Structured logging for EarnHub."""

import logging
import sys

import structlog
from structlog.typing import EventDict, WrappedLogger

from earnhub.settings import Settings, settings as default_settings

# Event keys whose values never reach the log output
SENSITIVE_KEYS = frozenset(
    {"password", "password_hash", "token", "card_number", "security_code", "expiration_date"}
)
REDACTED = "[redacted]"


def redact_sensitive(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask credentials and card data passed as log context."""
    for key in SENSITIVE_KEYS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog and stdlib logging from ``settings``."""
    settings = settings or default_settings
    level = logging.getLevelName(settings.log_level.upper())

    processors = [
        structlog.contextvars.merge_contextvars,
        redact_sensitive,
        structlog.processors.add_log_level,
    ]
    if settings.log_format == "json":
        processors += [
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors += [
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    # uvicorn, SQLAlchemy and slowapi log through the stdlib
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)
