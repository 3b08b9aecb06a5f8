"""
Structured logging for the API and the operator scripts.

Console output locally, JSON lines elsewhere, stdlib and uvicorn records
routed through the same structlog chain. Notification events carry patient
phone numbers and admin email addresses; those are masked before any
renderer sees them. The audit trail keeps the full values.
"""

import logging
import logging.config
import sys
from typing import Any, Dict, List, MutableMapping

import sentry_sdk
import structlog

from vitalsync.core.config import settings

CONTACT_FIELDS = frozenset({"recipient", "phone_number", "admin_email", "to"})

# Client libraries that log every request at INFO.
QUIET_LOGGERS = {"httpx": "WARNING", "httpcore": "WARNING", "pymongo": "WARNING"}

PRETTY_ENVIRONMENTS = ("local", "dev")


def mask_contact(value: str) -> str:
    """``priya@ward.example`` -> ``p***@ward.example``, ``+15550001111`` -> ``***1111``."""
    if "@" in value:
        local, _, domain = value.partition("@")
        return f"{local[:1]}***@{domain}"
    if len(value) <= 4:
        return "***"
    return f"***{value[-4:]}"


def mask_contact_details(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    for key in CONTACT_FIELDS.intersection(event_dict):
        value = event_dict[key]
        if isinstance(value, str) and value:
            event_dict[key] = mask_contact(value)
    return event_dict


def shared_processors() -> List[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        mask_contact_details,
    ]


def build_logging_config(
    level: str, renderer: structlog.types.Processor, pre_chain: List[structlog.types.Processor]
) -> Dict[str, Any]:
    handler = {"handlers": ["default"], "propagate": False}
    loggers: Dict[str, Any] = {
        "": {"handlers": ["default"], "level": level, "propagate": True},
        **{name: {**handler, "level": "INFO"} for name in ("uvicorn", "uvicorn.error", "uvicorn.access")},
        **{name: {**handler, "level": quiet} for name, quiet in QUIET_LOGGERS.items()},
    }
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processor": renderer,
                "foreign_pre_chain": pre_chain,
            },
        },
        "handlers": {
            "default": {
                "level": level,
                "class": "logging.StreamHandler",
                "stream": sys.stdout,
                "formatter": "default",
            },
        },
        "loggers": loggers,
    }


def setup_logging() -> None:
    """
    Configure structlog and the stdlib root logger from settings.

    Sentry is initialised when a DSN is set, without default PII.
    """
    processors = shared_processors()

    if settings.SENTRY_DSN:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.ENVIRONMENT,
            send_default_pii=False,
            traces_sample_rate=1.0 if settings.ENVIRONMENT == "local" else 0.1,
        )

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.ENVIRONMENT in PRETTY_ENVIRONMENTS
        else structlog.processors.JSONRenderer()
    )
    logging.config.dictConfig(build_logging_config(settings.LOG_LEVEL, renderer, processors))
