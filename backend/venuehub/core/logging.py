"""structlog setup for the VenueHub backend.

All output goes through the stdlib root handler via ``ProcessorFormatter``, so
uvicorn and SQLAlchemy records render exactly like application events: JSON
in production, ``ConsoleRenderer`` when ``debug`` is on. Each record carries
the ``X-Request-ID`` correlation id when emitted inside a request.

The scheduler logs a no-op line on every idle tick; ``venuehub.scheduling``
therefore has its own level (``activity_scheduler_log_level``) independent of
the root level.
"""

import logging
import logging.config

import structlog
from asgi_correlation_id.context import correlation_id

from venuehub.core.config import Settings

SERVICE_NAME = "venuehub-backend"


def add_correlation_id(logger, method, event_dict):
    cid = correlation_id.get(None)
    if cid:
        event_dict["correlation_id"] = cid
    return event_dict


def add_service(logger, method, event_dict):
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def configure_structlog(settings: Settings) -> None:
    """Configure structlog and the stdlib bridge from application settings.

    Must run before the rest of the application is imported: loggers are
    cached on first use and would keep the default processor chain.
    """
    root_level = settings.log_level or ("DEBUG" if settings.debug else "INFO")

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_service,
        add_correlation_id,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    renderer = structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer()

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structlog": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    renderer,
                ],
                "foreign_pre_chain": shared_processors,
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "structlog",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {"handlers": ["stdout"], "level": root_level},
        "loggers": {
            "uvicorn.access": {"level": "WARNING"},
            # SQL statements are logged at INFO by sqlalchemy.engine
            "sqlalchemy.engine": {"level": "INFO" if settings.database_echo else "WARNING"},
            "venuehub.scheduling": {"level": settings.activity_scheduler_log_level},
        },
    })

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
