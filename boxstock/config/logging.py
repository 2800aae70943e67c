"""
structlog setup for the stock engine.

Development gets a coloured console; every other environment writes one
JSON object per line. Quantities and money are Decimals throughout the
engine, so a processor renders them as fixed-point strings before output.
"""

import logging
import sys
from decimal import Decimal

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from boxstock.config.settings import Settings, get_settings

# Third-party loggers that only add noise at INFO
QUIET_LOGGERS = ("aiosqlite", "uvicorn.access", "httpx")


def add_service_fields(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    settings = get_settings()
    event_dict.setdefault("service", settings.app_name)
    event_dict.setdefault("version", settings.app_version)
    event_dict.setdefault("env", settings.environment)
    return event_dict


def decimals_to_text(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    """Render Decimal values (kg, prices, drift) as plain fixed-point text."""
    for key, value in event_dict.items():
        if isinstance(value, Decimal):
            event_dict[key] = format(value, "f")
    return event_dict


def _processors(settings: Settings) -> list[Processor]:
    chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_service_fields,
        decimals_to_text,
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.environment == "development":
        chain.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    else:
        chain.extend(
            [
                structlog.processors.dict_tracebacks,
                structlog.processors.JSONRenderer(),
            ]
        )
    return chain


def configure_logging(settings: Settings | None = None) -> None:
    """Route structlog through the stdlib root logger at the configured level."""
    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=_processors(settings),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
