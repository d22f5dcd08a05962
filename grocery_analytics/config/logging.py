"""
Logging Configuration for Grocery Sales Analytics

structlog over the standard library: every record, including those from
third-party libraries, goes through one processor chain and is rendered as
console text or JSON lines.
"""

import logging
import sys
from typing import List, Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import ProcessorFormatter, add_log_level

from grocery_analytics.config.settings import Settings, get_settings

# Libraries that log heavily below WARNING (font cache, backend selection)
QUIET_LOGGERS = ("matplotlib", "PIL")


def _shared_processors() -> List:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _handler(handler: logging.Handler, level: int, renderer, processors: List) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(ProcessorFormatter(processor=renderer, foreign_pre_chain=processors))
    return handler


def configure_logging(log_level: Optional[str] = None, settings: Optional[Settings] = None) -> None:
    """
    Configure structured logging for a report run.

    Console output goes to stdout in the configured format; when
    ``GROCERY_LOG_FILE`` is set, JSON lines are appended there as well.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
        settings: Settings to read; defaults to the cached ones
    """
    settings = settings or get_settings()
    monitoring = settings.monitoring
    level = log_level or monitoring.log_level
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    processors = _shared_processors()
    structlog.configure(
        processors=processors + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if monitoring.log_format == "json":
        console_renderer = JSONRenderer()
    else:
        console_renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    handlers = [_handler(logging.StreamHandler(sys.stdout), numeric_level, console_renderer, processors)]
    if monitoring.log_file:
        handlers.append(_handler(
            logging.FileHandler(monitoring.log_file, encoding="utf-8"),
            numeric_level,
            JSONRenderer(),
            processors,
        ))

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    structlog.get_logger(__name__).info(
        "Logging configured",
        level=level,
        format=monitoring.log_format,
        log_file=monitoring.log_file,
        environment=settings.app_env,
    )
