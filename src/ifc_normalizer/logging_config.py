"""
Structured logging setup.

Modules get their logger with ``structlog.get_logger(__name__)`` and log
event-style messages::

    logger.info("job.completed", job_id=job_id, changes=12)

configure_logging() is called once by the CLI, including `serve`.
"""

import logging
import sys
from typing import Optional

import structlog


def configure_logging(level: str = "INFO", json_format: Optional[bool] = None) -> None:
    """
    Configure structlog and the standard library root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON lines, False for console output,
            None to pick console on a TTY and JSON otherwise
    """
    if json_format is None:
        json_format = not sys.stderr.isatty()

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]
    if json_format:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper())),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # Libraries (httpx, uvicorn) log through the standard library
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper()),
    )
