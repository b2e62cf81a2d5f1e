"""Structured logging configuration using structlog.

Console output for interactive use, JSON lines when the editor runs behind a
service. Library modules log through get_logger() and never print.
"""

import logging
import sys
from typing import TextIO

import structlog

from src.outings.config import OutingsConfig


def setup_logging(
    json_output: bool = False, log_level: str = "INFO", stream: TextIO | None = None
) -> None:
    """Configure structlog processors, renderer and level.

    Args:
        json_output: If True, render JSON (production). If False, console format.
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        stream: Where log lines go. Defaults to stderr so CLI stdout stays
            reserved for command output.
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    stream = stream if stream is not None else sys.stderr

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )

    # Bridge stdlib logging (requests, urllib3) to the same stream
    logging.basicConfig(format="%(message)s", stream=stream, level=numeric_level)
    logging.getLogger().handlers = []
    logging.getLogger().addHandler(logging.StreamHandler(stream))


def setup_logging_from_config(config: OutingsConfig) -> None:
    """Configure logging from the log_json / log_level settings."""
    setup_logging(json_output=config.log_json, log_level=config.log_level)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance bound with the module name.

    Args:
        name: Logger name (typically __name__ from calling module).

    Returns:
        Configured structlog logger with module name context.
    """
    return structlog.get_logger(name)
