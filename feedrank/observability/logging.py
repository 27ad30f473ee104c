"""Structured logging configuration."""

import logging
import sys
from typing import TextIO

import structlog


def configure_logging(
    level: int = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """Configure structured logging for ranking jobs and tools.

    Args:
        level: Logging level (default: INFO).
        output: Output stream (default: stderr).
        json_format: Render JSON lines instead of colored console output.
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=output, level=level)


def bind_job_context(job_id: str, command: str | None = None) -> None:
    """Bind job context to all subsequent log messages.

    Args:
        job_id: Unique identifier of the CLI or batch invocation.
        command: Optional command name.
    """
    structlog.contextvars.bind_contextvars(job_id=job_id)
    if command:
        structlog.contextvars.bind_contextvars(command=command)


def clear_job_context() -> None:
    """Clear job context from log messages."""
    structlog.contextvars.unbind_contextvars("job_id", "command")
