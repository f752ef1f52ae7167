"""
Structured logging for pipeline runs.

Every module logs key/value events through structlog. Events go to
stderr so the CLI can keep stdout for its own tables.
"""

import logging
import sys
from typing import Any, TextIO

import structlog

# Third-party loggers that are chatty at INFO during tracking
NOISY_LOGGERS = ("mlflow", "alembic", "urllib3", "git")


def _renderer(json_output: bool, stream: TextIO) -> structlog.types.Processor:
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=stream.isatty())


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    *,
    stream: TextIO | None = None,
) -> None:
    """
    Configure structlog and the standard library root logger.

    Safe to call repeatedly; the last call wins.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_output: Emit one JSON object per event instead of console lines.
        stream: Destination, sys.stderr by default.
    """
    stream = stream or sys.stderr
    log_level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=stream, level=log_level, force=True)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors.append(structlog.processors.format_exc_info)
    processors.append(_renderer(json_output, stream))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Module logger; call as ``log = get_logger(__name__)``."""
    return structlog.get_logger(name)


def log_context(**kwargs: Any) -> structlog.contextvars.bound_contextvars:
    """
    Bind key/value pairs to every event logged inside the block.

    Example:
        with log_context(run_id="20240101-120000"):
            log.info("Fitting model")  # includes run_id
    """
    return structlog.contextvars.bound_contextvars(**kwargs)
