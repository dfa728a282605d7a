"""Logging configuration for the marketplace domain.

Console output for development, JSON lines in production/staging, and a
rotating file pair (all records + errors only) under ``LOG_DIR``.

Checkout and order work binds its ids with ``log_context`` so every line
logged while a payment or payout is in flight can be traced back to it.
"""

import logging
import logging.handlers
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import structlog

LOG_FILE_PREFIX = "marketplace"

_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

# Libraries that log every request or query at INFO
_QUIET_LOGGERS = ("protean", "urllib3", "asyncio", "sqlalchemy.engine")


def _environment() -> str:
    return (os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def get_log_level() -> str:
    """Log level from ``LOG_LEVEL``, else derived from the environment."""
    return os.getenv("LOG_LEVEL", _LEVELS.get(_environment(), "INFO"))


def _rotating_handler(path: Path, level) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def setup_stdlib_logging() -> None:
    """Route stdlib logging to stdout and the rotating log files."""
    log_level = get_log_level()

    log_dir = Path(os.getenv("LOG_DIR", "logs"))
    log_dir.mkdir(exist_ok=True)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [
        console_handler,
        _rotating_handler(log_dir / f"{LOG_FILE_PREFIX}.log", log_level),
        _rotating_handler(log_dir / f"{LOG_FILE_PREFIX}_error.log", logging.ERROR),
    ]

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_structlog() -> None:
    """Configure structlog on top of stdlib logging."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if _environment() in ("production", "staging"):
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging() -> None:
    """Configure all logging for the application."""
    setup_stdlib_logging()
    setup_structlog()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a configured logger instance."""
    return structlog.get_logger(name)


@contextmanager
def log_context(**ids: Any) -> Iterator[None]:
    """Bind ids such as ``checkout_id`` or ``order_id`` to every line logged in the block.

    ``None`` values are left out; the previous context is restored on exit.
    """
    bound = {key: str(value) for key, value in ids.items() if value is not None}
    with structlog.contextvars.bound_contextvars(**bound):
        yield
