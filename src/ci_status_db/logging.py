"""Logging setup built on loguru.

Console output is split into two sinks: records emitted through
``get_logger`` carry a bound ``name`` and are shown with it, records
routed in from the standard library (SQLAlchemy, httpx via githubkit)
fall back to the module name loguru resolves.

Sync code binds repository and sweep context so every line of a
sweep can be correlated in the optional rotating log file.
"""

from __future__ import annotations

import logging
import sys
import uuid
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

from loguru import logger

if TYPE_CHECKING:
    from loguru import Logger, Record

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_CONSOLE_FORMAT = (
    "<dim>{{time:HH:mm:ss}}</dim> | "
    "<level>{{level: <8}}</level> | "
    "<cyan>{name}</cyan> - "
    "<level>{{message}}</level>"
)

_FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
    "{level: <8} | "
    "{extra[name]}:{function}:{line} | "
    "{extra} | "
    "{message}"
)

_configured = False


class InterceptHandler(logging.Handler):
    """Forward standard library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        from types import FrameType

        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk out of the logging module so loguru reports the real caller
        frame: FrameType | None = logging.currentframe()
        depth = 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _has_name(record: Record) -> bool:
    return "name" in record["extra"]


def _lacks_name(record: Record) -> bool:
    return "name" not in record["extra"]


def setup_logging(
    level: LogLevel = "INFO",
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
    serialize: bool = False,
) -> Logger:
    """Configure loguru sinks for the application.

    Args:
        level: Base log level from config
        verbose: Force DEBUG (wins over quiet)
        quiet: Force WARNING
        log_file: Optional path for a rotating file sink (always DEBUG)
        rotation: When to rotate the log file (e.g., "10 MB", "1 day")
        retention: How long to keep rotated logs
        serialize: Write JSON lines to the file sink

    Returns:
        The configured loguru logger
    """
    global _configured

    effective_level: LogLevel
    if verbose:
        effective_level = "DEBUG"
    elif quiet:
        effective_level = "WARNING"
    else:
        effective_level = level

    logger.remove()

    for name_field, record_filter in (("{extra[name]}", _has_name), ("{name}", _lacks_name)):
        logger.add(
            sys.stderr,
            level=effective_level,
            format=_CONSOLE_FORMAT.format(name=name_field),
            colorize=True,
            backtrace=True,
            diagnose=True,
            filter=record_filter,
        )

    if log_file:
        logger.add(
            log_file,
            level="DEBUG",
            format=_FILE_FORMAT,
            rotation=rotation,
            retention=retention,
            compression="gz",
            serialize=serialize,
            filter=_has_name,
        )

    _intercept_stdlib_logging(effective_level)

    _configured = True
    return logger


def _intercept_stdlib_logging(level: LogLevel) -> None:
    """Route stdlib loggers through loguru and quiet the chatty ones."""
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    if level in ("TRACE", "DEBUG"):
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
    else:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    httpx_level = logging.DEBUG if level == "DEBUG" else logging.WARNING
    logging.getLogger("httpx").setLevel(httpx_level)
    logging.getLogger("httpcore").setLevel(httpx_level)


def get_logger(name: str) -> Logger:
    """Get a logger with ``name`` bound as context.

    Usage:
        logger = get_logger(__name__)
        logger.info("Synced {} builds", count)
    """
    return logger.bind(name=name)


def bind_repo(owner: str, repo: str) -> Logger:
    """Logger bound to a single repository sync."""
    return logger.bind(name="sync", repo=f"{owner}/{repo}")


def bind_sweep(trigger: str) -> Logger:
    """Logger bound to one sweep.

    Args:
        trigger: What started the sweep ("scheduled" or "manual")

    Returns:
        Logger with trigger and a short sweep ID bound
    """
    return logger.bind(name="sweep", trigger=trigger, sweep=uuid.uuid4().hex[:8])


class LogContext:
    """Context manager for temporary log context binding.

    Usage:
        with LogContext(repo="acme/widgets"):
            logger.info("Fetching runs")  # carries repo
    """

    def __init__(self, **context: Any) -> None:
        self._context = context
        self._token: Any = None

    def __enter__(self) -> Logger:
        self._token = logger.contextualize(**self._context)
        self._token.__enter__()
        return logger

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        if self._token:
            self._token.__exit__(exc_type, exc_val, exc_tb)


def is_configured() -> bool:
    """Check if logging has been configured."""
    return _configured


def reset_logging() -> None:
    """Reset logging state (primarily for testing)."""
    global _configured
    logger.remove()
    _configured = False
