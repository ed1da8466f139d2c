"""Structured logging configuration for whoowns.

Provides JSON-formatted logs for automation and human-readable
logs for interactive use.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from .config import get_settings

# Attributes every LogRecord carries; anything else came in through ``extra``
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Fields passed through ``extra=``
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_data[key] = value

        if record.funcName:
            log_data["function"] = record.funcName
        if record.lineno:
            log_data["line"] = record.lineno

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable log formatter."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def setup_logging(level: str | None = None) -> None:
    """Configure logging based on settings.

    Args:
        level: Optional level name overriding the configured one
    """
    settings = get_settings()

    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)

    # Logs go to stderr so command output on stdout stays machine readable
    handler = logging.StreamHandler(sys.stderr)

    if settings.log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(TextFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    # Suppress noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    get_logger(__name__).debug(
        "Logging initialized",
        extra={"log_level": logging.getLevelName(log_level), "log_format": settings.log_format},
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


class LoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds context to all log messages."""

    def process(
        self, msg: str, kwargs: dict[str, Any]
    ) -> tuple[str, dict[str, Any]]:
        """Process the logging message and add extra context."""
        extra = kwargs.get("extra", {})
        extra.update(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs


def get_context_logger(name: str, **context: Any) -> LoggerAdapter:
    """Get a logger with additional context.

    Args:
        name: Logger name
        **context: Context fields to add to all log messages

    Returns:
        Logger adapter with context

    Usage:
        logger = get_context_logger(__name__, repo="octo/widgets")
        logger.info("Loaded manifest")  # Includes repo
    """
    return LoggerAdapter(get_logger(name), context)


# =========================
# Convenience functions
# =========================


def log_resolution_start(run_id: str, path: str, pattern: str, owners: int) -> None:
    """Log the start of a resolution run."""
    logger = get_logger("whoowns.resolution")
    logger.info(
        f"Resolving {owners} owner(s) for {path} via {pattern}",
        extra={
            "run_id": run_id,
            "path": path,
            "pattern": pattern,
            "owner_count": owners,
            "event": "resolution_start",
        },
    )


def log_resolution_complete(
    run_id: str,
    identities: int,
    errors: int,
    duration_seconds: float,
    timed_out: bool = False,
    cancelled: bool = False,
) -> None:
    """Log the completion of a resolution run."""
    logger = get_logger("whoowns.resolution")
    if cancelled:
        status = "cancelled"
    elif timed_out:
        status = "timed out"
    else:
        status = "complete"
    level = logging.WARNING if timed_out or cancelled else logging.INFO
    logger.log(
        level,
        f"Resolution {status}: "
        f"{identities} identities, {errors} errors",
        extra={
            "run_id": run_id,
            "identity_count": identities,
            "error_count": errors,
            "duration_seconds": duration_seconds,
            "timed_out": timed_out,
            "cancelled": cancelled,
            "event": "resolution_complete",
        },
    )


def log_lookup_error(run_id: str, token: str, error: BaseException) -> None:
    """Log a failed owner expansion."""
    logger = get_logger("whoowns.resolution")
    logger.warning(
        f"Failed to expand {token}: {error}",
        extra={
            "run_id": run_id,
            "token": token,
            "error": str(error),
            "error_type": type(error).__name__,
            "event": "lookup_error",
        },
    )
