"""
Structured logging for GDPR permission checks.

JSON (or console) output through structlog with a request id taken
from a context variable, a fixed service field and consent strings
cut down to a short prefix.
"""

import logging
import os
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Any

import structlog

# Context variable for request ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id() -> str:
    """Get the current request ID from context."""
    return request_id_var.get()


def set_request_id(request_id: str) -> None:
    """Set the request ID in context."""
    request_id_var.set(request_id)


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return f"{int(time.time())}-{uuid.uuid4().hex[:8]}"


def add_request_id(
    logger: structlog.typing.WrappedLogger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Processor to add request ID to log entries."""
    request_id = get_request_id()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def add_service_info(
    logger: structlog.typing.WrappedLogger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Processor to add service info to log entries."""
    event_dict["service"] = "gdpr"
    return event_dict


# Consent strings identify a user's choices; only a prefix is logged
CONSENT_LOG_PREFIX = 12


def truncate_consent(
    logger: structlog.typing.WrappedLogger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Processor to shorten consent strings in log entries."""
    consent = event_dict.get("consent")
    if isinstance(consent, str) and len(consent) > CONSENT_LOG_PREFIX:
        event_dict["consent"] = f"{consent[:CONSENT_LOG_PREFIX]}...({len(consent)} chars)"
    return event_dict


def configure_logging(
    level: str = "INFO",
    format: str = "json",
    show_timestamps: bool = True,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format: Output format ('json' or 'console')
        show_timestamps: Whether to include timestamps
    """
    level = os.getenv("LOG_LEVEL", level).upper()
    format = os.getenv("LOG_FORMAT", format).lower()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level, logging.INFO),
    )

    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        add_request_id,
        add_service_info,
        truncate_consent,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if show_timestamps:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if format == "console":
        processors.append(
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
        )
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structured logger
    """
    return structlog.get_logger(name)


def permissions_logger() -> structlog.stdlib.BoundLogger:
    """Get logger for permission decisions."""
    return get_logger("gdpr.permissions")


def vendorlist_logger() -> structlog.stdlib.BoundLogger:
    """Get logger for vendor list fetching."""
    return get_logger("gdpr.vendorlist")


class LogContext:
    """Context manager for request-scoped logging."""

    def __init__(self, request_id: str | None = None, **initial_context: Any):
        """
        Initialize log context.

        Args:
            request_id: Optional request ID (generated if not provided)
            **initial_context: Additional context to bind
        """
        self.request_id = request_id or generate_request_id()
        self.initial_context = initial_context
        self.token = None

    def __enter__(self) -> "LogContext":
        self.token = request_id_var.set(self.request_id)
        if self.initial_context:
            structlog.contextvars.bind_contextvars(**self.initial_context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        request_id_var.reset(self.token)
        structlog.contextvars.clear_contextvars()


# Initialize with defaults on module load
configure_logging()
