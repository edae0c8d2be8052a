"""Structured logging foundation for polyredeem.

Provides JSON logging (prod) or colored console (dev) via structlog.
Includes an audit trail logger for redemption lifecycle events.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, cast

import structlog


def _configure_structlog() -> None:
    """Configure structlog based on POLYREDEEM_ENV."""
    env = os.environ.get("POLYREDEEM_ENV", "development")
    log_level_name = os.environ.get("POLYREDEEM_LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(log_level_name)
    if not isinstance(level, int):
        level = logging.INFO

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if env == "production":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    _LOG_LEVELS["current"] = log_level_name


_LOG_LEVELS: dict[str, str] = {"current": "INFO"}
_CONFIGURED = False


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a named logger instance.

    Args:
        name: Logger name (typically module __name__).

    Returns:
        Configured structlog logger.
    """
    global _CONFIGURED
    if not _CONFIGURED:
        _configure_structlog()
        _CONFIGURED = True

    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))


def get_audit_logger() -> structlog.stdlib.BoundLogger:
    """Get the audit trail logger for redemption attempts and outcomes."""
    return get_logger("polyredeem.audit")


def mask_secret(value: str) -> str:
    """Mask all but the last 4 characters of a secret."""
    if len(value) <= 4:
        return "****"
    return "*" * (len(value) - 4) + value[-4:]


def log_redemption_event(
    action: str,
    condition_id: str,
    **kwargs: Any,
) -> None:
    """Log a redemption lifecycle event to the audit trail.

    Args:
        action: Event type (submit, confirmed, failed, pruned, dry_run).
        condition_id: Market condition id.
        **kwargs: Additional context (tx_hash, error, etc).
    """
    logger = get_audit_logger()
    logger.info(
        "redemption_event",
        event_type="audit",
        action=action,
        condition_id=condition_id[:16],
        **kwargs,
    )
