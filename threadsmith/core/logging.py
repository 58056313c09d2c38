"""
Structured logging - structlog configuration shared by every module.
Logs are documentation: every event carries the context needed to follow it.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger, Processor


def configure_logging(
    level: str = "INFO",
    json_logs: bool = True,
    log_file: Optional[str] = None
) -> None:
    """
    Configure the structured logging system.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render JSON instead of coloured console output
        log_file: Optional log file path
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
                structlog.processors.CallsiteParameter.FUNC_NAME,
            ]
        ),
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.format_exc_info,
    ]

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        logging.getLogger().addHandler(file_handler)


def get_logger(
    name: str,
    **initial_context: Any
) -> FilteringBoundLogger:
    """
    Return a structured logger.

    Args:
        name: Logger name (usually the module name)
        **initial_context: Context bound to every event
    """
    logger = structlog.get_logger(name)

    if initial_context:
        logger = logger.bind(**initial_context)

    return logger


class LogEvent:
    """Standardised log event names."""

    # Application lifecycle
    APP_STARTED = "app_started"
    APP_STOPPED = "app_stopped"

    # Checker service
    CHECK_REQUESTED = "check_requested"
    CHECK_COMPLETED = "check_completed"
    CHECK_SKIPPED = "check_skipped"
    CHECK_FAILED = "check_failed"
    CHECK_CACHE_HIT = "check_cache_hit"
    CHECK_DISCARDED = "check_discarded_stale_generation"

    # Editing
    SEGMENT_EDITED = "segment_edited"
    SEGMENT_ADDED = "segment_added"
    SEGMENT_REMOVED = "segment_removed"
    SUGGESTION_APPLIED = "suggestion_applied"
    SUGGESTION_STALE = "suggestion_stale_offset"
    SUGGESTION_REJECTED = "suggestion_rejected"
    FIX_ALL_COMPLETED = "fix_all_completed"

    # Persistence
    SAVE_STARTED = "save_started"
    SAVE_COMPLETED = "save_completed"
    SAVE_FAILED = "save_failed"

    # Custom dictionary
    DICTIONARY_UPDATED = "dictionary_updated"
    DICTIONARY_REVERTED = "dictionary_reverted"

