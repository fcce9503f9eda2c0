"""
Logging setup.

Modules log through ``structlog.get_logger(__name__)`` with event-name
messages and key/value context. Scripts call `configure_logging` once at
startup; library code never configures logging itself.
"""

import logging
from datetime import datetime, timezone

import structlog


def _timestamp_processor(logger, method_name, event_dict):
    """Add a compact UTC timestamp."""
    event_dict["timestamp"] = datetime.now(timezone.utc).strftime("%H:%M:%S")
    return event_dict


def configure_logging(level: str = "INFO") -> None:
    """
    Configure structlog for human-readable console output.

    Args:
        level: Minimum level name ("DEBUG", "INFO", "WARNING", ...).

    Raises:
        ValueError: If `level` is not a known logging level name.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    structlog.configure(
        processors=[
            _timestamp_processor,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
