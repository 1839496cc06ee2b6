"""structlog configuration for the pagination engine.

Modules log through ``structlog.get_logger()`` with key-value events. The
host app calls configure_logging() once at startup; without it, structlog's
defaults apply.
"""

import logging

import structlog


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog with a level filter and console rendering.

    Args:
        level: Logging level name (e.g., "INFO", "DEBUG").
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelNamesMapping()[level.upper()]
        ),
        cache_logger_on_first_use=False,
    )
