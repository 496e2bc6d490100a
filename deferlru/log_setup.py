"""structlog configuration for command-line use.

The library itself only calls ``structlog.get_logger``; applications decide
how events are rendered.
"""

import logging
import sys

import structlog


def configure_logging(level: str | int = "WARNING") -> None:
    """Render structlog events to stderr, dropping those below *level*."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        # resolve sys.stderr per call so redirected streams are honoured
        logger_factory=lambda *args: structlog.PrintLogger(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
