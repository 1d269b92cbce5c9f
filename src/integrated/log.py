"""Logging setup for the CLI and the pytest plugin."""

import logging
import sys

import structlog

LEVELS = ("debug", "info", "warning", "error")


def _stderr_logger(*args):
    # Looked up per logger so redirected streams (pytest capture) are honored.
    return structlog.PrintLogger(sys.stderr)


def configure_logging(level: str = "warning") -> None:
    """Configure structlog for console output at the given level."""
    log_level = getattr(logging, level.upper(), logging.WARNING)

    logging.basicConfig(format="%(message)s", level=log_level)

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )
