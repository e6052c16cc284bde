"""Logging configuration for the command line entry point."""

import logging
import sys

import structlog


def configure_logging(debug: bool = False, json_logs: bool = False) -> None:
    """Configure structlog to render key/value events on standard error.

    Standard output stays free for the run summary.

    Args:
        debug: Emit debug events as well.
        json_logs: Render events as JSON lines instead of console output.
    """
    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if debug else logging.INFO),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
