"""structlog setup for processes embedding the token exchange."""

import logging

import structlog


def configure_logging(log_level_name: str, json_output: bool = False) -> None:
    """Configure structlog for logfmt (or JSON) output."""
    log_level = getattr(logging, log_level_name.upper(), logging.INFO)
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.processors.LogfmtRenderer(
            key_order=("timestamp", "level", "msg"),
        )
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.EventRenamer("msg"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
