"""
Logging for the order watcher.
Every line is a JSON object on stdout so tick summaries and per-call
failures can be grepped by field.
"""

import logging
import sys

import structlog
from structlog.stdlib import LoggerFactory

NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(log_level: str = "INFO") -> None:
    """Route structlog through stdlib logging at ``log_level``; call once at startup."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    # Per-request lines from the tracker client drown out tick summaries
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def log_tick_summary(summary: dict) -> None:
    """Emit one line per poll tick; ticks with errors are logged as warnings."""
    logger = get_logger("poll_loop")

    log_data = {**summary, "job_run": "poll_tick"}

    if summary.get("errored"):
        logger.warning("Poll tick completed with errors", **log_data)
    else:
        logger.info("Poll tick completed", **log_data)
