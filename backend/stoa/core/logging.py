"""Logging setup for the planner service.

Every record carries the request id bound by ``RequestIDMiddleware`` ("-"
outside a request). Provider SDK and SQL loggers are held at WARNING unless
``debug`` is on, since they log full prompts and statements at INFO.
"""
from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Dict

from stoa.core.context import get_request_id

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s"
NOISY_LOGGERS = ("openai", "httpx", "httpcore", "opik", "sqlalchemy.engine")


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - minimal logic
        record.request_id = get_request_id() or "-"
        return True


def _library_loggers(debug: bool) -> Dict[str, Dict[str, object]]:
    level = "DEBUG" if debug else "WARNING"
    return {name: {"level": level} for name in NOISY_LOGGERS}


def configure_logging(*, log_level: str = "INFO", debug: bool = False) -> None:
    """Configure logging once; later calls are ignored."""
    if getattr(configure_logging, "_configured", False):
        return

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"format": LOG_FORMAT}},
            "filters": {"request_id": {"()": RequestIdFilter}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "level": "DEBUG" if debug else log_level,
                    "filters": ["request_id"],
                }
            },
            "loggers": {"stoa": {"level": log_level}, **_library_loggers(debug)},
            "root": {"handlers": ["console"], "level": log_level},
        }
    )

    logging.getLogger(__name__).debug("Logging configured at %s (debug=%s)", log_level, debug)
    setattr(configure_logging, "_configured", True)
