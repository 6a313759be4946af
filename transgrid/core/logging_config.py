"""
Logging setup shared by the API process, the console and the test suite.

All modules log through ``logging.getLogger(__name__)``; this module wires the
handlers once and keeps chatty third-party libraries at WARNING.
"""
from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any, Dict, Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that log every request/object at INFO or DEBUG.
_QUIET_LOGGERS = ("botocore", "boto3", "urllib3", "s3transfer", "multipart")

_is_configured = False


def _logging_config(log_level: str) -> Dict[str, Any]:
    loggers = {name: {"level": "WARNING"} for name in _QUIET_LOGGERS}
    loggers["transgrid"] = {"level": log_level}
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"standard": {"format": LOG_FORMAT, "datefmt": LOG_DATE_FORMAT}},
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "standard", "level": log_level},
        },
        "root": {"handlers": ["console"], "level": log_level},
        "loggers": loggers,
    }


def configure_logging(level: Optional[str] = None, *, force: bool = False) -> None:
    """
    Configure the root logger and the ``transgrid`` namespace.

    Args:
        level: Log level name (e.g. "DEBUG"); defaults to INFO.
        force: Re-apply the configuration even if it was already applied.
    """
    global _is_configured

    if _is_configured and not force:
        return

    dictConfig(_logging_config((level or "INFO").upper()))
    logging.getLogger(__name__).debug("Logging configured")
    _is_configured = True
