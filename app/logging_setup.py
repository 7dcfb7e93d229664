"""Central logging configuration for the application.

Applies a root stdout handler so all module loggers emit logs without
requiring per-module setup. The level comes from ``LOG_LEVEL`` (default
INFO). Keeps uvicorn loggers visible and avoids duplicate handlers on reloads.
"""
from __future__ import annotations
import logging
import os
from logging.config import dictConfig


def _dict_config(level: str) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)s:%(name)s:%(message)s",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {
            "uvicorn": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "uvicorn.error": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "sqlalchemy.engine": {"level": "WARNING"},
        },
    }


def configure_logging() -> None:
    """Configure application-wide logging once.

    If the root logger already has handlers, return to prevent duplicate output
    (important under reloaders and pytest's log capture).
    """
    root = logging.getLogger()
    if root.handlers:
        return
    level = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    dictConfig(_dict_config(level))
