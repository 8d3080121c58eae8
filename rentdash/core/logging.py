"""Logging configuration."""

import logging.config

from rentdash.core.config import settings


def build_logging_config(level: str | None = None, json_logs: bool | None = None) -> dict:
    """Build a dictConfig mapping for console logging."""
    level = (level or settings.LOG_LEVEL).upper()
    json_logs = settings.LOG_JSON if json_logs is None else json_logs

    if json_logs:
        formatter = {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        }
    else:
        formatter = {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s"}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": formatter},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
            },
        },
        "loggers": {
            "rentdash": {
                "handlers": ["console"],
                "level": level,
                "propagate": False,
            },
        },
        "root": {"handlers": ["console"], "level": "WARNING"},
    }


def setup_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """Configure logging for the application and the CLI."""
    logging.config.dictConfig(build_logging_config(level, json_logs))
