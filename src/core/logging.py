"""Logging setup shared by the API process and migrations."""

import logging
from logging.config import dictConfig

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Route application and uvicorn logs through a single stream handler."""
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"format": LOG_FORMAT}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "loggers": {
                "src": {"handlers": ["console"], "level": level.upper(), "propagate": False},
                "uvicorn.error": {"level": level.upper()},
            },
            "root": {"handlers": ["console"], "level": logging.WARNING},
        }
    )
