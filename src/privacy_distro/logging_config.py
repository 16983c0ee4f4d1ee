import logging
import logging.config
import os
import sys

LOG_LEVEL = os.getenv("PRIVACY_DISTRO_LOG_LEVEL", "INFO").upper()


def build_logging_config(level: str = LOG_LEVEL) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)-6s %(name)s:%(lineno)d %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": sys.stdout,
            },
        },
        "loggers": {
            "privacy_distro": {
                "level": level,
                "handlers": ["console"],
                "propagate": False,
            },
            # Request lines from the HTTP clients are noise at INFO
            "httpx": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
            "uvicorn.access": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
        "root": {
            "level": "WARNING",
            "handlers": ["console"],
        },
    }


LOGGING_CONFIG = build_logging_config()


def setup_logging(level: str | None = None):
    """ Apply the logging configuration. """
    logging.config.dictConfig(build_logging_config(level.upper()) if level else LOGGING_CONFIG)
