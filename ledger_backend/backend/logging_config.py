"""
PATH: backend/logging_config.py

LOGGING CONFIGURATION

Builds the Django LOGGING dict.

Inputs (from settings / env):
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: DEBUG in dev, INFO otherwise)
- LOG_FORMAT: "verbose" or "simple" (default: verbose)

Application loggers:
- accounting.*  (posting, reversal, reconciliation)
- inventory.*   (movements, cancellations)
- tenants.*     (provisioning)
"""

from __future__ import annotations

APP_LOGGERS = ("accounting", "inventory", "tenants")


def get_logging_config(*, debug: bool = False, level: str = "", fmt: str = "") -> dict:
    log_level = (level or ("DEBUG" if debug else "INFO")).upper()
    formatter = fmt.lower() if fmt.lower() in ("verbose", "simple") else "verbose"

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "verbose": {
                "format": "[{asctime}] {levelname} {name} {message}",
                "style": "{",
            },
            "simple": {
                "format": "{levelname} {message}",
                "style": "{",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
            },
            "null": {
                "class": "logging.NullHandler",
            },
        },
        "loggers": {
            "": {
                "handlers": ["console"],
                "level": log_level,
            },
            "django": {
                "handlers": ["console"],
                "level": log_level,
                "propagate": False,
            },
            "django.db.backends": {
                "handlers": ["null"],
                "level": "INFO",
                "propagate": False,
            },
        },
    }

    for name in APP_LOGGERS:
        config["loggers"][name] = {
            "handlers": ["console"],
            "level": log_level,
            "propagate": False,
        }

    return config
