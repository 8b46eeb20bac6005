import logging
import logging.config
import os

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,  # keep uvicorn/fastapi loggers
    "formatters": {
        "default": {"format": LOG_FORMAT},
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": "INFO",
            "formatter": "default",
        },
    },
    "root": {"level": "INFO", "handlers": ["console"]},
    "loggers": {
        "uvicorn.error": {"level": "INFO", "handlers": ["console"], "propagate": False},
        "uvicorn.access": {"level": "INFO", "handlers": ["console"], "propagate": False},
        "core": {"level": "INFO", "handlers": ["console"], "propagate": False},
        "api": {"level": "INFO", "handlers": ["console"], "propagate": False},
        "sheetguard": {"level": "INFO", "handlers": ["console"], "propagate": False},
    },
}


def setup_logging(level=None):
    level = (level or os.environ.get("SHEETGUARD_LOG_LEVEL") or "INFO").upper()
    config = {**LOGGING, "loggers": {name: {**cfg, "level": level} for name, cfg in LOGGING["loggers"].items()}}
    config["handlers"] = {"console": {**LOGGING["handlers"]["console"], "level": level}}
    logging.config.dictConfig(config)
