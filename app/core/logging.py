import logging
import logging.config
from pathlib import Path

from app.core.config import settings

LOG_DIR = Path("logs")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_ROTATING = {
    "class": "logging.handlers.RotatingFileHandler",
    "formatter": "default",
    "maxBytes": 10485760,
    "backupCount": 5,
}


def build_logging_config(level: str = "INFO") -> dict:
    """dictConfig for the API process. Grading loggers also write to grading.log."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": LOG_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
            "file": {**_ROTATING, "level": level, "filename": str(LOG_DIR / "app.log")},
            "grading_file": {**_ROTATING, "level": level, "filename": str(LOG_DIR / "grading.log")},
            "error_file": {**_ROTATING, "level": "ERROR", "filename": str(LOG_DIR / "error.log")},
        },
        "root": {
            "level": level,
            "handlers": ["console", "file", "error_file"],
        },
        "loggers": {
            "app.services.grading_worker": {
                "level": level,
                "handlers": ["console", "grading_file", "error_file"],
                "propagate": False,
            },
            "app.services.feedback": {
                "level": level,
                "handlers": ["console", "grading_file", "error_file"],
                "propagate": False,
            },
            "app.core.scheduler": {
                "level": level,
                "handlers": ["console", "grading_file"],
                "propagate": False,
            },
            "app.middleware.logging": {
                "level": level,
                "handlers": ["console", "file"],
                "propagate": False,
            },
            # httpx logs every outgoing request at INFO
            "httpx": {"level": "WARNING"},
            "uvicorn.access": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
            "apscheduler": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def configure_logging():
    LOG_DIR.mkdir(exist_ok=True)
    logging.config.dictConfig(build_logging_config(settings.LOG_LEVEL.upper()))
