# Trigger watcher entrypoint, exactly one instance per deployment:
#   python watcher.py
import logging.config

from app.core.config import settings
from app.core.firebase import get_db
from app.tasks.notification_watcher import run_forever

LOG_LEVEL = "INFO" if settings.ENVIRONMENT == "production" else "DEBUG"

logging.config.dictConfig({
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {"format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "default"},
    },
    "loggers": {
        "khoi": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
})


if __name__ == "__main__":
    run_forever(get_db())
