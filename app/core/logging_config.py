"""
Logging setup: console handler always, rotating file handler when LOG_FILE is set.
Call setup_logging() once at application startup.
"""
import logging
import logging.config

from app.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 5


def setup_logging() -> None:
    """Configure root logging from settings (LOG_LEVEL, LOG_FILE).
    Why available: Scheduler, orchestrator and HTTP middleware log through module loggers; this gives them one format and destination."""
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "level": settings.log_level,
            "formatter": "default",
        },
    }
    if settings.log_file:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "formatter": "default",
            "filename": settings.log_file,
            "maxBytes": LOG_MAX_BYTES,
            "backupCount": LOG_BACKUP_COUNT,
            "encoding": "utf8",
        }

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": {"format": LOG_FORMAT}},
        "handlers": handlers,
        "root": {
            "level": "DEBUG" if settings.log_file else settings.log_level,
            "handlers": list(handlers),
        },
    })
    logging.getLogger(__name__).info("Logging configured (level=%s, file=%s)", settings.log_level, settings.log_file or "-")
