"""Logging configuration utilities."""

import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, List, Optional

from authgate.config import Settings, get_settings

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
MAX_LOG_BYTES = 10485760
LOG_BACKUP_COUNT = 10


def get_logging_config(settings: Optional[Settings] = None) -> Dict[str, Any]:
    """
    Get logging configuration dictionary.

    The rotating file handlers are only configured when ``log_file`` is set.

    Args:
        settings: Application settings, defaults to the cached instance

    Returns:
        Logging configuration for dictConfig
    """
    settings = settings or get_settings()
    formatter = "json" if settings.log_format == "json" else "standard"

    handlers: Dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": settings.log_level,
            "formatter": formatter,
            "stream": "ext://sys.stdout",
        },
    }
    app_handlers: List[str] = ["console"]
    celery_handlers: List[str] = ["console"]

    if settings.log_file:
        log_path = Path(settings.log_file)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": settings.log_level,
            "formatter": formatter,
            "filename": str(log_path),
            "maxBytes": MAX_LOG_BYTES,
            "backupCount": LOG_BACKUP_COUNT,
        }
        handlers["celery_file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": settings.log_level,
            "formatter": formatter,
            "filename": str(log_path.with_name("celery.log")),
            "maxBytes": MAX_LOG_BYTES,
            "backupCount": LOG_BACKUP_COUNT,
        }
        app_handlers.append("file")
        celery_handlers.append("celery_file")

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": TEXT_FORMAT,
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {
                "class": "pythonjsonlogger.json.JsonFormatter",
                "format": JSON_FORMAT,
            },
        },
        "handlers": handlers,
        "loggers": {
            "authgate": {
                "level": settings.log_level,
                "handlers": app_handlers,
                "propagate": False,
            },
            "celery": {
                "level": settings.log_level,
                "handlers": celery_handlers,
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
            "httpx": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
        "root": {
            "level": settings.log_level,
            "handlers": ["console"],
        },
    }


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Setup logging configuration."""
    settings = settings or get_settings()

    if settings.log_file:
        Path(settings.log_file).parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(get_logging_config(settings))

    logger = logging.getLogger("authgate")
    logger.info("Logging configured successfully")
