import logging
import logging.config
import os
from app.core.config import settings

# Review decisions and reward grants are also written to audit.log
AUDITED_LOGGERS = ("app.services.enrollment", "app.services.reward", "app.services.promo_code")


def _rotating_file(filename: str, level: str) -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "detailed",
        "filename": os.path.join(settings.LOG_DIR, filename),
        "maxBytes": 10485760,
        "backupCount": 5
    }


def build_logging_config() -> dict:
    level = settings.LOG_LEVEL.upper()
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - [%(module)s:%(lineno)d] - %(message)s"
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": "ext://sys.stdout"
            },
            "file": _rotating_file("app.log", level),
            "error_file": _rotating_file("error.log", "ERROR"),
            "audit_file": _rotating_file("audit.log", "INFO"),
        },
        "root": {
            "level": level,
            "handlers": ["console", "file", "error_file"]
        },
        "loggers": {
            "app": {
                "level": level,
                "handlers": ["console", "file", "error_file"],
                "propagate": False
            },
            "app.middleware.logging": {
                "level": "INFO",
                "handlers": ["console", "file"],
                "propagate": False
            },
            "uvicorn.access": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False
            }
        }
    }
    for name in AUDITED_LOGGERS:
        config["loggers"][name] = {
            "level": "INFO",
            "handlers": ["console", "file", "error_file", "audit_file"],
            "propagate": False
        }
    if settings.TESTING:
        # Keep pytest output readable; files still receive everything
        config["handlers"]["console"]["level"] = "WARNING"
    return config


def configure_logging():
    os.makedirs(settings.LOG_DIR, exist_ok=True)
    logging.config.dictConfig(build_logging_config())
