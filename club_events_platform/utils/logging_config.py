"""
Logging configuration for the Club Events Platform.
"""

import json
import logging
import logging.config
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from ..config import get_settings

APP_LOGGER = "club_events_platform"


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    enable_json_logging: bool = False,
) -> None:
    """
    Set up logging for the application, uvicorn, SQLAlchemy, Redis and Celery.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path; enables a rotating file handler
        enable_json_logging: Emit one JSON object per record
    """
    settings = get_settings()

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    formatter = "json" if enable_json_logging else "detailed"
    filters = ["request_id"]
    if not settings.log_sensitive_data:
        filters.append("sensitive_data")

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S"
            },
            "detailed": {
                "format": (
                    "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d "
                    "[%(request_id)s] %(message)s"
                ),
                "datefmt": "%Y-%m-%d %H:%M:%S"
            },
            "json": {
                "()": f"{APP_LOGGER}.utils.logging_config.JSONFormatter",
            }
        },
        "filters": {
            "request_id": {
                "()": f"{APP_LOGGER}.utils.logging_config.RequestIDFilter"
            },
            "sensitive_data": {
                "()": f"{APP_LOGGER}.utils.logging_config.SensitiveDataFilter"
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": formatter,
                "stream": sys.stdout,
                "filters": filters
            }
        },
        "loggers": {
            APP_LOGGER: {"level": log_level, "handlers": ["console"], "propagate": False},
            "uvicorn": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "sqlalchemy.engine": {"level": "WARNING", "handlers": ["console"], "propagate": False},
            "sqlalchemy.pool": {"level": "WARNING", "handlers": ["console"], "propagate": False},
            "redis": {"level": "WARNING", "handlers": ["console"], "propagate": False},
            "celery": {"level": "INFO", "handlers": ["console"], "propagate": False},
        },
        "root": {
            "level": log_level,
            "handlers": ["console"]
        }
    }

    if log_file:
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": log_level,
            "formatter": formatter,
            "filename": log_file,
            "maxBytes": 10 * 1024 * 1024,  # 10MB
            "backupCount": 5,
            "filters": filters
        }
        for logger_config in config["loggers"].values():
            logger_config["handlers"].append("file")
        config["root"]["handlers"].append("file")

    # Partial failures and other operator-facing errors get their own file in production
    if settings.environment == "production":
        error_file = log_file.replace(".log", "_errors.log") if log_file else "logs/errors.log"
        Path(error_file).parent.mkdir(parents=True, exist_ok=True)

        config["handlers"]["error_file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "ERROR",
            "formatter": formatter,
            "filename": error_file,
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 10,
            "filters": filters
        }
        config["loggers"][APP_LOGGER]["handlers"].append("error_file")

    logging.config.dictConfig(config)


class RequestIDFilter(logging.Filter):
    """Filter to add the current request ID to log records."""

    def filter(self, record):
        request_id = getattr(record, "request_id", None)

        if not request_id:
            from ..middleware.logging import request_id_var
            request_id = request_id_var.get() or "no-request-id"

        record.request_id = request_id
        return True


class SensitiveDataFilter(logging.Filter):
    """Filter to mask tokens and secrets in log records."""

    SENSITIVE_KEYS = {
        "token", "secret", "authorization", "cookie", "api_key",
        "access_token", "id_token", "mobile_number"
    }

    # Compact JWTs: three base64url segments
    TOKEN_PATTERN = re.compile(r"\beyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+")

    def filter(self, record):
        if isinstance(record.msg, str):
            record.msg = self._sanitize_string(record.msg)

        for key in self.SENSITIVE_KEYS:
            if key in record.__dict__:
                setattr(record, key, "***MASKED***")

        for key, value in list(record.__dict__.items()):
            if isinstance(value, dict):
                setattr(record, key, self._sanitize_data(value))

        return True

    def _sanitize_string(self, text: str) -> str:
        return self.TOKEN_PATTERN.sub("***TOKEN***", text)

    def _sanitize_data(self, data):
        """Recursively mask sensitive keys."""
        if isinstance(data, dict):
            return {
                key: "***MASKED***" if str(key).lower() in self.SENSITIVE_KEYS
                else self._sanitize_data(value)
                for key, value in data.items()
            }
        if isinstance(data, str):
            return self._sanitize_string(data)
        if isinstance(data, (list, tuple)):
            return type(data)(self._sanitize_data(item) for item in data)
        return data


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    RESERVED_ATTRS = {
        "name", "msg", "args", "levelname", "levelno", "pathname",
        "filename", "module", "lineno", "funcName", "created",
        "msecs", "relativeCreated", "thread", "threadName", "taskName",
        "processName", "process", "exc_info", "exc_text", "stack_info",
        "request_id", "message", "asctime"
    }

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if hasattr(record, "request_id"):
            log_entry["request_id"] = record.request_id

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra_fields = {
            key: value for key, value in record.__dict__.items()
            if key not in self.RESERVED_ATTRS
        }
        if extra_fields:
            log_entry["extra"] = extra_fields

        return json.dumps(log_entry, default=str, ensure_ascii=False)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name."""
    return logging.getLogger(name)


def log_business_event(event_type: str, details: Dict[str, Any], user_id: Optional[str] = None):
    """Log a business event such as a confirmed registration."""
    logger = get_logger(f"{APP_LOGGER}.business")
    logger.info(
        f"Business event: {event_type}",
        extra={
            "event_type": event_type,
            "business_event": True,
            "user_id": user_id,
            **details
        }
    )


def log_security_event(event_type: str, details: Dict[str, Any], severity: str = "WARNING"):
    """Log security-related events such as rejected identity tokens."""
    logger = get_logger(f"{APP_LOGGER}.security")

    log_method = getattr(logger, severity.lower(), logger.warning)
    log_method(
        f"Security event: {event_type}",
        extra={
            "event_type": event_type,
            "security_event": True,
            "severity": severity,
            **details
        }
    )
