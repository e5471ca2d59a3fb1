"""Structured logging configuration for the throttler.

This module provides a structured logging setup using Python's standard
logging module with optional JSON formatting. Library code only asks for
loggers via ``get_logger``; ``setup_logging`` is left to the application.
"""

import json
import logging
import logging.config
import sys
import traceback
from datetime import datetime
from typing import Any, Dict, Optional

from ratewindow.core.config import settings


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging.
    
    Outputs log records as JSON objects for consumption by log aggregation
    systems.
    
    Attributes:
        fields: List of fields to include in JSON output
    """
    
    # Standard fields always included
    STANDARD_FIELDS = ["name", "levelname", "message", "timestamp"]
    
    # Contextual fields for admission tracking
    CONTEXT_FIELDS = [
        "throttler",     # Throttler name
        "limit_index",   # Index of the limit that forced a wait
        "position",      # Ring buffer cursor
        "capacity",      # Ring buffer size
        "wait_seconds",  # Computed sleep before the next retry
    ]
    
    _RESERVED = frozenset((
        "name", "msg", "args", "levelname", "levelno", "pathname",
        "filename", "module", "exc_info", "exc_text", "stack_info",
        "lineno", "funcName", "created", "msecs", "relativeCreated",
        "thread", "threadName", "processName", "process", "message",
        "asctime", "timestamp", "logger", "level", "source", "taskName",
    ))
    
    def __init__(
        self,
        fields: Optional[list] = None,
        datefmt: Optional[str] = None,
    ):
        super().__init__(datefmt=datefmt)
        self.fields = fields or (self.STANDARD_FIELDS + self.CONTEXT_FIELDS)
    
    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.
        
        Args:
            record: Log record to format
            
        Returns:
            JSON string representation of the log record
        """
        log_data: Dict[str, Any] = {}
        
        record.message = record.getMessage()
        
        log_data["timestamp"] = datetime.now().astimezone().isoformat()
        log_data["level"] = record.levelname
        log_data["logger"] = record.name
        log_data["message"] = record.message
        
        log_data["source"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
        }
        
        for field in self.CONTEXT_FIELDS:
            if hasattr(record, field):
                value = getattr(record, field)
                if value is not None:
                    log_data[field] = value
        
        for key, value in record.__dict__.items():
            if key in self._RESERVED or key in self.CONTEXT_FIELDS:
                continue
            log_data.setdefault("extra", {})[key] = value
        
        if record.exc_info and record.exc_info != (None, None, None):
            log_data["exception"] = traceback.format_exception(*record.exc_info)
        
        return json.dumps(log_data, default=str, ensure_ascii=False)


class ContextFilter(logging.Filter):
    """Logging filter that adds contextual fields to log records.
    
    Records logged outside the throttler get ``None`` for every context
    field so format strings referencing them never fail.
    """
    
    CONTEXT_DEFAULTS = {
        "throttler": None,
        "limit_index": None,
        "position": None,
        "capacity": None,
        "wait_seconds": None,
    }
    
    def filter(self, record: logging.LogRecord) -> bool:
        for field, default in self.CONTEXT_DEFAULTS.items():
            if not hasattr(record, field):
                setattr(record, field, default)
        return True


def get_logging_config() -> Dict[str, Any]:
    """Get logging configuration dictionary.
    
    Returns:
        Logging configuration dict compatible with logging.config.dictConfig
    """
    log_format = getattr(settings, "log_format", "text").lower()
    log_level = getattr(settings, "log_level", "INFO").upper()
    
    formatters = {
        "standard": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        },
        "structured": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s - throttler=%(throttler)s - position=%(position)s/%(capacity)s - wait_seconds=%(wait_seconds)s"
        },
    }
    
    if log_format == "json":
        formatters["json"] = {
            "()": "ratewindow.core.logging.JSONFormatter",
        }
        default_formatter = "json"
    else:
        default_formatter = "structured" if log_format == "structured" else "standard"
    
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "level": log_level,
            "formatter": default_formatter,
            "stream": sys.stdout,
            "filters": ["context"],
        },
    }
    
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": {
            "context": {
                "()": "ratewindow.core.logging.ContextFilter",
            },
        },
        "handlers": handlers,
        "loggers": {
            "ratewindow": {
                "level": log_level,
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def setup_logging() -> None:
    """Configure logging for an application using the throttler."""
    logging.config.dictConfig(get_logging_config())


def get_logger(name: str = "ratewindow") -> logging.Logger:
    """Get a logger instance with the specified name.
    
    Args:
        name: Logger name, defaults to "ratewindow"
        
    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def get_log_context(
    throttler: Optional[str] = None,
    limit_index: Optional[int] = None,
    position: Optional[int] = None,
    capacity: Optional[int] = None,
    wait_seconds: Optional[float] = None,
    **extra
) -> Dict[str, Any]:
    """Create a log context dictionary for use with the extra parameter.
    
    Example:
        >>> logger.debug(
        ...     "Cannot execute now",
        ...     extra=get_log_context(throttler="api", wait_seconds=0.25)
        ... )
    """
    context = {
        "throttler": throttler,
        "limit_index": limit_index,
        "position": position,
        "capacity": capacity,
        "wait_seconds": wait_seconds,
    }
    context.update(extra)
    return {k: v for k, v in context.items() if v is not None}
