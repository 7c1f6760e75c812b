"""
Structured logging for session lifecycle events.

This module provides:
- A JSON formatter for log files
- Session event logging with structured context
- Application logging setup driven by Config
"""

import logging
import json
import traceback
from datetime import datetime, timezone
from typing import Any, Dict

from .config import Config
from .utils import setup_logging, get_logger


# LogRecord attributes that are not user-supplied ``extra`` context
_RESERVED_ATTRS = frozenset((
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'getMessage', 'exc_info',
    'exc_text', 'stack_info', 'taskName', 'message', 'asctime'
))


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured JSON logging."""

    def __init__(self, include_extra: bool = True):
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            log_data['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': traceback.format_exception(*record.exc_info)
            }

        if self.include_extra:
            for key, value in record.__dict__.items():
                if key not in _RESERVED_ATTRS:
                    log_data[key] = value

        return json.dumps(log_data, default=str)


def log_session_event(logger: logging.Logger, event: str, **context: Any) -> None:
    """Log a session lifecycle event with standardized context."""
    logger.info(
        f"Session event: {event}",
        extra={
            'session_event': event,
            **context
        }
    )


def configure_logging(config: Config) -> logging.Logger:
    """
    Set up application logging from configuration.

    Args:
        config: Application configuration

    Returns:
        logging.Logger: The configured application logger
    """
    formatter = StructuredFormatter() if config.structured_logs else None
    logger = setup_logging(config.log_level, config.log_file, formatter=formatter)

    # Socket Mode internals are noisy at INFO
    logging.getLogger("slack_sdk").setLevel(
        max(logging.WARNING, logger.level)
    )

    get_logger(__name__).debug("Logging configured", extra={'config': _loggable(config)})
    return logger


def _loggable(config: Config) -> Dict[str, Any]:
    return {key: value for key, value in config.to_dict().items() if value is not None}
