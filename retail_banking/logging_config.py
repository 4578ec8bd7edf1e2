"""
Structured Logging Configuration Module

Provides JSON-formatted structured logging for transfer and account operations.
"""

import logging
import json
from datetime import datetime, timezone
from typing import Optional


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "user_id": getattr(record, 'user_id', None),
            "action": getattr(record, 'action', None),
            "resource": getattr(record, 'resource', None),
            "extra": getattr(record, 'extra', None)
        }

        # Remove None values
        log_entry = {k: v for k, v in log_entry.items() if v is not None}

        # Add exception info if present
        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(
    level: str = "INFO",
    logger_name: str = "retail_banking",
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Setup structured JSON logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        logger_name: Name of the root application logger
        log_file: Optional file path; logs go to stderr when omitted

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    if log_file:
        handler = logging.FileHandler(log_file)
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())

    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper()))

    # Prevent propagation to avoid duplicate logs
    logger.propagate = False

    return logger


def get_logger(name: str = "retail_banking") -> logging.Logger:
    """Get logger instance"""
    return logging.getLogger(name)


def log_action(logger: logging.Logger, level: str, message: str,
               user_id: Optional[str] = None, action: Optional[str] = None,
               resource: Optional[str] = None, extra: Optional[dict] = None):
    """
    Log an action with structured data.

    Args:
        logger: Logger instance
        level: Log level (info, warning, error, etc.)
        message: Log message
        user_id: ID of the principal performing the action
        action: Action being performed
        resource: Resource being acted upon
        extra: Additional structured data
    """
    fields = {}
    if user_id:
        fields['user_id'] = user_id
    if action:
        fields['action'] = action
    if resource:
        fields['resource'] = resource
    if extra:
        fields['extra'] = extra

    logger.log(getattr(logging, level.upper()), message, extra=fields)
