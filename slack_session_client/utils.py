"""
Utility functions and helpers for the Slack Session Client.

This module provides common utilities for logging setup and for keeping
secrets out of log output.
"""

import logging
import sys
from typing import Optional
from pathlib import Path


LOGGER_NAME = "slack_session_client"


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None,
                  formatter: Optional[logging.Formatter] = None) -> logging.Logger:
    """
    Set up logging configuration for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path. If None, logs to console only.
        formatter: Optional formatter for the file handler. Defaults to the
            plain text console format.

    Returns:
        logging.Logger: Configured logger instance.
    """

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Clear existing handlers
    logger.handlers.clear()

    text_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(text_formatter)
    logger.addHandler(console_handler)

    if log_file:
        ensure_directory_exists(str(Path(log_file).parent))

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter or text_formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger of the application logger."""
    if name.startswith(LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def mask_token(token: Optional[str], visible: int = 5) -> str:
    """
    Mask a secret for log output.

    Args:
        token: Secret to mask
        visible: Number of leading characters to keep

    Returns:
        str: Masked token, e.g. ``xapp-***``
    """
    if not token:
        return "<empty>"
    if len(token) <= visible:
        return "***"
    return f"{token[:visible]}***"


def ensure_directory_exists(path: str) -> None:
    """
    Ensure that a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists

    Raises:
        OSError: If directory cannot be created
    """

    Path(path).mkdir(parents=True, exist_ok=True)
