"""Logging configuration for the project."""

import logging
import sys
from typing import Optional
from pythonjsonlogger import jsonlogger

from ..config import config


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name. If None, uses the package logger.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(name or "sqs_monitoring")

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    log_level = getattr(logging, config.log_level.upper(), logging.INFO)
    logger.setLevel(log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)

    # JSON lines in prod so CloudWatch Logs Insights can parse them
    if config.environment == "prod":
        formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False

    return logger
