"""Logging configuration helpers for the application."""

import logging
from logging import Logger

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level="INFO") -> Logger:
    """Configure basic logging for the application and return the package logger."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logger = logging.getLogger("studyhall")
    logger.setLevel(level)
    return logger
