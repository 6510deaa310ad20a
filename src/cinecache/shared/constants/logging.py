"""
Logging Configuration Constants

This module contains all constants related to logging configuration,
log levels, and log formatting.
"""

import logging


class LogLevels:
    """Log level constants."""

    DEBUG = logging.DEBUG  # 10
    INFO = logging.INFO  # 20
    WARNING = logging.WARNING  # 30
    ERROR = logging.ERROR  # 40
    CRITICAL = logging.CRITICAL  # 50

    DEFAULT = INFO


class LogConfig:
    """Log configuration constants."""

    DEFAULT_LOGGER_NAME = "cinecache"
    DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    DEFAULT_ENCODING = "utf-8"
    TIME_FORMAT = "[%H:%M:%S]"
