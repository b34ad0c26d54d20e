"""Logging utility for Stylus Bundler."""

import logging
import os
from typing import Optional, Union

from .config import LOG_DATE_FORMAT, LOG_FORMAT, LOG_LEVEL


def setup_logging(log_level: Union[int, str] = LOG_LEVEL, log_file: Optional[str] = None) -> None:
    """Set up logging configuration.

    Args:
        log_level: Level name or number
        log_file: Optional file that receives a copy of the log
    """
    handlers = [logging.StreamHandler()]
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers
    )


def get_logger(name):
    """Get a logger instance for the specified module.

    Args:
        name: Name of the module

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


# Exported functions
__all__ = ['setup_logging', 'get_logger']
