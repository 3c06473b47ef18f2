"""
Logging configuration for the Magrathea NTS API client.
"""

import logging
import sys
from typing import Optional


DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
SHORT_FORMAT = '%(name)s - %(levelname)s - %(message)s'


def setup_logger(
    name: str,
    level: int = logging.INFO,
    format_string: Optional[str] = None,
    include_timestamp: bool = True
) -> logging.Logger:
    """
    Return the named logger, attaching a stdout handler on first use.

    Args:
        name: Logger name, usually the calling module's ``__name__``
        level: Logging level for the logger and its handler
        format_string: Overrides the default record format
        include_timestamp: Prefix records with the time when no format is given
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # One handler per logger, sessions share it
    if logger.handlers:
        return logger

    if format_string is None:
        format_string = DEFAULT_FORMAT if include_timestamp else SHORT_FORMAT

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(format_string))
    logger.addHandler(handler)
    return logger
