"""Logging configuration for the schedflow command line tools."""
import logging
import sys

from schedflow.config import DEFAULT_LOG_LEVEL


def configure_logging(name: str = "schedflow", level=None) -> logging.Logger:
    """
    Configure logging for a module tree.

    Args:
        name: Logger name (typically the package name)
        level: Level name or number, defaults to SCHEDFLOW_LOG_LEVEL

    Returns:
        Configured logger instance
    """
    if level is None:
        level = DEFAULT_LOG_LEVEL
    if isinstance(level, str):
        level = level.upper()

    logger = logging.getLogger(name)
    logger.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Avoid stacking handlers when called more than once
    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger
