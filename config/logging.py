"""
Logging configuration for the company matcher.
"""

import logging
import sys
from pathlib import Path

from config.settings import settings

# Create logs directory if it doesn't exist
LOG_DIR = Path(__file__).parent.parent / "logs"
LOG_DIR.mkdir(exist_ok=True)

ROOT_LOGGER_NAME = "company_matcher"


def setup_logging(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Set up logging configuration.

    Args:
        name: Logger name

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)

    file_handler = logging.FileHandler(LOG_DIR / f"{name}.log")
    file_handler.setLevel(logging.DEBUG)

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_handler.setFormatter(formatter)
    file_handler.setFormatter(formatter)

    logger.addHandler(console_handler)
    logger.addHandler(file_handler)

    return logger


def get_logger(component: str) -> logging.Logger:
    """
    Child logger for an engine component, e.g. ``get_logger("candidates")``.

    Children propagate to the default logger, so they share its handlers.
    """
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")


# Default logger
logger = setup_logging()
