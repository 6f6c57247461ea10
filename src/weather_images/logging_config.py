"""Centralized logging configuration."""

import logging
from typing import Dict, Optional

from weather_images.config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers given their own handler; None means the application level
THIRD_PARTY_LEVELS: Dict[str, Optional[int]] = {
    "uvicorn": None,
    "uvicorn.access": None,
    "uvicorn.error": None,
    "httpx": None,
    "fastapi": None,
    # The Azure SDK logs every HTTP request and response at INFO
    "azure": logging.WARNING,
}


def _console_handler(level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _reset(logger: logging.Logger) -> None:
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)


def configure_logging(level: str = LOG_LEVEL):
    """
    Send application and server logs to the console in one format.

    Args:
        level: Level name for the application (LOG_LEVEL by default)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    _reset(root_logger)
    root_logger.addHandler(_console_handler(log_level, formatter))

    for logger_name, override in THIRD_PARTY_LEVELS.items():
        logger_level = override if override is not None else log_level
        logger = logging.getLogger(logger_name)
        logger.setLevel(logger_level)

        # Own handler without propagation, so messages are not printed twice
        _reset(logger)
        logger.propagate = False
        logger.addHandler(_console_handler(logger_level, formatter))
