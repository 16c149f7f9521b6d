"""Centralized logging configuration."""

import logging

from rain_nowcast.config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Loggers that install their own handlers and would otherwise log twice
SERVER_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error", "fastapi")


def _console_handler(formatter: logging.Formatter, level: int) -> logging.StreamHandler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def configure_logging(level: str = LOG_LEVEL):
    """Send service, server and HTTP client logs to the console in one format.

    Args:
        level: Level name such as "INFO" or "DEBUG"
    """
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    log_level = getattr(logging, level, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(_console_handler(formatter, log_level))

    for logger_name in SERVER_LOGGERS:
        logger = logging.getLogger(logger_name)
        logger.setLevel(log_level)
        logger.handlers.clear()
        logger.propagate = False
        logger.addHandler(_console_handler(formatter, log_level))

    # One line per tile request; only surface problems
    logging.getLogger("httpx").setLevel(max(log_level, logging.WARNING))
