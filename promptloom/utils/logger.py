"""
Logging configuration for PromptLoom
Provides structured logging with appropriate log levels
"""
import logging
import sys
from typing import Optional


def _configured_level() -> int:
    from ..config import Config

    if Config.LOG_LEVEL:
        level = logging.getLevelName(Config.LOG_LEVEL)
        if isinstance(level, int):
            return level
    return logging.DEBUG if Config.DEBUG else logging.INFO


def setup_logger(
    name: str = "promptloom",
    level: Optional[int] = None,
    format_string: Optional[str] = None
) -> logging.Logger:
    """
    Set up a logger with consistent formatting

    Args:
        name: Logger name (default: "promptloom")
        level: Log level (default: from Config, INFO unless debug is enabled)
        format_string: Custom format string (optional)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Don't add handlers if they already exist
    if logger.handlers:
        return logger

    if level is None:
        level = _configured_level()
    logger.setLevel(level)

    # Create console handler
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    if format_string is None:
        format_string = "[%(levelname)s] %(name)s: %(message)s"

    formatter = logging.Formatter(format_string)
    handler.setFormatter(formatter)

    logger.addHandler(handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get or create a logger for a module

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance
    """
    logger_name = name.split('.')[-1] if '.' in name else name
    return setup_logger(f"promptloom.{logger_name}")
