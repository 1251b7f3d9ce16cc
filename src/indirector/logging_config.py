"""Logging configuration utilities for indirector.

The package logs through loguru and leaves the handler setup to the embedding application. These helpers exist for
applications (and operators) that want the indirection core's registration and autoload activity on stderr.

Setting `INDIRECTOR_LOG_LEVEL` configures the logger once when the package is imported.
"""

import sys
from typing import Literal

from loguru import logger

LogLevel = Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]

_DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def configure_logger(
    level: LogLevel = "WARNING",
    *,
    format_string: str | None = None,
    colorize: bool = True,
) -> None:
    """Replace all loguru handlers with a single stderr handler.

    Args:
        level: The minimum log level to display.
        format_string: Custom format string for log messages. If None, uses the default format.
        colorize: Whether to use colored output.

    Examples:
        ```python
        from indirector.logging_config import configure_logger

        # See every terminus lookup and autoload attempt
        configure_logger("DEBUG")
        ```
    """
    logger.remove()

    logger.add(
        sys.stderr,
        level=level,
        format=format_string or _DEFAULT_FORMAT,
        colorize=colorize,
    )


def disable_logging() -> None:
    """Remove every loguru handler, silencing the package."""
    logger.remove()


def enable_debug_logging() -> None:
    """Equivalent to `configure_logger("DEBUG")`."""
    configure_logger("DEBUG")


__all__ = [
    "LogLevel",
    "configure_logger",
    "disable_logging",
    "enable_debug_logging",
]
