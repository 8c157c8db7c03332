"""Logging configuration for cds-typer.

All modules obtain their logger through :func:`get_logger`, which places
them under the ``cds_typer`` logger so a single call to
:func:`setup_logging` controls the whole package.
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = "cds_typer"
DEFAULT_LEVEL = "WARNING"

# the original tool knows a level that suppresses all output
SILENT = logging.CRITICAL + 10
logging.addLevelName(SILENT, "SILENT")

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
    "SILENT": SILENT,
}


def parse_level(level: str | int | None) -> int:
    """
    Translate a level name into a numeric logging level.

    Args:
        level: Level name (case-insensitive), numeric level or None

    Returns:
        Numeric logging level

    Raises:
        ValueError: If the level name is unknown
    """
    if level is None:
        return LEVELS[DEFAULT_LEVEL]
    if isinstance(level, int):
        return level
    try:
        return LEVELS[level.upper()]
    except KeyError:
        raise ValueError(
            f"Unknown log level '{level}', expected one of {', '.join(LEVELS)}"
        ) from None


def setup_logging(
    level: str | int | None = None,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
) -> None:
    """
    Configure logging for the package.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL, SILENT)
        log_file: Optional file path for file logging
        format_string: Optional custom format string for the file handler
    """
    numeric_level = parse_level(level)

    if format_string is None:
        format_string = (
            "%(asctime)s - %(name)s - %(levelname)s - "
            "[%(filename)s:%(lineno)d] - %(message)s"
        )

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(format_string))
        root_logger.addHandler(file_handler)

    root_logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance below the package logger
    """
    if not logging.getLogger(ROOT_LOGGER_NAME).handlers:
        setup_logging()

    if name.startswith(ROOT_LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
