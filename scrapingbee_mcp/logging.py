"""Logging setup for the ScrapingBee MCP gateway.

Log output always goes to stderr: the stdio transport owns stdout.
"""

import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

_LOGGER_NAME = "scrapingbee_mcp"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the package logger, or a child of it when *name* is given."""
    if name:
        return logging.getLogger(f"{_LOGGER_NAME}.{name}")
    return logging.getLogger(_LOGGER_NAME)


def setup_logging(level: str = "INFO", log_file: str | None = None) -> logging.Logger:
    """Attach a stderr Rich handler (and optionally a file handler).

    Calling this more than once only updates the level.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level.upper())

    if any(isinstance(h, RichHandler) for h in logger.handlers):
        return logger

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


logging.getLogger(_LOGGER_NAME).addHandler(logging.NullHandler())
