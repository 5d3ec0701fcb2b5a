"""Logging configuration for the adbshard CLI."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "adbshard"


def _close_handlers(logger: logging.Logger) -> None:
    """Detach and close all handlers currently bound to the logger."""
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def configure_logging(*, debug: bool, console: Console | None = None) -> logging.Logger:
    """Route ``adbshard`` log records to stderr and return the package logger.

    With *debug* every stage of the run is logged; otherwise only warnings
    and errors are shown. Standard output is never used, since it carries
    the serialized shard.
    """
    logger = logging.getLogger(LOGGER_NAME)
    _close_handlers(logger)

    level = logging.DEBUG if debug else logging.WARNING
    logger.setLevel(level)
    logger.propagate = False

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=debug,
        rich_tracebacks=True,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger
