"""Logging setup for the CLI."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def _suppress_noisy_loggers() -> None:
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def level_for_verbosity(verbose: int) -> int:
    """0 -> WARNING, 1 -> INFO, 2+ -> DEBUG."""
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING


def configure_logging(verbose: int = 0, *, color: bool = True) -> None:
    """Send log records to stderr through rich.

    Safe to call more than once; each call replaces the root handlers.
    """
    console = Console(stderr=True, no_color=not color, highlight=False)
    handler = RichHandler(
        console=console,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )
    logging.basicConfig(
        level=level_for_verbosity(verbose),
        format="%(message)s",
        handlers=[handler],
        force=True,
    )
    _suppress_noisy_loggers()
