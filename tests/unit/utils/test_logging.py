"""Tests for CLI logging setup."""
import logging

import pytest
from rich.logging import RichHandler

from repo_contract.utils.logging import configure_logging, level_for_verbosity


@pytest.mark.parametrize(
    "verbose,level",
    [(0, logging.WARNING), (1, logging.INFO), (2, logging.DEBUG), (5, logging.DEBUG)],
)
def test_level_for_verbosity(verbose, level):
    assert level_for_verbosity(verbose) == level


def test_configure_logging_installs_rich_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging(1, color=False)

        assert root.level == logging.INFO
        assert any(isinstance(h, RichHandler) for h in root.handlers)
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
