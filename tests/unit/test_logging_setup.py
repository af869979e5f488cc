"""Tests for logging configuration."""

from __future__ import annotations

import logging

import pytest
from rich.logging import RichHandler

from helium.logging_setup import setup_logging


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    httpx_level = logging.getLogger("httpx").level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
    logging.getLogger("httpx").setLevel(httpx_level)


def test_console_only():
    setup_logging(logging.INFO)
    root = logging.getLogger()
    assert root.level == logging.INFO
    assert [type(h) for h in root.handlers] == [RichHandler]


def test_repeated_setup_does_not_stack_handlers():
    setup_logging()
    setup_logging()
    assert len(logging.getLogger().handlers) == 1


def test_log_file(tmp_path):
    log_file = tmp_path / "logs" / "helium.log"
    setup_logging(logging.DEBUG, log_file)
    logging.getLogger("helium.test").debug("sweep tick")
    for handler in logging.getLogger().handlers:
        handler.flush()
    text = log_file.read_text(encoding="utf-8")
    assert "helium.test - DEBUG - sweep tick" in text


def test_httpx_kept_at_warning():
    setup_logging(logging.DEBUG)
    assert logging.getLogger("httpx").level == logging.WARNING
