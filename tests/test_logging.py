"""
Tests for structured logging setup.
"""

import io
import logging

import pytest
import structlog

from anisync.core.logging import NOISY_LOGGERS, get_logger, setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    levels = {name: logging.getLogger(name).level for name in NOISY_LOGGERS}
    yield
    structlog.reset_defaults()
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)


def test_events_go_to_the_given_stream():
    stream = io.StringIO()
    setup_logging(log_level="INFO", stream=stream)

    get_logger("anisync.test").warning("feed_page_failed", url="https://mikanani.me/RSS/1")

    assert "feed_page_failed" in stream.getvalue()


def test_level_filters_lower_events():
    stream = io.StringIO()
    setup_logging(log_level="WARNING", stream=stream)

    get_logger("anisync.test").info("catalog_entry_created")

    assert stream.getvalue() == ""


def test_library_loggers_held_at_warning():
    setup_logging(log_level="DEBUG", stream=io.StringIO())

    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING
