"""Tests for logging helpers and secret masking."""

import logging

from rich.logging import RichHandler

from eda_bridge.log import configure_logging, get_log_level, get_logger, mask


def test_get_log_level():
    assert get_log_level("debug") == logging.DEBUG
    assert get_log_level("WARN") == logging.WARNING
    assert get_log_level("error") == logging.ERROR
    assert get_log_level("verbose") == logging.INFO


def test_get_log_level_from_env(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert get_log_level() == logging.DEBUG


def test_get_logger_namespace():
    assert get_logger("marshal").name == "eda_bridge.marshal"
    assert get_logger("eda_bridge.rest").name == "eda_bridge.rest"


def test_configure_logging_installs_one_handler():
    logger = configure_logging("debug")
    configure_logging("error")

    handlers = [h for h in logger.handlers if isinstance(h, RichHandler)]
    assert len(handlers) == 1
    assert logger.level == logging.ERROR


def test_mask():
    assert mask("") == ""
    assert mask(None) == ""
    assert mask("short") == "<masked>"
    assert mask("eyJhbGciOiJSUzI1NiJ9") == "eyJh...<masked>"
