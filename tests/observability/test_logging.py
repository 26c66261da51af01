"""Tests for client logger setup."""

import logging

from secret_store_client.observability.logging import ROOT_LOGGER_NAME, get_logger

# 2020-01-02T03:04:05Z
_FIXED_EPOCH = 1577934245.0


def _root_handler() -> logging.Handler:
    handlers = logging.getLogger(ROOT_LOGGER_NAME).handlers
    assert len(handlers) == 1
    return handlers[0]


def test_root_handler_formats_utc_timestamps() -> None:
    logger = get_logger("secret_store_client.test.logging")
    record = logger.makeRecord(logger.name, logging.INFO, __file__, 1, "Hello", None, None)
    record.created = _FIXED_EPOCH

    line = _root_handler().format(record)

    assert line == "2020-01-02T03:04:05+0000 INFO secret_store_client.test.logging: Hello"


def test_child_loggers_share_the_root_handler() -> None:
    first = get_logger("secret_store_client.test.first")
    second = get_logger("secret_store_client.test.second")

    assert first.handlers == []
    assert second.handlers == []
    assert first.propagate is True
    assert _root_handler() is not None
    root = logging.getLogger(ROOT_LOGGER_NAME)
    assert root.level == logging.INFO
    assert root.propagate is False


def test_same_name_returns_same_logger() -> None:
    name = "secret_store_client.test.singleton"

    assert get_logger(name) is get_logger(name)


def test_foreign_names_are_nested_under_the_package() -> None:
    assert get_logger("my_app.worker").name == "secret_store_client.my_app.worker"
    assert get_logger(ROOT_LOGGER_NAME).name == ROOT_LOGGER_NAME
