from __future__ import annotations

import logging
from io import StringIO

import pytest

from inventory_import.logging.init import (
    APP_LOGGER_NAME,
    SUMMARY_LEVEL,
    LabeledFormatter,
    get_logger,
    log_summary,
    reset_logging,
    setup_logging,
)


@pytest.fixture(autouse=True)
def fresh_logging():
    reset_logging()
    yield
    reset_logging()


def test_setup_logging_configures_package_logger():
    logger = setup_logging()
    assert logger.name == APP_LOGGER_NAME == "inventory_import"
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, LabeledFormatter)
    assert logger.propagate is False


def test_setup_logging_is_idempotent():
    assert setup_logging() is setup_logging()
    assert get_logger() is setup_logging()
    assert len(logging.getLogger(APP_LOGGER_NAME).handlers) == 1


def test_labeled_prefixes():
    captured = StringIO()
    logger = logging.getLogger("test_inventory_import_labels")
    logger.setLevel(logging.INFO)
    for h in logger.handlers[:]:
        logger.removeHandler(h)
    handler = logging.StreamHandler(captured)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    logger.propagate = False

    logger.info("Test info message")
    logger.warning("Test warning message")
    logger.error("Test error message")
    logger.log(SUMMARY_LEVEL, "Test summary message")

    assert captured.getvalue().strip().split("\n") == [
        "INFO Test info message",
        "WARN Test warning message",
        "ERROR Test error message",
        "SUMMARY Test summary message",
    ]


def test_explicit_stream():
    out = StringIO()
    setup_logging(out)
    logging.getLogger("inventory_import.services.orchestrator").info("uploaded: 1/1")
    log_summary("collection=inventory")
    assert out.getvalue().splitlines() == ["INFO uploaded: 1/1", "SUMMARY collection=inventory"]


def test_module_loggers_reach_stdout(capsys):
    setup_logging()
    logging.getLogger("inventory_import.store.firestore_batch").warning("slow commit")
    assert "WARN slow commit" in capsys.readouterr().out


def test_debug_hidden_by_default():
    out = StringIO()
    setup_logging(out).debug("noise")
    assert out.getvalue() == ""


def test_reset_logging_detaches_handler():
    out = StringIO()
    setup_logging(out)
    reset_logging()
    logger = logging.getLogger(APP_LOGGER_NAME)
    assert logger.handlers == []

    second = StringIO()
    setup_logging(second).info("again")
    assert out.getvalue() == ""
    assert second.getvalue() == "INFO again\n"
