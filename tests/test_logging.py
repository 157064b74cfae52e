"""Tests for logging setup."""

import logging

from folio.logging import configure_logging


def test_configure_logging_installs_single_console_handler():
    configure_logging("debug")
    configure_logging("info")
    root = logging.getLogger()
    assert root.level == logging.INFO
    assert len(root.handlers) == 1


def test_configure_logging_adds_file_handler(tmp_path):
    log_file = tmp_path / "folio.log"
    configure_logging("INFO", log_file=str(log_file))
    logging.getLogger("folio.test").info("hello file")
    for handler in logging.getLogger().handlers:
        handler.flush()
    assert "hello file" in log_file.read_text()
    configure_logging("INFO")


def test_configure_logging_quiets_azure():
    configure_logging("DEBUG")
    assert logging.getLogger("azure.cosmos").level == logging.WARNING
    configure_logging("INFO")
