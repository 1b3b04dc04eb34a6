"""Tests for the exception hierarchy and diagnostic logging setup."""

import logging

from sloc_guard import EXIT_CONFIG_ERROR
from sloc_guard.exceptions import ConfigFileError, GitError, ScanError, SlocGuardError
from sloc_guard.logging_config import ROOT_LOGGER, get_logger, level_for, setup_logging


class TestErrorMessages:
    def test_reason_follows_message(self):
        error = ConfigFileError("a.toml", "expected '='")
        assert str(error) == "Invalid config file: a.toml: expected '='"

    def test_details_not_in_message_are_appended(self):
        error = SlocGuardError("Lock busy", details={"timeout_ms": "50"})
        assert str(error) == "Lock busy (timeout_ms=50)"

    def test_every_error_exits_with_config_code(self):
        assert ScanError("src", "path does not exist").exit_code == EXIT_CONFIG_ERROR
        assert GitError("diff --name-only", "bad revision").exit_code == EXIT_CONFIG_ERROR


class TestLogging:
    def test_levels(self):
        assert level_for() == logging.WARNING
        assert level_for(verbose=True) == logging.DEBUG
        assert level_for(verbose=True, quiet=True) == logging.ERROR

    def test_repeated_setup_keeps_one_handler(self):
        setup_logging()
        logger = setup_logging(verbose=True)
        assert len(logger.handlers) == 1
        assert logger.handlers[0].level == logging.DEBUG
        assert not logger.propagate

    def test_log_file_receives_debug_records(self, tmp_path):
        log_file = tmp_path / "run.log"
        setup_logging(log_file=str(log_file))
        get_logger("scanning").debug("walked 3 directories")
        for handler in get_logger().handlers:
            handler.flush()
        assert "sloc_guard.scanning: walked 3 directories" in log_file.read_text()
        setup_logging()

    def test_module_names_are_namespaced(self):
        assert get_logger("cache").name == f"{ROOT_LOGGER}.cache"
        assert get_logger("sloc_guard.cache").name == "sloc_guard.cache"
