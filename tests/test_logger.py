"""Tests for the numeric verbosity logger."""

import logging

import pytest

from vpnbridge.logger import LOGGER_NAME, log_message, setup_logging


@pytest.fixture
def bridge_logger():
    bridge_logger = logging.getLogger(LOGGER_NAME)
    yield bridge_logger
    for handler in list(bridge_logger.handlers):
        bridge_logger.removeHandler(handler)
        handler.close()
    bridge_logger.propagate = True
    bridge_logger.setLevel(logging.NOTSET)


class TestLogMessage:
    @pytest.mark.parametrize("level, expected_level, prefix", [
        (0, logging.INFO, "(STATUS) "),
        (1, logging.ERROR, ""),
        (2, logging.INFO, "(SUCCESS) "),
        (3, logging.INFO, ""),
        (4, logging.DEBUG, "(VARIABLES) "),
        (5, logging.DEBUG, ""),
    ])
    def test_levels(self, vpnbridge_logs, level, expected_level, prefix):
        log_message(level, "hello")

        record = vpnbridge_logs.records[-1]
        assert record.levelno == expected_level
        assert record.getMessage() == prefix + "hello"

    def test_unknown_level_is_status(self, vpnbridge_logs):
        log_message(42, "hello")
        assert vpnbridge_logs.records[-1].getMessage() == "(STATUS) hello"


class TestSetupLogging:
    def test_console_handler(self, bridge_logger):
        setup_logging(1)

        assert bridge_logger.level == logging.ERROR
        assert bridge_logger.propagate is False
        assert len(bridge_logger.handlers) == 1

    def test_file_handler(self, bridge_logger, tmp_path):
        log_file = tmp_path / "logs" / "bridge.log"

        setup_logging(3, log_file=log_file)
        log_message(3, "written to file")

        assert "written to file" in log_file.read_text()

    def test_debug_with_file_adds_console(self, bridge_logger, tmp_path):
        setup_logging(5, log_file=tmp_path / "bridge.log")
        assert len(bridge_logger.handlers) == 2

    def test_repeated_setup_replaces_handlers(self, bridge_logger):
        setup_logging(3)
        setup_logging(3)
        assert len(bridge_logger.handlers) == 1
