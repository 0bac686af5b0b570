"""
Tests for logging configuration
"""

import logging
from skillsprint.utils.logger import setup_logger


def test_console_follows_configured_level():
    logger = setup_logger("skillsprint.test.debug", level="DEBUG")

    assert logger.level == logging.DEBUG
    assert [handler.level for handler in logger.handlers] == [logging.DEBUG]
    assert logging.getLogger("httpx").level == logging.DEBUG


def test_http_request_logs_quiet_above_debug():
    logger = setup_logger("skillsprint.test.info", level="info")

    assert logger.level == logging.INFO
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING


def test_file_handler_only_when_configured(tmp_path):
    log_file = tmp_path / "logs" / "skillsprint.log"

    plain = setup_logger("skillsprint.test.plain", level="INFO")
    with_file = setup_logger("skillsprint.test.file", level="INFO", log_file=str(log_file))
    with_file.info("[Test] written")
    for handler in with_file.handlers:
        handler.flush()

    assert len(plain.handlers) == 1
    assert len(with_file.handlers) == 2
    assert "[Test] written" in log_file.read_text()
    for handler in with_file.handlers:
        handler.close()
