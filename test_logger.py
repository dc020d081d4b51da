"""
Tests for logger setup.
"""

import logging

from html_blocks.logger import get_module_logger, setup_logger


def test_setup_logger_accepts_level_names(tmp_path):
    log_file = tmp_path / "convert.log"
    logger = setup_logger("html_blocks_test_names", level="debug", log_file=str(log_file))
    assert logger.level == logging.DEBUG
    assert [handler.level for handler in logger.handlers] == [logging.DEBUG, logging.DEBUG]

    logger.debug("written")
    for handler in logger.handlers:
        handler.flush()
    assert "written" in log_file.read_text()


def test_setup_logger_again_only_changes_level():
    first = setup_logger("html_blocks_test_repeat", level=logging.INFO)
    second = setup_logger("html_blocks_test_repeat", level="WARNING")
    assert first is second
    assert len(second.handlers) == 1
    assert second.level == logging.WARNING
    assert second.handlers[0].level == logging.WARNING


def test_unknown_level_name_falls_back_to_info():
    logger = setup_logger("html_blocks_test_unknown", level="chatty")
    assert logger.level == logging.INFO


def test_module_loggers_sit_under_the_package_logger():
    assert get_module_logger("converter").name == "html_blocks.converter"
    assert get_module_logger("converter").parent is logging.getLogger("html_blocks")
