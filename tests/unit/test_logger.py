"""
Tests for logging setup.
"""

import logging

import pytest

from sealbid.utils.logger import SealbidLogger, get_logger, setup_logging


@pytest.fixture(autouse=True)
def fresh_logging():
    SealbidLogger.reset()
    yield
    SealbidLogger.reset()


class TestLogging:

    def test_subsystem_loggers_are_children(self):
        assert get_logger("auction").name == "sealbid.auction"
        assert len(logging.getLogger("sealbid").handlers) == 1

    def test_level_by_name(self):
        setup_logging(level="warning")
        assert logging.getLogger("sealbid").level == logging.WARNING

    def test_file_output(self, tmp_path):
        setup_logging(level=logging.INFO, log_dir=str(tmp_path), log_to_file=True)
        get_logger("house").info("auction created")
        SealbidLogger.reset()

        assert "auction created" in (tmp_path / "sealbid.log").read_text()

    def test_setup_is_idempotent_until_reset(self):
        SealbidLogger.setup()
        SealbidLogger.setup()
        assert len(logging.getLogger("sealbid").handlers) == 1
