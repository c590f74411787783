"""
Tests for logging setup (console and file handlers).
"""

import logging

import pytest

from assetgc.configs import get_logger, setup_logging


@pytest.fixture
def no_env(monkeypatch):
    monkeypatch.delenv("ASSETGC_DEBUG", raising=False)
    monkeypatch.delenv("ASSETGC_LOG_FILE", raising=False)


def handler_levels(logger):
    return {type(h).__name__: h.level for h in logger.handlers}


class TestSetupLogging:
    """Handler layout for the server and the sweep CLI."""

    def test_file_logging_keeps_console_for_warnings(self, no_env, temp_dir):
        log_file = temp_dir / "logs" / "assetgc.log"

        logger = setup_logging(log_file=str(log_file))

        assert handler_levels(logger) == {"StreamHandler": logging.WARNING, "FileHandler": logging.INFO}
        get_logger("sweep").info("Mark: user added 3 ids")
        for handler in logger.handlers:
            handler.flush()
        assert "[assetgc.sweep] Mark: user added 3 ids" in log_file.read_text()

    def test_console_level_shows_progress(self, no_env, temp_dir):
        logger = setup_logging(log_file=str(temp_dir / "assetgc.log"), console_level=logging.INFO)

        assert handler_levels(logger)["StreamHandler"] == logging.INFO

    def test_dash_disables_the_log_file(self, no_env, monkeypatch):
        monkeypatch.setenv("ASSETGC_LOG_FILE", "-")

        logger = setup_logging()

        assert handler_levels(logger) == {"StreamHandler": logging.INFO}

    def test_debug_from_environment(self, no_env, monkeypatch):
        monkeypatch.setenv("ASSETGC_DEBUG", "1")

        logger = setup_logging(log_file="-")

        assert logger.level == logging.DEBUG
        assert logging.getLogger("chromadb").level == logging.DEBUG

    def test_client_libraries_are_quieted(self, no_env):
        setup_logging(log_file="-")

        assert logging.getLogger("urllib3").level == logging.WARNING
        assert logging.getLogger("chromadb").level == logging.WARNING

    def test_repeated_setup_replaces_handlers(self, no_env):
        setup_logging(log_file="-")
        logger = setup_logging(log_file="-")

        assert len(logger.handlers) == 1

    def test_component_loggers_nest_under_assetgc(self):
        assert get_logger("cleanup.queue").name == "assetgc.cleanup.queue"
