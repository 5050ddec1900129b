"""
Tests for logging setup — level selection and handler wiring.
"""

import logging

import pytest

from appinst.core.observability.logging_config import level_from_flags, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLevelFromFlags:
    def test_precedence(self):
        assert level_from_flags(debug=True, verbose=True, quiet=True) == "DEBUG"
        assert level_from_flags(verbose=True, quiet=True) == "INFO"
        assert level_from_flags(quiet=True) == "ERROR"

    def test_environment_default(self, monkeypatch):
        monkeypatch.setenv("APPINST_LOG_LEVEL", "INFO")
        assert level_from_flags() == "INFO"
        monkeypatch.delenv("APPINST_LOG_LEVEL")
        assert level_from_flags() == "WARNING"


class TestSetupLogging:
    def test_console_only(self):
        setup_logging("info")
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.handlers[0].level == logging.INFO
        assert root.level == logging.INFO

    def test_unknown_level_is_warning(self):
        setup_logging("chatty")
        assert logging.getLogger().handlers[0].level == logging.WARNING

    def test_file_gets_more_detail_than_console(self, tmp_path):
        log_file = tmp_path / "appinst.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        logging.getLogger("appinst.test").debug("ran make in /usr/src")
        for handler in root.handlers:
            handler.flush()

        assert "ran make in /usr/src" in log_file.read_text()

    def test_repeated_setup_replaces_handlers(self):
        setup_logging("WARNING")
        setup_logging("DEBUG")
        assert len(logging.getLogger().handlers) == 1
