"""
Tests for resume_manager.logging_config module.
"""

import logging
import sys

import pytest

from resume_manager.logging_config import (
    configure_logging,
    get_log_level_from_flags,
    level_from_name,
    setup_logging,
)


class TestLogLevelFromFlags:
    """Tests for flag precedence."""

    def test_default(self):
        assert get_log_level_from_flags() == logging.WARNING

    def test_custom_default(self):
        assert get_log_level_from_flags(default=logging.INFO) == logging.INFO

    def test_verbose(self):
        assert get_log_level_from_flags(verbose=True) == logging.INFO

    def test_quiet_beats_verbose(self):
        assert get_log_level_from_flags(quiet=True, verbose=True) == logging.ERROR

    def test_debug_beats_everything(self):
        assert get_log_level_from_flags(quiet=True, verbose=True, debug=True) == logging.DEBUG


class TestLevelFromName:
    """Tests for level name parsing."""

    @pytest.mark.parametrize("name,expected", [
        ("debug", logging.DEBUG),
        (" INFO ", logging.INFO),
        ("error", logging.ERROR),
    ])
    def test_known(self, name, expected):
        assert level_from_name(name) == expected

    def test_unknown_falls_back(self):
        assert level_from_name("chatty", fallback=logging.ERROR) == logging.ERROR
        assert level_from_name(None) == logging.WARNING


class TestConfigureLogging:
    """Tests for handler setup."""

    def test_console_goes_to_stderr(self):
        configure_logging(level=logging.INFO)
        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert handlers[0].stream is sys.stderr
        assert logging.getLogger("resume_manager").level == logging.INFO

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "app.log"
        setup_logging(debug=True, log_file=log_file)
        logging.getLogger("resume_manager.test").debug("hello file")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "hello file" in log_file.read_text(encoding="utf-8")
