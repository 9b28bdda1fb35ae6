"""
Tests for logging setup — level resolution, handlers, and file output.
"""

import logging
import sys

import pytest

from devinstall.core.observability.logging_config import (
    ENV_LOG_FILE,
    ENV_LOG_FILE_LEVEL,
    ENV_LOG_LEVEL,
    resolve_level,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (ENV_LOG_LEVEL, ENV_LOG_FILE, ENV_LOG_FILE_LEVEL):
        monkeypatch.delenv(name, raising=False)


class TestResolveLevel:
    def test_default(self):
        assert resolve_level() == "WARNING"

    def test_flags(self):
        assert resolve_level(verbose=True) == "INFO"
        assert resolve_level(quiet=True) == "ERROR"
        assert resolve_level(debug=True) == "DEBUG"

    def test_debug_beats_verbose(self):
        assert resolve_level(verbose=True, debug=True) == "DEBUG"

    def test_env_var(self, monkeypatch):
        monkeypatch.setenv(ENV_LOG_LEVEL, "INFO")
        assert resolve_level() == "INFO"

    def test_flag_beats_env(self, monkeypatch):
        monkeypatch.setenv(ENV_LOG_LEVEL, "DEBUG")
        assert resolve_level(quiet=True) == "ERROR"


class TestSetupLogging:
    def test_console_handler(self):
        setup_logging("INFO")
        root = logging.getLogger()
        assert len(root.handlers) == 1
        handler = root.handlers[0]
        assert isinstance(handler, logging.StreamHandler)
        assert handler.stream is sys.stderr
        assert handler.level == logging.INFO
        assert root.level == logging.INFO

    def test_warning_format(self):
        setup_logging("WARNING")
        handler = logging.getLogger().handlers[0]
        record = logging.LogRecord("devinstall", logging.WARNING, __file__, 1, "apt update failed", None, None)
        assert handler.format(record) == "WARNING: apt update failed"

    def test_replaces_existing_handlers(self):
        setup_logging("INFO")
        setup_logging("WARNING")
        assert len(logging.getLogger().handlers) == 1

    def test_invalid_level_is_warning(self):
        setup_logging("LOUD")
        assert logging.getLogger().level == logging.WARNING

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "devinstall.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")
        root = logging.getLogger()
        assert len(root.handlers) == 2
        # root drops to the more verbose of the two handlers
        assert root.level == logging.DEBUG

        logging.getLogger("devinstall.test").debug("written to file only")
        for handler in root.handlers:
            handler.flush()
        assert "written to file only" in log_file.read_text()

    def test_file_from_env(self, tmp_path, monkeypatch):
        log_file = tmp_path / "env.log"
        monkeypatch.setenv(ENV_LOG_FILE, str(log_file))
        monkeypatch.setenv(ENV_LOG_FILE_LEVEL, "INFO")
        setup_logging("ERROR")
        file_handlers = [h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].level == logging.INFO

    def test_noisy_loggers_quieted(self):
        logging.getLogger("urllib3").setLevel(logging.DEBUG)
        setup_logging("INFO")
        assert logging.getLogger("urllib3").level == logging.WARNING
        assert logging.getLogger("asyncio").level == logging.WARNING

    def test_noisy_loggers_untouched_at_debug(self):
        logging.getLogger("urllib3").setLevel(logging.NOTSET)
        setup_logging("DEBUG")
        assert logging.getLogger("urllib3").level == logging.NOTSET
