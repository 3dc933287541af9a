# tests/test_logging_conf.py
"""
Logging Configuration Tests - Unit Tests for setup_logging

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- iatirollup.shared.logging_conf (setup_logging)
- pytest (testing framework, tmp_path fixture)
"""
import logging  # Inspect root logger handlers
from logging.handlers import RotatingFileHandler  # Expected file handler type

import pytest  # Testing framework for writing and running tests

from iatirollup.shared.logging_conf import setup_logging


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


class TestSetupLogging:
    def test_stdout_only(self):
        setup_logging(level="debug", log_to_stdout=True)
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert not isinstance(root.handlers[0], RotatingFileHandler)

    def test_log_dir_creates_rotating_file(self, tmp_path):
        log_dir = tmp_path / "logs"
        setup_logging(log_dir=log_dir, log_to_stdout=False, max_bytes=1024, backup_count=2)
        logging.getLogger("iatirollup.test").warning("hello")

        root = logging.getLogger()
        file_handlers = [h for h in root.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].maxBytes == 1024
        assert file_handlers[0].backupCount == 2
        file_handlers[0].flush()
        assert "hello" in (log_dir / "iatirollup.log").read_text(encoding="utf-8")

    def test_log_file_path(self, tmp_path):
        log_file = tmp_path / "nested" / "app.log"
        setup_logging(log_file=log_file, log_to_stdout=False)
        assert log_file.parent.is_dir()

    def test_falls_back_to_stderr(self):
        setup_logging(log_to_stdout=False)
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], logging.StreamHandler)

    def test_env_controls_stdout(self, monkeypatch):
        monkeypatch.setenv("IATI_LOG_STDOUT", "false")
        setup_logging(level=logging.WARNING)
        root = logging.getLogger()
        # stderr fallback only
        assert len(root.handlers) == 1
        assert root.level == logging.WARNING
