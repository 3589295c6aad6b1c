"""Tests for logging configuration."""

from __future__ import annotations

import json
import logging

import pytest

from accord.core.logging_config import JsonFormatter, configure_logging


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest left it."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_file_only(self, tmp_path, restore_root_logger):
        """With console=False records go to the file and nowhere else."""
        log_file = tmp_path / "logs" / "console.log"
        configure_logging(level="DEBUG", file_path=log_file, console=False, force=True)

        logging.getLogger("accord.test").debug("hello %s", "file")
        for handler in restore_root_logger.handlers:
            handler.flush()

        assert restore_root_logger.level == logging.DEBUG
        assert all(isinstance(h, logging.FileHandler) for h in restore_root_logger.handlers)
        text = log_file.read_text()
        assert "accord.test - DEBUG - hello file" in text

    def test_no_destination_gets_null_handler(self, restore_root_logger):
        configure_logging(console=False, force=True)
        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0], logging.NullHandler)

    def test_level_from_environment(self, monkeypatch, restore_root_logger):
        monkeypatch.setenv("ACCORD_LOG_LEVEL", "warning")
        configure_logging(console=False, force=True)
        assert restore_root_logger.level == logging.WARNING

    def test_second_call_ignored_without_force(self, restore_root_logger):
        configure_logging(level="ERROR", console=False, force=True)
        configure_logging(level="DEBUG", console=False)
        assert restore_root_logger.level == logging.ERROR


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_extra_fields(self):
        record = logging.LogRecord(
            name="accord.node",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="started on %s",
            args=("/ip4/0.0.0.0/tcp/51030",),
            exc_info=None,
        )
        record.port = 51030

        data = json.loads(JsonFormatter().format(record))

        assert data["level"] == "INFO"
        assert data["logger"] == "accord.node"
        assert data["message"] == "started on /ip4/0.0.0.0/tcp/51030"
        assert data["extra"] == {"port": 51030}
