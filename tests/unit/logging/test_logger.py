# tests/unit/logging/test_logger.py — v2
"""Tests for logging/logger.py — formatters and setup."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from techknowledge.logging.context import (
    clear_context,
    reset_key_context,
    set_batch_context,
    set_key_context,
)
from techknowledge.logging.logger import (
    ROOT_LOGGER,
    JsonFormatter,
    TextFormatter,
    parse_size,
    setup_logging,
)


def _record(msg: str = "Hello", exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="techknowledge.test", level=logging.INFO, pathname="", lineno=0,
        msg=msg, args=(), exc_info=exc_info,
    )


class TestJsonFormatter:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Hello"
        assert parsed["logger"] == "techknowledge.test"
        assert "timestamp" in parsed
        assert "context" not in parsed

    def test_format_with_context(self):
        set_batch_context("b1")
        token = set_key_context("react")
        try:
            parsed = json.loads(JsonFormatter().format(_record()))
        finally:
            reset_key_context(token)
        assert parsed["context"] == {"tech_key": "react", "batch_id": "b1"}

    def test_format_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _record(exc_info=sys.exc_info())
        parsed = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: boom" in parsed["exception"]


class TestTextFormatter:
    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        output = TextFormatter().format(_record("Hello text"))
        assert "[INFO    ]" in output
        assert output.endswith("- Hello text")

    def test_format_with_context(self):
        set_batch_context("abc123")
        set_key_context("vue")
        output = TextFormatter().format(_record())
        assert "[batch abc123] (vue) - Hello" in output


class TestParseSize:
    @pytest.mark.parametrize(
        "value,expected",
        [("10MB", 10 * 1024**2), ("512kb", 512 * 1024), ("1 GB", 1024**3)],
    )
    def test_valid(self, value, expected):
        assert parse_size(value) == expected

    def test_invalid(self):
        with pytest.raises(ValueError, match="Invalid size"):
            parse_size("ten megs")


class TestSetupLogging:
    def teardown_method(self):
        logging.getLogger(ROOT_LOGGER).handlers.clear()

    def test_console_only(self):
        setup_logging(level="DEBUG", log_format="text")
        root = logging.getLogger(ROOT_LOGGER)
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, TextFormatter)

    def test_reinit_does_not_duplicate(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger(ROOT_LOGGER).handlers) == 1

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "tk.log"
        setup_logging(log_file=log_file, rotation="1MB", retention=3)
        root = logging.getLogger(ROOT_LOGGER)
        assert len(root.handlers) == 2
        file_handler = root.handlers[1]
        assert file_handler.maxBytes == 1024**2
        assert file_handler.backupCount == 3

        logging.getLogger("techknowledge.test").info("written")
        for handler in root.handlers:
            handler.flush()
        assert "written" in log_file.read_text()
        file_handler.close()
