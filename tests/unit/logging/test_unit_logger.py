# tests/unit/logging/test_unit_logger.py — v2
"""Tests for logging/logger.py — logger factory and formatters."""

from __future__ import annotations

import io
import json
import logging

import pytest

from snowgoose.logging.context import clear_context, set_request_context, set_vendor_context
from snowgoose.logging.logger import (
    JsonFormatter,
    TextFormatter,
    get_logger,
    parse_size,
    setup_logging,
)


def _record(msg: str, level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(
        name="test", level=level, pathname="", lineno=0,
        msg=msg, args=(), exc_info=None,
    )


class TestJsonFormatter:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        parsed = json.loads(JsonFormatter().format(_record("Hello")))
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Hello"
        assert "timestamp" in parsed
        assert "context" not in parsed

    def test_format_with_context(self):
        set_request_context("req-1", user_id=42)
        set_vendor_context("anthropic", "claude-sonnet-4-20250514")
        parsed = json.loads(JsonFormatter().format(_record("call")))
        assert parsed["context"] == {
            "user_id": 42,
            "request_id": "req-1",
            "vendor": "anthropic",
            "model": "claude-sonnet-4-20250514",
        }

    def test_format_with_data(self):
        record = _record("usage")
        record.data = {"cost": 0.0105}
        parsed = json.loads(JsonFormatter().format(record))
        assert parsed["data"]["cost"] == 0.0105


class TestTextFormatter:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        output = TextFormatter().format(_record("Hello text"))
        assert "Hello text" in output
        assert "INFO" in output

    def test_format_with_request_and_vendor(self):
        set_request_context("req-9")
        set_vendor_context("openai", "gpt-4o")
        output = TextFormatter().format(_record("dispatch"))
        assert "[req-9]" in output
        assert "(openai:gpt-4o)" in output


class TestGetLogger:
    def test_returns_namespaced_logger(self):
        assert get_logger("llm").name == "snowgoose.llm"


class TestSetupLogging:
    def teardown_method(self):
        root = logging.getLogger("snowgoose")
        for handler in root.handlers:
            handler.close()
        root.handlers.clear()
        root.setLevel(logging.NOTSET)

    def test_writes_to_given_stream(self):
        stream = io.StringIO()
        setup_logging(level="DEBUG", log_format="json", stream=stream)
        logging.getLogger("snowgoose.test").debug("to stream")
        assert json.loads(stream.getvalue())["message"] == "to stream"

    def test_reinit_does_not_duplicate_handlers(self):
        setup_logging(stream=io.StringIO())
        setup_logging(stream=io.StringIO())
        assert len(logging.getLogger("snowgoose").handlers) == 1

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "snowgoose.log"
        setup_logging(log_format="text", log_file=log_file, stream=io.StringIO())
        logging.getLogger("snowgoose.test").warning("to file")
        for handler in logging.getLogger("snowgoose").handlers:
            handler.flush()
        assert "to file" in log_file.read_text()


class TestParseSize:
    def test_units(self):
        assert parse_size("10MB") == 10 * 1024**2
        assert parse_size("512kb") == 512 * 1024

    def test_invalid(self):
        with pytest.raises(ValueError, match="Invalid size"):
            parse_size("ten megs")
