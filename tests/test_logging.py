"""Tests for structured logging configuration."""

import json
import logging
import sys
from unittest.mock import patch

import pytest

from jobboard.app.core.logging import (
    ContextFilter,
    JSONFormatter,
    get_log_context,
    get_logger,
    get_logging_config,
    setup_logging,
)


def make_record(msg="Test message", level=logging.INFO, exc_info=None):
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


class TestJSONFormatter:
    """Test JSON formatter for structured logging."""

    def test_basic_json_format(self):
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "test"
        assert data["message"] == "Test message"
        assert "timestamp" in data
        assert data["source"]["file"] == "test.py"
        assert data["source"]["line"] == 1

    def test_json_format_with_request_context(self):
        record = make_record("Rate limit exceeded, retrying")
        record.client = "rapidapi"
        record.method = "GET"
        record.status_code = 429
        record.retry_after_ms = 2000

        data = json.loads(JSONFormatter().format(record))

        assert data["client"] == "rapidapi"
        assert data["method"] == "GET"
        assert data["status_code"] == 429
        assert data["retry_after_ms"] == 2000
        assert "extra" not in data

    def test_none_context_fields_omitted(self):
        record = make_record()
        ContextFilter().filter(record)

        data = json.loads(JSONFormatter().format(record))

        assert "client" not in data
        assert "url" not in data

    def test_json_format_with_extra_fields(self):
        record = make_record("Custom event")
        record.custom_field = "custom_value"
        record.another_field = 42

        data = json.loads(JSONFormatter().format(record))

        assert data["extra"]["custom_field"] == "custom_value"
        assert data["extra"]["another_field"] == 42

    def test_json_format_with_exception(self):
        try:
            raise ValueError("Test error")
        except ValueError:
            record = make_record("Error occurred", logging.ERROR, sys.exc_info())

        data = json.loads(JSONFormatter().format(record))

        exception_text = "".join(data["exception"])
        assert "ValueError" in exception_text
        assert "Test error" in exception_text


class TestContextFilter:
    """Test context filter for adding default fields."""

    def test_adds_default_fields(self):
        record = make_record()

        assert ContextFilter().filter(record) is True
        for field in ("client", "method", "url", "status_code", "duration_ms", "retry_after_ms"):
            assert hasattr(record, field)
            assert getattr(record, field) is None

    def test_preserves_existing_values(self):
        record = make_record()
        record.client = "smartrecruiters"

        ContextFilter().filter(record)

        assert record.client == "smartrecruiters"


class TestGetLoggingConfig:
    """Test logging configuration generation."""

    def test_default_text_format(self):
        with patch("jobboard.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "text"
            mock_settings.log_level = "INFO"

            config = get_logging_config()

        assert "json" not in config["formatters"]
        assert config["handlers"]["console"]["formatter"] == "standard"
        assert "jobboard" in config["loggers"]

    def test_structured_format(self):
        with patch("jobboard.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "structured"
            mock_settings.log_level = "debug"

            config = get_logging_config()

        assert config["handlers"]["console"]["formatter"] == "structured"
        assert config["handlers"]["console"]["level"] == "DEBUG"

    def test_json_format(self):
        with patch("jobboard.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "json"
            mock_settings.log_level = "WARNING"

            config = get_logging_config()

        assert config["handlers"]["console"]["formatter"] == "json"
        assert config["formatters"]["json"]["()"] is JSONFormatter
        assert config["handlers"]["console"]["level"] == "WARNING"

    def test_context_filter_added(self):
        config = get_logging_config()

        assert "context" in config["filters"]
        assert "context" in config["handlers"]["console"]["filters"]


class TestGetLogger:
    """Test get_logger function."""

    def test_get_logger_default_name(self):
        assert get_logger().name == "jobboard"

    def test_get_logger_custom_name(self):
        assert get_logger("custom.module").name == "custom.module"


class TestGetLogContext:
    """Test get_log_context helper function."""

    def test_context_filters_none(self):
        context = get_log_context(client="rapidapi", method=None, url="https://x.test/jobs/")

        assert context == {"client": "rapidapi", "url": "https://x.test/jobs/"}

    def test_context_with_extra(self):
        context = get_log_context(status_code=429, retry_after_ms=5000)

        assert context["status_code"] == 429
        assert context["retry_after_ms"] == 5000


@pytest.fixture
def restore_logging():
    """Drop handlers installed by setup_logging() once the test is done."""
    yield
    for name in (None, "jobboard"):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
        logger.propagate = True


class TestIntegration:
    """Integration tests for logging system."""

    def test_json_logging_output(self, capsys, restore_logging):
        with patch("jobboard.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "json"
            mock_settings.log_level = "INFO"

            setup_logging()
            logger = get_logger("test.integration")
            logger.info(
                "Integration test",
                extra=get_log_context(client="rapidapi", method="GET", status_code=200),
            )

        data = json.loads(capsys.readouterr().out.strip())

        assert data["level"] == "INFO"
        assert data["logger"] == "test.integration"
        assert data["client"] == "rapidapi"
        assert data["status_code"] == 200
        assert logging.getLogger("httpx").level == logging.WARNING
