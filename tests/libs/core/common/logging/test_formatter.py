"""Tests for JSON log formatter.

Tests verify that logs are formatted correctly with:
- Required schema fields (timestamp, level, service, trace_id, message)
- Context taken from an explicit dict or from loose ``extra`` fields
- Exception information
- Source location
"""

import json
import logging
import sys
from datetime import UTC, datetime

import pytest

from libs.core.common.logging.formatter import JSONFormatter


def _record(msg: str = "Test message", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="/path/to/file.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Test suite for JSONFormatter."""

    @pytest.fixture()
    def formatter(self) -> JSONFormatter:
        """Create a JSONFormatter instance for testing."""
        return JSONFormatter(service_name="homepage_backend")

    def test_basic_log_format(self, formatter: JSONFormatter) -> None:
        """Test that a basic record is valid JSON with the required fields."""
        log_dict = json.loads(formatter.format(_record(trace_id="trace-123")))

        assert log_dict["level"] == "INFO"
        assert log_dict["service"] == "homepage_backend"
        assert log_dict["trace_id"] == "trace-123"
        assert log_dict["logger"] == "test"
        assert log_dict["message"] == "Test message"

    def test_timestamp_is_utc_iso8601(self, formatter: JSONFormatter) -> None:
        """Test that timestamp is ISO 8601 with a Z suffix."""
        timestamp = json.loads(formatter.format(_record()))["timestamp"]

        assert timestamp.endswith("Z")
        dt = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        assert dt.tzinfo == UTC

    def test_trace_id_none_when_missing(self, formatter: JSONFormatter) -> None:
        """Test that trace_id is null when no filter stamped the record."""
        assert json.loads(formatter.format(_record()))["trace_id"] is None

    def test_explicit_context_dict(self, formatter: JSONFormatter) -> None:
        """Test that extra={'context': {...}} is emitted as-is."""
        record = _record(context={"method": "GET", "status": 200})

        log_dict = json.loads(formatter.format(record))

        assert log_dict["context"] == {"method": "GET", "status": 200}

    def test_loose_extra_fields_become_context(self, formatter: JSONFormatter) -> None:
        """Test that non-reserved record attributes are collected as context."""
        record = _record(secret_path="database/homepage", backend="vault")

        log_dict = json.loads(formatter.format(record))

        assert log_dict["context"] == {"secret_path": "database/homepage", "backend": "vault"}

    def test_context_omitted_when_disabled(self) -> None:
        """Test that include_context=False drops context."""
        formatter = JSONFormatter(service_name="svc", include_context=False)

        log_dict = json.loads(formatter.format(_record(port=8000)))

        assert "context" not in log_dict

    def test_no_context_key_without_extras(self, formatter: JSONFormatter) -> None:
        """Test that records without extras carry no context key."""
        assert "context" not in json.loads(formatter.format(_record()))

    def test_exception_info(self, formatter: JSONFormatter) -> None:
        """Test that exception type, message and traceback are included."""
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord(
                name="test",
                level=logging.ERROR,
                pathname="/path/to/file.py",
                lineno=7,
                msg="Failed",
                args=(),
                exc_info=sys.exc_info(),
            )

        log_dict = json.loads(formatter.format(record))

        assert log_dict["exception"]["type"] == "ValueError"
        assert log_dict["exception"]["message"] == "boom"
        assert "Traceback" in log_dict["exception"]["traceback"]

    def test_source_location(self, formatter: JSONFormatter) -> None:
        """Test that file and line are reported."""
        source = json.loads(formatter.format(_record()))["source"]

        assert source["file"] == "/path/to/file.py"
        assert source["line"] == 42

    def test_non_serializable_values_fall_back_to_str(self, formatter: JSONFormatter) -> None:
        """Test that non-JSON values are stringified rather than raising."""
        when = datetime(2026, 1, 5, 12, 0, tzinfo=UTC)

        log_dict = json.loads(formatter.format(_record(context={"when": when})))

        assert log_dict["context"]["when"] == str(when)
