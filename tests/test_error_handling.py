"""
Error handling utilities
"""

import pytest

from binding_validator.utils.error_handling import ErrorHandlingConfig, StructuredLogger


class TestSanitizeData:

    @pytest.mark.parametrize("field", ["password", "jdbcUrl", "uri", "management_uri", "api_token", "Secret"])
    def test_sensitive_fields_are_redacted(self, field):
        sanitized = ErrorHandlingConfig.sanitize_data({field: "value", "host": "db.example.com"})
        assert sanitized[field] == ErrorHandlingConfig.REDACTED
        assert sanitized["host"] == "db.example.com"

    def test_nested_structures(self):
        data = {"services": [{"credentials": {"password": "p"}}, {"name": "cache"}]}
        sanitized = ErrorHandlingConfig.sanitize_data(data)
        assert sanitized["services"][0]["credentials"] == ErrorHandlingConfig.REDACTED
        assert sanitized["services"][1] == {"name": "cache"}

    def test_long_values_are_truncated(self):
        sanitized = ErrorHandlingConfig.sanitize_data({"detail": "x" * 5000})
        assert sanitized["detail"].endswith("...[TRUNCATED]")
        assert len(sanitized["detail"]) < 5000


class TestStructuredLogger:

    def test_returns_trace_id(self, caplog):
        with caplog.at_level("ERROR"):
            trace_id = StructuredLogger.log_error(
                "validation_error", "boom", extra_context={"password": "hunter2"}, exception=ValueError("bad")
            )
        assert len(trace_id) == 8
        assert "hunter2" not in caplog.text
        assert "ValueError" in caplog.text
