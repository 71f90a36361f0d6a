"""
Tests for the JSON log formatter.
"""

import json
import logging

from hrms.logging_config import JsonFormatter


class TestJsonFormatter:

    def _record(self, **extra):
        record = logging.LogRecord(
            name="hrms.services.payroll_processing",
            level=logging.WARNING,
            pathname=__file__,
            lineno=1,
            msg="Payroll failed: %s",
            args=("base_salary must be greater than zero",),
            exc_info=None,
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_formats_message_and_level(self):
        payload = json.loads(JsonFormatter().format(self._record()))

        assert payload["level"] == "WARNING"
        assert payload["logger"] == "hrms.services.payroll_processing"
        assert payload["message"] == "Payroll failed: base_salary must be greater than zero"
        assert "timestamp" in payload

    def test_includes_payroll_context(self):
        record = self._record(employee_id="EMP003", month=8, year=2025, financial_year="2025-2026")

        payload = json.loads(JsonFormatter().format(record))

        assert payload["employee_id"] == "EMP003"
        assert payload["month"] == 8
        assert payload["financial_year"] == "2025-2026"
        assert "report_type" not in payload
