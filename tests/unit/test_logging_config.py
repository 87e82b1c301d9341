"""Tests for the structured logging system (payroll_kernel/logging_config.py)."""

import json
import logging
from io import StringIO
from uuid import uuid4

import pytest

from payroll_kernel.exceptions import SalaryRecordNotFoundError
from payroll_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests, then restore the suite's setup."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "payroll_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("payslip_calculated", extra={"net_salary": "19071000"})

        record = _parse_log(stream)
        assert record["net_salary"] == "19071000"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(employee_code="NV001", payroll_period="2024-07")
        get_logger("test").info("test_msg")

        record = _parse_log(stream)
        assert record["employee_code"] == "NV001"
        assert record["payroll_period"] == "2024-07"

    def test_payroll_exception_fields_extracted(self):
        """Kernel exceptions contribute their code and data attributes."""
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")

        try:
            raise SalaryRecordNotFoundError("NV001", 7, 2024)
        except SalaryRecordNotFoundError:
            logger.error("lookup_failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "SALARY_RECORD_NOT_FOUND"
        assert record["exc_type"] == "SalaryRecordNotFoundError"
        assert record["exc_employee_code"] == "NV001"
        assert record["exc_month"] == 7
        assert "traceback" in record

    def test_uuid_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info("with_uuid", extra={"actor": uid})

        assert _parse_log(stream)["actor"] == str(uid)

    def test_level_filtering(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second")
        logger.debug("third")

        assert [r["message"] for r in _parse_all_logs(stream)] == ["first", "second"]


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    """Tests for context propagation."""

    def test_set_and_get(self):
        LogContext.set(correlation_id="x", actor_id="y")
        assert LogContext.get_all() == {"correlation_id": "x", "actor_id": "y"}

    def test_unknown_field(self):
        with pytest.raises(KeyError):
            LogContext.set(event_id="e")

    def test_clear(self):
        LogContext.set(employee_code="NV001")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores(self):
        LogContext.set(payroll_period="2024-06")
        with LogContext.bind(payroll_period="2024-07"):
            assert LogContext.get_all()["payroll_period"] == "2024-07"
        assert LogContext.get_all()["payroll_period"] == "2024-06"

    def test_bind_restores_none(self):
        with LogContext.bind(employee_code="NV001"):
            assert LogContext.get_all()["employee_code"] == "NV001"
        assert "employee_code" not in LogContext.get_all()


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Tests for initialization."""

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)
        assert len(logging.getLogger("payroll_kernel").handlers) == 1

    def test_get_logger_returns_child(self):
        assert get_logger("engines.kpi").name == "payroll_kernel.engines.kpi"

    def test_logger_hierarchy(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("deep.nested.module").debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["logger"] == "payroll_kernel.deep.nested.module"
