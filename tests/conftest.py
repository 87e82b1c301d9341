"""
Pytest fixtures for the payroll test suite.

Provides:
- Structured logging for the session and a per-test log capture
- In-memory SQLite sessions for the record-store adapters
- Common payslip inputs
"""

import json
import logging
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy.orm import Session

from payroll_engines.compensation import CompensationInput, SalaryType
from payroll_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from payroll_kernel.domain.values import Money
from payroll_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture payroll_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            compute_compensation(...)
            logs = captured_logs()
            assert any(r["message"] == "compensation_computed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("payroll_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture(scope="function")
def session() -> Generator[Session, None, None]:
    """Fresh in-memory SQLite database with all payroll tables."""
    init_engine_from_url("sqlite://")
    create_tables()
    sess = get_session()
    yield sess
    try:
        sess.close()
    finally:
        drop_tables()
        reset_engine()


@pytest.fixture
def test_actor_id() -> UUID:
    return TEST_ACTOR_ID


# =============================================================================
# Input fixtures
# =============================================================================


@pytest.fixture
def standard_input() -> CompensationInput:
    """22M gross, full month, insured on the full gross, no dependents."""
    return CompensationInput(
        employee_code="NV001",
        gross_salary=Money.of("22000000"),
        working_days=Decimal("22"),
        insurance_base_amount=Money.of("22000000"),
        salary_type=SalaryType.WITH_INSURANCE,
    )
