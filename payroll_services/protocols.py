"""
Collaborator contracts for the payroll calculation service.

The engines consume numbers, not records.  These protocols are the
boundary where the surrounding application supplies salary-sheet inputs
and accepts computed results; ``payroll_services.stores`` implements
them over SQLAlchemy, tests may implement them in memory.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from payroll_engines.compensation import CompensationInput, CompensationResult
from payroll_engines.kpi import KPIResult
from payroll_kernel.domain.values import Money


@runtime_checkable
class SalarySheetLookup(Protocol):
    """Employee salary-sheet rows, keyed by employee code and period."""

    def get_compensation_input(
        self, employee_code: str, month: int, year: int,
    ) -> CompensationInput:
        """Inputs for one row.  Raises SalaryRecordNotFoundError if absent."""
        ...

    def list_compensation_inputs(self, month: int, year: int) -> list[CompensationInput]:
        """Inputs for every row of a period, ordered by employee code."""
        ...

    def record_payslip(
        self,
        employee_code: str,
        month: int,
        year: int,
        result: CompensationResult,
        actor_id: UUID,
        rate_set_id: str | None = None,
    ) -> None:
        """Write a computed payslip back onto its row."""
        ...


@runtime_checkable
class KPIRecordStore(Protocol):
    """Monthly KPI records: the recorded bonus in, the verdict out."""

    def get_recorded_bonus(
        self, employee_code: str, month: int, year: int,
    ) -> Money | None:
        """
        Bonus HR recorded for the period, or None if nothing was seeded.

        A bonus the calculation took from the salary sheet is not a
        recorded bonus and is never returned here.
        """
        ...

    def save_kpi_result(
        self,
        result: KPIResult,
        month: int,
        year: int,
        actor_id: UUID,
        scores: dict[str, Any] | None = None,
    ) -> None:
        """Persist a KPI verdict, replacing any earlier one for the period."""
        ...
