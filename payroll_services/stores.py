"""
SQLAlchemy implementations of the collaborator protocols.

Both stores receive a Session via constructor injection and only flush;
committing is the caller's unit of work (``session_scope``).
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from payroll_engines.compensation import CompensationInput, CompensationResult
from payroll_engines.kpi import KPIResult
from payroll_kernel.domain.values import Money
from payroll_kernel.exceptions import SalaryRecordNotFoundError
from payroll_kernel.logging_config import get_logger
from payroll_services.orm import KPIDetailModel, SalaryDetailModel

logger = get_logger("services.stores")


class SqlSalarySheetLookup:
    """SalarySheetLookup over the ``salary_details`` table."""

    def __init__(self, session: Session):
        self._session = session

    def _get_row(self, employee_code: str, month: int, year: int) -> SalaryDetailModel:
        row = self._session.execute(
            select(SalaryDetailModel).where(
                SalaryDetailModel.employee_code == employee_code,
                SalaryDetailModel.month == month,
                SalaryDetailModel.year == year,
            )
        ).scalar_one_or_none()
        if row is None:
            raise SalaryRecordNotFoundError(employee_code, month, year)
        return row

    def add_row(
        self,
        comp_input: CompensationInput,
        month: int,
        year: int,
        actor_id: UUID,
        employee_name: str | None = None,
        team: str | None = None,
    ) -> SalaryDetailModel:
        """Insert a salary-sheet row from validated inputs."""
        row = SalaryDetailModel.from_input(
            comp_input, month, year, created_by_id=actor_id,
            employee_name=employee_name, team=team,
        )
        self._session.add(row)
        self._session.flush()
        return row

    def get_row(self, employee_code: str, month: int, year: int) -> SalaryDetailModel:
        return self._get_row(employee_code, month, year)

    def get_compensation_input(
        self, employee_code: str, month: int, year: int,
    ) -> CompensationInput:
        return self._get_row(employee_code, month, year).to_input()

    def list_compensation_inputs(self, month: int, year: int) -> list[CompensationInput]:
        rows = self._session.execute(
            select(SalaryDetailModel)
            .where(SalaryDetailModel.month == month, SalaryDetailModel.year == year)
            .order_by(SalaryDetailModel.employee_code)
        ).scalars()
        return [row.to_input() for row in rows]

    def record_payslip(
        self,
        employee_code: str,
        month: int,
        year: int,
        result: CompensationResult,
        actor_id: UUID,
        rate_set_id: str | None = None,
    ) -> None:
        row = self._get_row(employee_code, month, year)
        row.apply_result(result, actor_id, rate_set_id=rate_set_id)
        self._session.flush()
        logger.debug("payslip_recorded", extra={
            "salary_detail_id": str(row.id),
            "net_salary": str(result.net_salary.amount),
        })


class SqlKPIRecordStore:
    """KPIRecordStore over the ``kpi_details`` table."""

    def __init__(self, session: Session):
        self._session = session

    def get_row(self, employee_code: str, month: int, year: int) -> KPIDetailModel | None:
        return self._session.execute(
            select(KPIDetailModel).where(
                KPIDetailModel.employee_code == employee_code,
                KPIDetailModel.month == month,
                KPIDetailModel.year == year,
            )
        ).scalar_one_or_none()

    def seed_recorded_bonus(
        self,
        employee_code: str,
        month: int,
        year: int,
        recorded_bonus: Money,
        actor_id: UUID,
    ) -> KPIDetailModel:
        """Record the bonus HR booked for the period ahead of calculation."""
        row = self.get_row(employee_code, month, year)
        if row is None:
            row = KPIDetailModel(
                employee_code=employee_code,
                month=month,
                year=year,
                created_by_id=actor_id,
            )
            self._session.add(row)
        row.currency = recorded_bonus.currency.code
        row.recorded_bonus = recorded_bonus.amount
        row.recorded_bonus_seeded = True
        self._session.flush()
        return row

    def get_recorded_bonus(
        self, employee_code: str, month: int, year: int,
    ) -> Money | None:
        row = self.get_row(employee_code, month, year)
        if row is None or not row.recorded_bonus_seeded or row.recorded_bonus is None:
            return None
        return Money.of(row.recorded_bonus, row.currency)

    def save_kpi_result(
        self,
        result: KPIResult,
        month: int,
        year: int,
        actor_id: UUID,
        scores: dict[str, Any] | None = None,
    ) -> None:
        row = self.get_row(result.employee_code, month, year)
        if row is None:
            row = KPIDetailModel(
                employee_code=result.employee_code,
                month=month,
                year=year,
                created_by_id=actor_id,
            )
            self._session.add(row)
        row.apply_result(result, actor_id, scores=scores)
        self._session.flush()
