"""
payroll_services.payroll_calculation_service -- Salary sheet and KPI orchestration.

Responsibility:
    Assemble engine inputs from the salary sheet, resolve the statutory
    rates effective for the period, invoke the pure calculators and write
    their results back through the collaborator protocols.

Architecture position:
    Services -- stateful orchestration over engines + config + stores.
    Composes CompensationCalculator, KPICoefficientCalculator and
    summarize_salary_sheet with a SalarySheetLookup and a KPIRecordStore.

Invariants enforced:
    - The service never reads the clock: rates are resolved for the first
      day of the requested payroll month.
    - A payslip is written back only after the engine returned a complete
      result; engine errors propagate and nothing is persisted.
    - KPI basic salary is the period's gross salary; the recorded bonus is
      the KPI store's recorded figure, falling back to the salary sheet's
      variable pay (KPI bonus plus overtime).

Failure modes:
    - SalaryRecordNotFoundError if the employee has no row for the period.
    - InvalidInputError from the engines on invalid stored inputs or scores.
    - RateSetNotFoundError / ConfigurationError from rate resolution.

Audit relevance:
    Every calculation runs inside LogContext.bind(employee_code=...,
    payroll_period=..., actor_id=...), so the engine trace records and the
    persisted rate_set_id tie each payslip to its inputs and rates.

Usage:
    with session_scope() as session:
        service = PayrollCalculationService(
            SqlSalarySheetLookup(session), SqlKPIRecordStore(session),
        )
        payslip = service.calculate_payslip("NV001", 7, 2024, actor_id)
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from payroll_config import get_active_rates
from payroll_engines.compensation import (
    CompensationCalculator,
    CompensationResult,
    StatutoryRates,
)
from payroll_engines.kpi import KPICoefficientCalculator, KPIInput, KPIResult
from payroll_engines.sheet_summary import SalarySheetSummary, summarize_salary_sheet
from payroll_kernel.exceptions import InvalidInputError
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_services.protocols import KPIRecordStore, SalarySheetLookup

logger = get_logger("services.payroll_calculation")


def payroll_period(month: int, year: int) -> str:
    """Period label used in logs and LogContext, e.g. "2024-07"."""
    return f"{year:04d}-{month:02d}"


def _period_start(month: int, year: int) -> date:
    try:
        return date(year, month, 1)
    except (TypeError, ValueError) as e:
        raise InvalidInputError("payroll_period", (month, year), str(e)) from e


def _json_scores(scores: dict[str, Any]) -> dict[str, Any]:
    """Scores as JSON-safe values for the KPI record."""
    out: dict[str, Any] = {}
    for key, value in scores.items():
        if isinstance(value, Enum):
            out[key] = value.value
        elif isinstance(value, Decimal):
            out[key] = str(value)
        elif hasattr(value, "amount"):
            out[key] = str(value.amount)
        else:
            out[key] = value
    return out


class PayrollCalculationService:
    """
    Calculate payslips and KPI verdicts for a salary sheet.

    Contract:
        Receives the collaborator stores and an optional rate provider via
        constructor injection.  The rate provider maps a date to the
        StatutoryRates in force; it defaults to get_active_rates.
    """

    def __init__(
        self,
        salary_sheet: SalarySheetLookup,
        kpi_records: KPIRecordStore,
        rate_provider: Callable[[date], StatutoryRates] = get_active_rates,
    ):
        self._salary_sheet = salary_sheet
        self._kpi_records = kpi_records
        self._rate_provider = rate_provider
        self._compensation = CompensationCalculator()
        self._kpi = KPICoefficientCalculator()

    def rates_for(self, month: int, year: int) -> StatutoryRates:
        return self._rate_provider(_period_start(month, year))

    def calculate_payslip(
        self,
        employee_code: str,
        month: int,
        year: int,
        actor_id: UUID,
    ) -> CompensationResult:
        """
        Compute one employee's payslip and write it back to the sheet.

        Raises:
            SalaryRecordNotFoundError: No row for the employee and period.
            InvalidInputError: Stored inputs fail validation.
        """
        period = payroll_period(month, year)
        with LogContext.bind(
            employee_code=employee_code,
            payroll_period=period,
            actor_id=str(actor_id),
        ):
            rates = self.rates_for(month, year)
            comp_input = self._salary_sheet.get_compensation_input(
                employee_code, month, year,
            )
            result = self._compensation.compute(comp_input, rates)
            self._salary_sheet.record_payslip(
                employee_code, month, year, result, actor_id,
                rate_set_id=rates.rate_set_id,
            )
            logger.info("payslip_calculated", extra={
                "rate_set_id": rates.rate_set_id,
                "net_salary": str(result.net_salary.amount),
                "actual_payment": str(result.actual_payment.amount),
                "has_negative_payment": result.has_negative_payment,
            })
            return result

    def calculate_sheet(
        self,
        month: int,
        year: int,
        actor_id: UUID,
    ) -> list[CompensationResult]:
        """Calculate and record every payslip on the period's sheet."""
        inputs = self._salary_sheet.list_compensation_inputs(month, year)
        return [
            self.calculate_payslip(comp_input.employee_code, month, year, actor_id)
            for comp_input in inputs
        ]

    def calculate_kpi(
        self,
        employee_code: str,
        month: int,
        year: int,
        actor_id: UUID,
        **scores: Any,
    ) -> KPIResult:
        """
        Score one employee's month and persist the verdict.

        ``scores`` are the KPIInput category fields (completed_on_time,
        prod_bugs, mentoring, ...).  basic_salary and recorded_bonus are
        looked up, never passed in.

        Raises:
            SalaryRecordNotFoundError: No salary row for the period.
            InvalidInputError: A score is invalid or unknown.
        """
        for reserved in ("employee_code", "basic_salary", "recorded_bonus", "currency"):
            if reserved in scores:
                raise InvalidInputError(reserved, scores[reserved], "looked up, not supplied")

        period = payroll_period(month, year)
        with LogContext.bind(
            employee_code=employee_code,
            payroll_period=period,
            actor_id=str(actor_id),
        ):
            comp_input = self._salary_sheet.get_compensation_input(
                employee_code, month, year,
            )
            recorded = self._kpi_records.get_recorded_bonus(employee_code, month, year)
            if recorded is None:
                recorded = comp_input.variable_pay
                bonus_source = "salary_sheet"
            else:
                bonus_source = "kpi_record"

            try:
                kpi_input = KPIInput(
                    employee_code=employee_code,
                    basic_salary=comp_input.gross_salary,
                    recorded_bonus=recorded,
                    currency=comp_input.currency,
                    **scores,
                )
            except TypeError as e:
                raise InvalidInputError("scores", sorted(scores), str(e)) from e

            result = self._kpi.compute(kpi_input)
            self._kpi_records.save_kpi_result(
                result, month, year, actor_id, scores=_json_scores(scores),
            )
            logger.info("kpi_calculated", extra={
                "recorded_bonus_source": bonus_source,
                "kpi_coefficient": str(result.kpi_coefficient),
                "total_monthly_kpi": str(result.total_monthly_kpi.amount),
                "has_kpi_gap": result.has_kpi_gap,
            })
            return result

    def summarize_sheet(self, month: int, year: int) -> SalarySheetSummary:
        """
        Sheet totals for a period, recomputed from the stored inputs.

        Recomputing keeps totals consistent with the rates in force even
        for rows that were never individually calculated.
        """
        with LogContext.bind(payroll_period=payroll_period(month, year)):
            rates = self.rates_for(month, year)
            inputs = self._salary_sheet.list_compensation_inputs(month, year)
            results = [self._compensation.compute(i, rates) for i in inputs]
            currency = inputs[0].currency if inputs else "VND"
            return summarize_salary_sheet(results, currency=currency)
