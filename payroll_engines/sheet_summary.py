"""
Salary sheet summary - period totals over computed payslips.

Pure function; no I/O.  Sums the figures a payroll sheet reports at the
bottom of the month: net pay, personal income tax, both sides of
mandatory insurance and the total payment they add up to.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from payroll_engines._numeric import resolve_currency
from payroll_engines.compensation import CompensationResult
from payroll_kernel.domain.values import Currency, Money
from payroll_kernel.exceptions import InvalidInputError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.sheet_summary")


@dataclass(frozen=True)
class SalarySheetSummary:
    """Totals for one salary sheet.  Amounts keep full precision."""

    currency: Currency
    employee_count: int
    total_net_salary: Money
    total_personal_income_tax: Money
    total_company_insurance: Money
    total_personal_insurance: Money
    total_payment: Money
    negative_payment_count: int


def summarize_salary_sheet(
    results: Iterable[CompensationResult],
    currency: Currency | str = "VND",
) -> SalarySheetSummary:
    """
    Aggregate payslips into sheet totals.

    total_payment is net salary + tax + employer insurance + employee
    insurance, summed over every payslip.  An empty sheet sums to zero.

    Raises:
        InvalidInputError: If a payslip is in a different currency.
    """
    currency = resolve_currency(currency)
    net = tax = company = personal = Money.zero(currency)
    count = 0
    negative = 0

    for result in results:
        if result.currency != currency:
            raise InvalidInputError(
                "currency",
                str(result.currency),
                f"payslip for {result.employee_code} is not in {currency}",
            )
        net += result.net_salary
        tax += result.total_personal_income_tax
        company += result.total_employer_contribution
        personal += result.total_employee_contribution
        count += 1
        if result.has_negative_payment:
            negative += 1

    summary = SalarySheetSummary(
        currency=currency,
        employee_count=count,
        total_net_salary=net,
        total_personal_income_tax=tax,
        total_company_insurance=company,
        total_personal_insurance=personal,
        total_payment=net + tax + company + personal,
        negative_payment_count=negative,
    )
    logger.info("salary_sheet_summarized", extra={
        "employee_count": count,
        "total_payment": str(summary.total_payment.amount),
        "negative_payment_count": negative,
    })
    return summary
