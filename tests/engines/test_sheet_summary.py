"""Tests for salary sheet totals."""

from decimal import Decimal

import pytest

from payroll_engines.compensation import (
    CompensationInput,
    SalaryType,
    StatutoryRates,
    compute_compensation,
)
from payroll_engines.sheet_summary import summarize_salary_sheet
from payroll_kernel.domain.values import Money
from payroll_kernel.exceptions import InvalidInputError


def vnd(amount: str) -> Money:
    return Money.of(amount, "VND")


class TestSummarizeSalarySheet:

    def setup_method(self):
        self.insured = compute_compensation(CompensationInput(
            employee_code="NV001",
            gross_salary=vnd("22000000"),
            working_days=Decimal("22"),
            insurance_base_amount=vnd("22000000"),
        ))
        self.seasonal = compute_compensation(CompensationInput(
            employee_code="TV001",
            gross_salary=vnd("10000000"),
            working_days=Decimal("22"),
            salary_type=SalaryType.SEASONAL,
            advance_payment=vnd("9500000"),
        ))

    def test_totals(self):
        """Net, tax and both insurance sides sum across payslips."""
        summary = summarize_salary_sheet([self.insured, self.seasonal])

        assert summary.employee_count == 2
        assert summary.total_net_salary == vnd("28071000")
        assert summary.total_personal_income_tax == vnd("1619000")
        assert summary.total_company_insurance == vnd("4730000")
        assert summary.total_personal_insurance == vnd("2310000")

    def test_total_payment(self):
        """Total payment is net + tax + employer + employee insurance."""
        summary = summarize_salary_sheet([self.insured, self.seasonal])

        assert summary.total_payment == vnd("36730000")

    def test_negative_payment_count(self):
        """Payslips whose advance exceeds net pay are counted."""
        summary = summarize_salary_sheet([self.insured, self.seasonal])

        assert summary.negative_payment_count == 1

    def test_empty_sheet(self):
        """An empty sheet sums to zero."""
        summary = summarize_salary_sheet([])

        assert summary.employee_count == 0
        assert summary.total_payment == vnd("0")
        assert summary.negative_payment_count == 0

    def test_mixed_currency(self):
        usd = compute_compensation(
            CompensationInput(gross_salary="2200", working_days="22", currency="USD"),
            StatutoryRates(currency="USD"),
        )

        with pytest.raises(InvalidInputError):
            summarize_salary_sheet([self.insured, usd])

    def test_accepts_generator(self):
        summary = summarize_salary_sheet(r for r in [self.insured])

        assert summary.employee_count == 1
