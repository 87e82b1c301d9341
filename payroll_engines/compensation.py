"""
Compensation Engine - gross pay to an itemized payslip.

Pure functions with deterministic behavior. No I/O.

Turns raw employee inputs (gross salary, worked days, bonuses, overtime,
insurance base, dependents, advance) into net pay, employer cost and the
statutory deductions, following:

- a 22-working-day monthly convention for the daily rate
- dual-sided mandatory insurance (BHXH, TNLD, BHYT, BHTN)
- personal and dependent family deductions
- a marginal seven-bracket personal income tax schedule, or a flat 10%
  withholding for seasonal contracts

All arithmetic is Decimal and nothing is rounded mid-calculation.
CompensationResult.rounded() gives the presentation view.

Usage:
    from payroll_engines.compensation import (
        CompensationInput,
        SalaryType,
        compute_compensation,
    )

    payslip = compute_compensation(
        CompensationInput(
            gross_salary=Money.of("22000000", "VND"),
            working_days=Decimal("22"),
            insurance_base_amount=Money.of("22000000", "VND"),
            salary_type=SalaryType.WITH_INSURANCE,
        )
    )
    print(payslip.net_salary)  # Money: 19071000 VND
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

from payroll_engines._numeric import (
    ZERO,
    floor_zero,
    non_negative_count,
    non_negative_decimal,
    non_negative_money,
    resolve_currency,
)
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.values import Currency, Money
from payroll_kernel.exceptions import InvalidInputError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.compensation")


# ============================================================================
# Statutory rate table
# ============================================================================


class SalaryType(str, Enum):
    """Contract type: selects insurance + progressive tax, or flat withholding."""

    WITH_INSURANCE = "with_insurance"  # Lương có BH
    SEASONAL = "seasonal"  # Lương thời vụ

    @property
    def label(self) -> str:
        return _SALARY_TYPE_LABELS[self]

    @classmethod
    def from_label(cls, text: str) -> SalaryType:
        """Parse an enum value or a salary-sheet label ("Lương có BH")."""
        normalized = text.strip() if isinstance(text, str) else text
        for member in cls:
            if normalized in (member.value, member.label):
                return member
        raise InvalidInputError("salary_type", text, "unknown salary type")


_SALARY_TYPE_LABELS = {
    SalaryType.WITH_INSURANCE: "Lương có BH",
    SalaryType.SEASONAL: "Lương thời vụ",
}


@dataclass(frozen=True)
class TaxBracket:
    """One marginal bracket. ``ceiling`` is cumulative; None means unbounded."""

    ceiling: Decimal | None
    rate: Decimal


@dataclass(frozen=True)
class InsuranceRates:
    """
    Mandatory insurance contribution rates, as decimals (0.17 for 17%).

    Unemployment insurance (BHTN) is assessed on gross salary; every other
    line is assessed on the insurance base amount.
    """

    employer_social: Decimal = Decimal("0.17")  # BHXH
    employer_accident: Decimal = Decimal("0.005")  # TNLD, employer only
    employer_health: Decimal = Decimal("0.03")  # BHYT
    employer_unemployment: Decimal = Decimal("0.01")  # BHTN
    employee_social: Decimal = Decimal("0.08")  # BHXH
    employee_health: Decimal = Decimal("0.015")  # BHYT
    employee_unemployment: Decimal = Decimal("0.01")  # BHTN

    def __post_init__(self) -> None:
        for f in dataclasses.fields(self):
            rate = getattr(self, f.name)
            if not isinstance(rate, Decimal) or not rate.is_finite():
                raise ValueError(f"{f.name} must be a finite Decimal, got {rate!r}")
            if rate < ZERO or rate > Decimal("1"):
                raise ValueError(f"{f.name} must be between 0 and 1, got {rate}")


DEFAULT_TAX_BRACKETS: tuple[TaxBracket, ...] = (
    TaxBracket(Decimal("5000000"), Decimal("0.05")),
    TaxBracket(Decimal("10000000"), Decimal("0.10")),
    TaxBracket(Decimal("18000000"), Decimal("0.15")),
    TaxBracket(Decimal("32000000"), Decimal("0.20")),
    TaxBracket(Decimal("52000000"), Decimal("0.25")),
    TaxBracket(Decimal("80000000"), Decimal("0.30")),
    TaxBracket(None, Decimal("0.35")),
)


@dataclass(frozen=True)
class StatutoryRates:
    """
    Complete statutory parameter set for one compensation calculation.

    Contract:
        Brackets are ordered by strictly increasing ceiling and only the
        last bracket is unbounded.  Amounts are in ``currency``;
        inputs in any other currency are refused.
    """

    rate_set_id: str = "builtin"
    currency: Currency | str = "VND"
    standard_working_days: Decimal = Decimal("22")
    personal_deduction: Decimal = Decimal("11000000")
    dependent_deduction: Decimal = Decimal("4400000")
    seasonal_withholding_rate: Decimal = Decimal("0.10")
    tax_brackets: tuple[TaxBracket, ...] = DEFAULT_TAX_BRACKETS
    insurance: InsuranceRates = field(default_factory=InsuranceRates)

    def __post_init__(self) -> None:
        if not isinstance(self.currency, Currency):
            object.__setattr__(self, "currency", Currency(self.currency))
        if self.standard_working_days <= ZERO:
            raise ValueError("standard_working_days must be positive")
        if self.personal_deduction < ZERO or self.dependent_deduction < ZERO:
            raise ValueError("deductions must be non-negative")
        if not ZERO <= self.seasonal_withholding_rate <= Decimal("1"):
            raise ValueError("seasonal_withholding_rate must be between 0 and 1")
        if not self.tax_brackets:
            raise ValueError("at least one tax bracket is required")

        previous = ZERO
        for index, bracket in enumerate(self.tax_brackets):
            is_last = index == len(self.tax_brackets) - 1
            if bracket.ceiling is None and not is_last:
                raise ValueError("only the last tax bracket may be unbounded")
            if bracket.ceiling is not None:
                if is_last:
                    raise ValueError("the last tax bracket must be unbounded")
                if bracket.ceiling <= previous:
                    raise ValueError(
                        f"tax bracket ceilings must strictly increase: {bracket.ceiling}"
                    )
                previous = bracket.ceiling
            if not ZERO <= bracket.rate <= Decimal("1"):
                raise ValueError(f"tax bracket rate out of range: {bracket.rate}")


DEFAULT_RATES = StatutoryRates()


# ============================================================================
# Value Objects
# ============================================================================

_INPUT_MONEY_FIELDS = (
    "gross_salary",
    "kpi_bonus",
    "overtime_1_5",
    "overtime_2",
    "overtime_3",
    "insurance_base_amount",
    "advance_payment",
)


@dataclass(frozen=True)
class CompensationInput:
    """
    Raw payslip inputs for one employee and one pay period.

    Money fields accept Money (in ``currency``) or bare Decimal/int/str,
    which are wrapped in ``currency``.  Overtime amounts already include
    their 150% / 200% / 300% multipliers.

    Raises:
        InvalidInputError: on negative, non-finite, float or non-integer
            values, or a Money in a different currency.
    """

    gross_salary: Money
    working_days: Decimal
    kpi_bonus: Money = ZERO
    overtime_1_5: Money = ZERO
    overtime_2: Money = ZERO
    overtime_3: Money = ZERO
    insurance_base_amount: Money = ZERO
    dependent_count: int = 0
    advance_payment: Money = ZERO
    salary_type: SalaryType = SalaryType.WITH_INSURANCE
    employee_code: str | None = None
    currency: Currency | str = "VND"

    def __post_init__(self) -> None:
        currency = resolve_currency(self.currency)
        object.__setattr__(self, "currency", currency)
        for name in _INPUT_MONEY_FIELDS:
            object.__setattr__(
                self, name, non_negative_money(name, getattr(self, name), currency)
            )
        object.__setattr__(
            self, "working_days", non_negative_decimal("working_days", self.working_days)
        )
        object.__setattr__(
            self, "dependent_count", non_negative_count("dependent_count", self.dependent_count)
        )
        if not isinstance(self.salary_type, SalaryType):
            object.__setattr__(self, "salary_type", SalaryType.from_label(self.salary_type))

    @property
    def variable_pay(self) -> Money:
        """KPI bonus plus all overtime: the bonus recorded on the salary sheet."""
        return self.kpi_bonus + self.overtime_1_5 + self.overtime_2 + self.overtime_3


@dataclass(frozen=True)
class BracketTax:
    """Tax assessed on the slice of taxable income inside one bracket."""

    ceiling: Decimal | None
    rate: Decimal
    taxable_slice: Money
    tax: Money

    @property
    def rate_percent(self) -> Decimal:
        return self.rate * Decimal("100")


@dataclass(frozen=True)
class CompensationResult:
    """
    Fully itemized payslip.

    Immutable value object; constructed once per calculation.  Amounts keep
    full Decimal precision -- use rounded() for display.  actual_payment may
    be negative when the advance exceeds net pay; that is a reportable
    outcome, see has_negative_payment.
    """

    salary_type: SalaryType
    currency: Currency
    employee_code: str | None

    daily_rate: Money
    daily_salary: Money
    total_income: Money

    # Employer side (BHDN)
    employer_social_insurance: Money
    employer_accident_insurance: Money
    employer_health_insurance: Money
    employer_unemployment_insurance: Money
    total_employer_contribution: Money
    total_company_payment: Money

    # Employee side (BHNLD)
    employee_social_insurance: Money
    employee_health_insurance: Money
    employee_unemployment_insurance: Money
    total_employee_contribution: Money

    # Deductions
    personal_deduction: Money
    dependent_deduction: Money
    insurance_deduction: Money
    total_deduction: Money

    # Personal income tax
    taxable_income: Money
    tax_lines: tuple[BracketTax, ...]
    total_personal_income_tax: Money

    net_salary: Money
    advance_payment: Money
    actual_payment: Money

    @property
    def has_negative_payment(self) -> bool:
        """True when the advance already paid exceeds net pay."""
        return self.actual_payment.is_negative

    @property
    def insurance_lines(self) -> tuple[Money, ...]:
        """Every insurance line item and both side totals."""
        return (
            self.employer_social_insurance,
            self.employer_accident_insurance,
            self.employer_health_insurance,
            self.employer_unemployment_insurance,
            self.total_employer_contribution,
            self.employee_social_insurance,
            self.employee_health_insurance,
            self.employee_unemployment_insurance,
            self.total_employee_contribution,
        )

    def tax_at_rate(self, rate: Decimal) -> Money:
        """Tax assessed in the bracket with ``rate``; zero if no such bracket."""
        for line in self.tax_lines:
            if line.rate == rate:
                return line.tax
        return Money.zero(self.currency)

    @property
    def tax_5_percent(self) -> Money:
        return self.tax_at_rate(Decimal("0.05"))

    @property
    def tax_10_percent(self) -> Money:
        return self.tax_at_rate(Decimal("0.10"))

    @property
    def tax_15_percent(self) -> Money:
        return self.tax_at_rate(Decimal("0.15"))

    @property
    def tax_20_percent(self) -> Money:
        return self.tax_at_rate(Decimal("0.20"))

    @property
    def tax_25_percent(self) -> Money:
        return self.tax_at_rate(Decimal("0.25"))

    @property
    def tax_30_percent(self) -> Money:
        return self.tax_at_rate(Decimal("0.30"))

    @property
    def tax_35_percent(self) -> Money:
        return self.tax_at_rate(Decimal("0.35"))

    def rounded(self, rounding: str = ROUND_HALF_UP) -> CompensationResult:
        """Copy with every amount rounded to the currency's minor unit."""
        changes: dict[str, Any] = {}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Money):
                changes[f.name] = value.round(rounding)
        changes["tax_lines"] = tuple(
            dataclasses.replace(
                line,
                taxable_slice=line.taxable_slice.round(rounding),
                tax=line.tax.round(rounding),
            )
            for line in self.tax_lines
        )
        return dataclasses.replace(self, **changes)


# ============================================================================
# Calculation
# ============================================================================


def _validate(comp_input: CompensationInput, rates: StatutoryRates) -> None:
    """Re-check an input and its rates before computing; results are never partial."""
    if not isinstance(rates, StatutoryRates):
        raise InvalidInputError("rates", rates, "expected StatutoryRates")
    if not isinstance(comp_input, CompensationInput):
        raise InvalidInputError(
            "comp_input", comp_input, "expected a CompensationInput"
        )
    currency = comp_input.currency
    for name in _INPUT_MONEY_FIELDS:
        non_negative_money(name, getattr(comp_input, name), currency)
    non_negative_decimal("working_days", comp_input.working_days)
    non_negative_count("dependent_count", comp_input.dependent_count)
    if currency != rates.currency:
        raise InvalidInputError(
            "currency",
            currency,
            f"rate set {rates.rate_set_id!r} is denominated in {rates.currency}",
        )


def marginal_tax(
    taxable_income: Decimal,
    brackets: tuple[TaxBracket, ...],
) -> list[tuple[TaxBracket, Decimal, Decimal]]:
    """
    Split taxable income across marginal brackets.

    Returns (bracket, slice, tax) for every bracket, in order.  Each rate
    applies only to the slice of income between the previous ceiling and
    its own.
    """
    lines = []
    lower = ZERO
    for bracket in brackets:
        if bracket.ceiling is None:
            slice_ = floor_zero(taxable_income - lower)
        else:
            slice_ = floor_zero(min(taxable_income, bracket.ceiling) - lower)
        lines.append((bracket, slice_, slice_ * bracket.rate))
        if bracket.ceiling is not None:
            lower = bracket.ceiling
    return lines


class CompensationCalculator:
    """
    Compute an itemized payslip from a CompensationInput.

    Pure - no I/O, no database access, no clock.  Statutory rates are a
    parameter; the default is the built-in table.
    """

    @traced_engine("compensation", "1.0", fingerprint_fields=("comp_input", "rates"))
    def compute(
        self,
        comp_input: CompensationInput,
        rates: StatutoryRates | None = None,
    ) -> CompensationResult:
        """
        Calculate the payslip.

        Args:
            comp_input: Validated employee inputs for the period.
            rates: Statutory rates; None uses DEFAULT_RATES.

        Returns:
            CompensationResult with every line item.

        Raises:
            InvalidInputError: If the input fails validation, the rates are not
                StatutoryRates, or the input currency differs from the
                rates' currency.
        """
        rates = DEFAULT_RATES if rates is None else rates
        _validate(comp_input, rates)
        ins = rates.insurance
        currency = comp_input.currency

        def money(amount: Decimal) -> Money:
            return Money(amount=amount, currency=currency)

        gross = comp_input.gross_salary.amount
        base = comp_input.insurance_base_amount.amount

        daily_rate = gross / rates.standard_working_days
        # Multiply before dividing so a full month pays exactly the gross
        daily_salary = gross * comp_input.working_days / rates.standard_working_days
        total_income = daily_salary + comp_input.variable_pay.amount

        if comp_input.salary_type == SalaryType.WITH_INSURANCE:
            employer_social = base * ins.employer_social
            employer_accident = base * ins.employer_accident
            employer_health = base * ins.employer_health
            employer_unemployment = gross * ins.employer_unemployment
            employee_social = base * ins.employee_social
            employee_health = base * ins.employee_health
            employee_unemployment = gross * ins.employee_unemployment
        else:
            employer_social = employer_accident = employer_health = ZERO
            employer_unemployment = ZERO
            employee_social = employee_health = employee_unemployment = ZERO

        total_employer = (
            employer_social + employer_accident + employer_health + employer_unemployment
        )
        total_employee = employee_social + employee_health + employee_unemployment
        total_company_payment = total_income + total_employer

        personal_deduction = rates.personal_deduction
        dependent_deduction = rates.dependent_deduction * comp_input.dependent_count
        insurance_deduction = total_employee
        total_deduction = personal_deduction + dependent_deduction + insurance_deduction

        if comp_input.salary_type == SalaryType.SEASONAL:
            taxable_income = ZERO
            total_tax = total_income * rates.seasonal_withholding_rate
            tax_lines = tuple(
                BracketTax(
                    ceiling=b.ceiling,
                    rate=b.rate,
                    taxable_slice=money(ZERO),
                    tax=money(ZERO),
                )
                for b in rates.tax_brackets
            )
        else:
            taxable_income = floor_zero(total_income - total_deduction)
            split = marginal_tax(taxable_income, rates.tax_brackets)
            tax_lines = tuple(
                BracketTax(
                    ceiling=b.ceiling,
                    rate=b.rate,
                    taxable_slice=money(slice_),
                    tax=money(tax),
                )
                for b, slice_, tax in split
            )
            total_tax = sum((tax for _, _, tax in split), ZERO)

        net_salary = total_income - total_employee - total_tax
        actual_payment = net_salary - comp_input.advance_payment.amount

        result = CompensationResult(
            salary_type=comp_input.salary_type,
            currency=currency,
            employee_code=comp_input.employee_code,
            daily_rate=money(daily_rate),
            daily_salary=money(daily_salary),
            total_income=money(total_income),
            employer_social_insurance=money(employer_social),
            employer_accident_insurance=money(employer_accident),
            employer_health_insurance=money(employer_health),
            employer_unemployment_insurance=money(employer_unemployment),
            total_employer_contribution=money(total_employer),
            total_company_payment=money(total_company_payment),
            employee_social_insurance=money(employee_social),
            employee_health_insurance=money(employee_health),
            employee_unemployment_insurance=money(employee_unemployment),
            total_employee_contribution=money(total_employee),
            personal_deduction=money(personal_deduction),
            dependent_deduction=money(dependent_deduction),
            insurance_deduction=money(insurance_deduction),
            total_deduction=money(total_deduction),
            taxable_income=money(taxable_income),
            tax_lines=tax_lines,
            total_personal_income_tax=money(total_tax),
            net_salary=money(net_salary),
            advance_payment=comp_input.advance_payment,
            actual_payment=money(actual_payment),
        )

        logger.info("compensation_computed", extra={
            "employee_code": comp_input.employee_code,
            "salary_type": comp_input.salary_type.value,
            "rate_set_id": rates.rate_set_id,
            "total_income": str(total_income),
            "taxable_income": str(taxable_income),
            "total_personal_income_tax": str(total_tax),
            "net_salary": str(net_salary),
            "actual_payment": str(actual_payment),
        })
        if result.has_negative_payment:
            logger.warning("compensation_negative_actual_payment", extra={
                "employee_code": comp_input.employee_code,
                "net_salary": str(net_salary),
                "advance_payment": str(comp_input.advance_payment.amount),
            })

        return result


_calculator = CompensationCalculator()


def compute_compensation(
    comp_input: CompensationInput,
    rates: StatutoryRates | None = None,
) -> CompensationResult:
    """Module-level convenience for CompensationCalculator().compute()."""
    return _calculator.compute(comp_input, rates)
