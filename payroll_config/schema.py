"""
Statutory rate set schema.

Defines the human-authored, reviewable source artifact for payroll
statutory parameters.  YAML files are parsed into these types by the
loader and converted into the engines' StatutoryRates by the bridges.

Key distinction:
  RateSetDef      = source artifact (human-authored, versioned, dated)
  StatutoryRates  = runtime artifact (what the compensation engine consumes)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal


@dataclass(frozen=True)
class TaxBracketDef:
    """One marginal tax bracket.  ceiling None means unbounded."""

    ceiling: Decimal | None
    rate: Decimal


@dataclass(frozen=True)
class InsuranceRatesDef:
    """Mandatory insurance rates for both sides of the contribution."""

    employer_social: Decimal
    employer_accident: Decimal
    employer_health: Decimal
    employer_unemployment: Decimal
    employee_social: Decimal
    employee_health: Decimal
    employee_unemployment: Decimal


@dataclass(frozen=True)
class RateSetDef:
    """A dated set of statutory payroll parameters."""

    rate_set_id: str
    version: int
    currency: str
    effective_from: date
    effective_to: date | None
    standard_working_days: Decimal
    personal_deduction: Decimal
    dependent_deduction: Decimal
    seasonal_withholding_rate: Decimal
    tax_brackets: tuple[TaxBracketDef, ...]
    insurance: InsuranceRatesDef
    description: str = ""
    checksum: str = ""

    def is_effective_on(self, as_of_date: date) -> bool:
        if as_of_date < self.effective_from:
            return False
        return self.effective_to is None or as_of_date <= self.effective_to
