"""
Config -> Engine Bridges.

Converts a parsed RateSetDef into the StatutoryRates the compensation
engine consumes.  Lives in payroll_config (the producer) because the
engines must NEVER import payroll_config.

Usage:
    from payroll_config.bridges import build_statutory_rates

    rates = build_statutory_rates(rate_set_def)
    payslip = compute_compensation(comp_input, rates)
"""

from __future__ import annotations

from payroll_config.schema import RateSetDef
from payroll_engines.compensation import InsuranceRates, StatutoryRates, TaxBracket
from payroll_kernel.exceptions import ConfigurationError


def build_statutory_rates(rate_set: RateSetDef) -> StatutoryRates:
    """
    Build engine rates from a rate set definition.

    Raises:
        ConfigurationError: If the engine rejects the rate values.
    """
    ins = rate_set.insurance
    try:
        return StatutoryRates(
            rate_set_id=rate_set.rate_set_id,
            currency=rate_set.currency,
            standard_working_days=rate_set.standard_working_days,
            personal_deduction=rate_set.personal_deduction,
            dependent_deduction=rate_set.dependent_deduction,
            seasonal_withholding_rate=rate_set.seasonal_withholding_rate,
            tax_brackets=tuple(
                TaxBracket(ceiling=b.ceiling, rate=b.rate)
                for b in rate_set.tax_brackets
            ),
            insurance=InsuranceRates(
                employer_social=ins.employer_social,
                employer_accident=ins.employer_accident,
                employer_health=ins.employer_health,
                employer_unemployment=ins.employer_unemployment,
                employee_social=ins.employee_social,
                employee_health=ins.employee_health,
                employee_unemployment=ins.employee_unemployment,
            ),
        )
    except ValueError as e:
        raise ConfigurationError(
            f"Rate set {rate_set.rate_set_id!r} rejected: {e}"
        ) from e
