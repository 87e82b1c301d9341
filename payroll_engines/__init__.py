"""
Module: payroll_engines
Responsibility:
    Package entrypoint that re-exports all public symbols from the pure
    calculation engine sub-modules.  This is the canonical import surface
    for higher layers (payroll_services, payroll_config).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import payroll_kernel (domain, exceptions, logging_config) and
    sibling engine modules.  MUST NOT import payroll_services or
    payroll_config.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
    - Decimal-only arithmetic: floats are refused at input construction.
    - Determinism: identical inputs always produce identical outputs.
    - No partial results: invalid input raises before anything is computed.

Failure modes:
    - InvalidInputError from either calculator on invalid input.  It is the
      only error the calculators raise.

Audit relevance:
    Every engine invocation is traced via the ``@traced_engine`` decorator
    (see ``payroll_engines.tracer``), emitting PAYROLL_ENGINE_TRACE log
    records that include engine name, version, input fingerprint, and
    duration.

Usage:
    from payroll_engines import compute_compensation, compute_kpi
    from payroll_engines import summarize_salary_sheet
"""

from payroll_kernel.logging_config import get_logger

logger = get_logger("engines")

from payroll_engines.compensation import (
    DEFAULT_RATES,
    DEFAULT_TAX_BRACKETS,
    BracketTax,
    CompensationCalculator,
    CompensationInput,
    CompensationResult,
    InsuranceRates,
    SalaryType,
    StatutoryRates,
    TaxBracket,
    compute_compensation,
    marginal_tax,
)
from payroll_engines.kpi import (
    KPI_GAP_TOLERANCE,
    TIER_DELTAS,
    KPICoefficientCalculator,
    KPIInput,
    KPIResult,
    TieredField,
    TierOutcome,
    compute_kpi,
    tier_delta,
)
from payroll_engines.sheet_summary import (
    SalarySheetSummary,
    summarize_salary_sheet,
)
from payroll_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    # Compensation
    "BracketTax",
    "CompensationCalculator",
    "CompensationInput",
    "CompensationResult",
    "DEFAULT_RATES",
    "DEFAULT_TAX_BRACKETS",
    "InsuranceRates",
    "SalaryType",
    "StatutoryRates",
    "TaxBracket",
    "compute_compensation",
    "marginal_tax",
    # KPI
    "KPI_GAP_TOLERANCE",
    "KPICoefficientCalculator",
    "KPIInput",
    "KPIResult",
    "TIER_DELTAS",
    "TierOutcome",
    "TieredField",
    "compute_kpi",
    "tier_delta",
    # Sheet summary
    "SalarySheetSummary",
    "summarize_salary_sheet",
    # Tracing
    "compute_input_fingerprint",
    "traced_engine",
]
