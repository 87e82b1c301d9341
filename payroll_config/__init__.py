"""
payroll_config -- single public entrypoint for statutory payroll rates.

Responsibility:
    Provides the ONLY way to obtain statutory rates at runtime through
    ``get_active_rates()``.  Returns a ``StatutoryRates`` ready for the
    compensation engine.  YAML loading is internal tooling.

Architecture position:
    Configuration -- YAML-driven rate sets.  Sits above ``payroll_kernel``
    and ``payroll_engines`` and below ``payroll_services``.  The engines
    MUST NEVER import from ``payroll_config``; ``bridges`` translates rate
    set definitions into engine inputs.

Invariants enforced:
    - Single entrypoint: all runtime rates flow through ``get_active_rates()``.
    - Effective dating: the set with the latest ``effective_from`` that
      covers the requested date wins.  Two sets starting on the same day
      for the same date are ambiguous and rejected.
    - Validation: brackets strictly increasing, only the last unbounded,
      rates within [0, 1].

Failure modes:
    - ``RateSetNotFoundError`` -- no set is effective on the requested date.
    - ``ConfigurationError`` -- missing directory, failed validation or an
      ambiguous selection.

Audit relevance:
    Every successful ``get_active_rates()`` call emits a
    ``PAYROLL_CONFIG_TRACE`` log entry with the rate set id, version,
    effective date and checksum, tying each payslip to the exact rates
    that produced it.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

from payroll_config.bridges import build_statutory_rates
from payroll_config.loader import load_rate_sets, validate_rate_set
from payroll_config.schema import RateSetDef
from payroll_engines.compensation import StatutoryRates
from payroll_kernel.exceptions import ConfigurationError, RateSetNotFoundError

_logger = logging.getLogger("payroll_kernel.config")

# Default rate sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def get_active_rates(
    as_of_date: date,
    config_dir: Path | None = None,
) -> StatutoryRates:
    """The ONLY public configuration entrypoint.

    Args:
        as_of_date: Payroll date the rates must be effective on.
        config_dir: Override path to the rate sets directory.
            Defaults to payroll_config/sets/.

    Returns:
        StatutoryRates for the compensation engine.

    Raises:
        RateSetNotFoundError: If no rate set is effective on as_of_date.
        ConfigurationError: If the directory is missing, the selected set
            fails validation, or the selection is ambiguous.
    """
    sets_dir = Path(config_dir) if config_dir is not None else _DEFAULT_CONFIG_DIR
    rate_set = _find_effective_set(sets_dir, as_of_date)

    errors = validate_rate_set(rate_set)
    if errors:
        raise ConfigurationError(
            f"Rate set {rate_set.rate_set_id!r} failed validation:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )

    rates = build_statutory_rates(rate_set)

    _logger.info(
        "PAYROLL_CONFIG_TRACE",
        extra={
            "trace_type": "PAYROLL_CONFIG_TRACE",
            "rate_set_id": rate_set.rate_set_id,
            "rate_set_version": rate_set.version,
            "effective_from": rate_set.effective_from.isoformat(),
            "as_of_date": as_of_date.isoformat(),
            "checksum": rate_set.checksum,
            "bracket_count": len(rate_set.tax_brackets),
        },
    )
    return rates


def _find_effective_set(sets_dir: Path, as_of_date: date) -> RateSetDef:
    """Latest-starting rate set effective on as_of_date."""
    if not sets_dir.is_dir():
        raise ConfigurationError(f"Rate sets directory not found: {sets_dir}")

    candidates = [s for s in load_rate_sets(sets_dir) if s.is_effective_on(as_of_date)]
    if not candidates:
        raise RateSetNotFoundError(as_of_date.isoformat(), str(sets_dir))

    candidates.sort(key=lambda s: s.effective_from, reverse=True)
    if len(candidates) > 1 and candidates[0].effective_from == candidates[1].effective_from:
        raise ConfigurationError(
            f"Ambiguous rate sets effective on {as_of_date}: "
            f"{candidates[0].rate_set_id!r} and {candidates[1].rate_set_id!r}"
        )
    return candidates[0]


__all__ = ["get_active_rates"]
