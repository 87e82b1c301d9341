"""
Rate Set Loader (``payroll_config.loader``).

Responsibility
--------------
Loads statutory rate set YAML files and parses them into typed
``payroll_config.schema`` dataclass instances.  Runtime callers go
through ``payroll_config.get_active_rates()`` instead.

Invariants enforced
-------------------
* Numbers are parsed into ``Decimal`` through ``str``; no float survives
  parsing.
* Every parsed object is a frozen dataclass from ``schema.py``.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the raw
  set for configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Unparseable numbers or dates  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from payroll_config.schema import InsuranceRatesDef, RateSetDef, TaxBracketDef
from payroll_kernel.domain.currency import CurrencyRegistry

_INSURANCE_KEYS = {
    "employer": ("social", "accident", "health", "unemployment"),
    "employee": ("social", "health", "unemployment"),
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; an empty file yields an empty dict."""
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    """Parse a date from YAML (string or date object)."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_decimal(value: Any) -> Decimal:
    """Parse a YAML scalar into a finite Decimal."""
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Cannot parse decimal from {value!r}")
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ValueError(f"Cannot parse decimal from {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Decimal must be finite, got {value!r}")
    return result


def parse_tax_bracket(data: dict[str, Any]) -> TaxBracketDef:
    """Parse a TaxBracketDef.  A null ceiling marks the unbounded bracket."""
    ceiling = data.get("ceiling")
    return TaxBracketDef(
        ceiling=parse_decimal(ceiling) if ceiling is not None else None,
        rate=parse_decimal(data["rate"]),
    )


def parse_insurance(data: dict[str, Any]) -> InsuranceRatesDef:
    """Parse the ``employer`` / ``employee`` insurance mappings."""
    values = {}
    for side, keys in _INSURANCE_KEYS.items():
        side_data = data[side]
        for key in keys:
            values[f"{side}_{key}"] = parse_decimal(side_data[key])
    return InsuranceRatesDef(**values)


def parse_rate_set(data: dict[str, Any], checksum: str = "") -> RateSetDef:
    """Parse a RateSetDef from a dict."""
    return RateSetDef(
        rate_set_id=data["rate_set_id"],
        version=int(data.get("version", 1)),
        currency=data.get("currency", "VND"),
        effective_from=parse_date(data["effective_from"]),
        effective_to=(
            parse_date(data["effective_to"]) if data.get("effective_to") else None
        ),
        standard_working_days=parse_decimal(data["standard_working_days"]),
        personal_deduction=parse_decimal(data["personal_deduction"]),
        dependent_deduction=parse_decimal(data["dependent_deduction"]),
        seasonal_withholding_rate=parse_decimal(data["seasonal_withholding_rate"]),
        tax_brackets=tuple(parse_tax_bracket(b) for b in data["tax_brackets"]),
        insurance=parse_insurance(data["insurance"]),
        description=data.get("description", ""),
        checksum=checksum,
    )


def load_rate_set(path: Path) -> RateSetDef:
    """Load and parse one rate set file, stamping its checksum."""
    data = load_yaml_file(path)
    return parse_rate_set(data, checksum=compute_checksum(data))


def load_rate_sets(sets_dir: Path) -> list[RateSetDef]:
    """Load every ``*.yaml`` rate set in a directory, in file-name order."""
    return [load_rate_set(path) for path in sorted(sets_dir.glob("*.yaml"))]


def validate_rate_set(rate_set: RateSetDef) -> list[str]:
    """
    Structural checks on a parsed rate set.

    Returns a list of error messages; empty means valid.
    """
    errors: list[str] = []
    if rate_set.effective_to is not None and rate_set.effective_to < rate_set.effective_from:
        errors.append("effective_to is before effective_from")
    if not CurrencyRegistry.is_valid(rate_set.currency):
        errors.append(f"unknown currency {rate_set.currency!r}")
    if rate_set.standard_working_days <= 0:
        errors.append("standard_working_days must be positive")
    for name in ("personal_deduction", "dependent_deduction"):
        if getattr(rate_set, name) < 0:
            errors.append(f"{name} must be non-negative")
    if not 0 <= rate_set.seasonal_withholding_rate <= 1:
        errors.append("seasonal_withholding_rate must be between 0 and 1")

    brackets = rate_set.tax_brackets
    if not brackets:
        errors.append("at least one tax bracket is required")
    previous = Decimal("0")
    for index, bracket in enumerate(brackets):
        is_last = index == len(brackets) - 1
        if bracket.ceiling is None and not is_last:
            errors.append(f"tax bracket {index} is unbounded but not last")
        elif bracket.ceiling is not None:
            if is_last:
                errors.append("the last tax bracket must be unbounded")
            if bracket.ceiling <= previous:
                errors.append(f"tax bracket {index} ceiling does not increase")
            previous = bracket.ceiling
        if not 0 <= bracket.rate <= 1:
            errors.append(f"tax bracket {index} rate must be between 0 and 1")

    for name, rate in vars(rate_set.insurance).items():
        if not 0 <= rate <= 1:
            errors.append(f"insurance rate {name} must be between 0 and 1")
    return errors


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of a raw rate set."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
