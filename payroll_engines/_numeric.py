"""
Shared numeric helpers for the payroll engines.

Input coercion and validation (every failure is an InvalidInputError) plus
the zero-floor used by several KPI categories.  No rounding happens here:
intermediate precision is preserved and rounding is a presentation concern.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from payroll_kernel.domain.values import Currency, Money
from payroll_kernel.exceptions import InvalidInputError

ZERO = Decimal("0")


def floor_zero(value: Decimal) -> Decimal:
    """max(0, value)."""
    return value if value > ZERO else ZERO


def to_decimal(field: str, value: Any) -> Decimal:
    """Coerce int / str / Decimal to Decimal; floats and bools are refused."""
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidInputError(field, value, "expected Decimal, int or str, not float/bool")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise InvalidInputError(field, value, "not a number") from e
    else:
        raise InvalidInputError(field, value, f"unsupported type {type(value).__name__}")
    if not result.is_finite():
        raise InvalidInputError(field, value, "must be finite")
    return result


def non_negative_decimal(field: str, value: Any) -> Decimal:
    """Finite, non-negative Decimal."""
    result = to_decimal(field, value)
    if result < ZERO:
        raise InvalidInputError(field, value, "must be non-negative")
    return result


def non_negative_count(field: str, value: Any) -> int:
    """Non-negative integer count.  Integral Decimals are accepted."""
    if isinstance(value, bool):
        raise InvalidInputError(field, value, "expected an integer count")
    if isinstance(value, int):
        result = value
    else:
        number = to_decimal(field, value)
        if number != number.to_integral_value():
            raise InvalidInputError(field, value, "must be a whole number")
        result = int(number)
    if result < 0:
        raise InvalidInputError(field, value, "must be non-negative")
    return result


def non_negative_money(field: str, value: Any, currency: Currency) -> Money:
    """
    Coerce a money field into Money in ``currency``.

    Money values must already be in ``currency``; bare numbers are wrapped.
    """
    if isinstance(value, Money):
        if value.currency != currency:
            raise InvalidInputError(
                field, value, f"currency {value.currency} does not match {currency}"
            )
        amount = value.amount
    else:
        amount = to_decimal(field, value)
    if not amount.is_finite():
        raise InvalidInputError(field, value, "must be finite")
    if amount < ZERO:
        raise InvalidInputError(field, value, "must be non-negative")
    return Money(amount=amount, currency=currency)


def resolve_currency(value: Any) -> Currency:
    """Currency from a code or Currency; unknown codes are InvalidInputError."""
    if isinstance(value, Currency):
        return value
    try:
        return Currency(value)
    except (ValueError, AttributeError) as e:
        raise InvalidInputError("currency", value, "unknown currency code") from e
