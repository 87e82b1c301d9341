"""
Pure domain layer.

Value objects used by the engines and services, with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock
- I/O

All domain objects are immutable and deterministic.
"""

from payroll_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from payroll_kernel.domain.values import Currency, Money

__all__ = [
    "Currency",
    "CurrencyInfo",
    "CurrencyRegistry",
    "Money",
]
