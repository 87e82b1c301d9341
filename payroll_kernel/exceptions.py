"""
Typed Exception Hierarchy for the Payroll Kernel.

Every error has a typed class (catch by type, not by message), a ``code``
class attribute (machine-readable, API-safe) and structured data attributes.

    PayrollKernelError (base)
    |
    +-- InvalidInputError
    |
    +-- ConfigurationError
    |   +-- RateSetNotFoundError
    |
    +-- RecordError
        +-- SalaryRecordNotFoundError

The calculation engines raise exactly one kind of error: InvalidInputError.
The formulas are total over the valid domain, so nothing else can fail once
inputs have been accepted.

A negative actual payment (advance larger than net pay) is NOT an error.
"""

from typing import Any


class PayrollKernelError(Exception):
    """
    Base exception for all payroll kernel errors.

    All subclasses must have a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "PAYROLL_KERNEL_ERROR"


class InvalidInputError(PayrollKernelError):
    """An engine input is negative, non-finite, non-integer or inconsistent."""

    code: str = "INVALID_INPUT"

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid value for {field!r}: {value!r} ({reason})")


# Configuration exceptions


class ConfigurationError(PayrollKernelError):
    """Base exception for statutory rate configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class RateSetNotFoundError(ConfigurationError):
    """No statutory rate set is effective on the requested date."""

    code: str = "RATE_SET_NOT_FOUND"

    def __init__(self, as_of_date: str, config_dir: str):
        self.as_of_date = as_of_date
        self.config_dir = config_dir
        super().__init__(
            f"No statutory rate set effective on {as_of_date} in {config_dir}"
        )


# Record store exceptions


class RecordError(PayrollKernelError):
    """Base exception for record store errors."""

    code: str = "RECORD_ERROR"


class SalaryRecordNotFoundError(RecordError):
    """No salary-sheet row exists for the employee and period."""

    code: str = "SALARY_RECORD_NOT_FOUND"

    def __init__(self, employee_code: str, month: int, year: int):
        self.employee_code = employee_code
        self.month = month
        self.year = year
        super().__init__(
            f"Salary record not found: {employee_code} for {month:02d}/{year}"
        )
