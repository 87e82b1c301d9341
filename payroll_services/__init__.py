"""
payroll_services -- I/O orchestration around the pure payroll engines.

Exports the calculation service, the collaborator protocols and their
SQLAlchemy implementations.
"""

from payroll_services.payroll_calculation_service import (
    PayrollCalculationService,
    payroll_period,
)
from payroll_services.protocols import KPIRecordStore, SalarySheetLookup
from payroll_services.stores import SqlKPIRecordStore, SqlSalarySheetLookup

__all__ = [
    "KPIRecordStore",
    "PayrollCalculationService",
    "SalarySheetLookup",
    "SqlKPIRecordStore",
    "SqlSalarySheetLookup",
    "payroll_period",
]
