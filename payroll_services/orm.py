"""
SQLAlchemy ORM persistence models for salary sheets and KPI records.

Responsibility
--------------
Provide database-backed persistence for the two collaborators the
calculation engines depend on: ``SalaryDetailModel`` is one employee's
row on a monthly salary sheet (inputs plus every payslip output
column), and ``KPIDetailModel`` is one employee's monthly KPI verdict.

Architecture position
---------------------
**Services layer** -- ORM models consumed by ``payroll_services.stores``.
Inherits from ``TrackedBase`` (kernel db layer).

Invariants enforced
-------------------
* One row per employee per period: both tables are unique on
  (employee_code, month, year).
* All monetary fields use ``Decimal`` (Numeric(38,9)) -- NEVER float.
* Enum fields stored as String for readability and portability.
* Output columns are NULL until the row has been calculated.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Boolean, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from payroll_engines.compensation import (
    CompensationInput,
    CompensationResult,
    SalaryType,
)
from payroll_engines.kpi import KPIResult
from payroll_kernel.db.base import TrackedBase
from payroll_kernel.domain.values import Money

# Payslip output columns and the CompensationResult attribute each holds.
_PAYSLIP_COLUMNS: dict[str, str] = {
    "daily_rate": "daily_rate",
    "daily_salary": "daily_salary",
    "total_income": "total_income",
    "bhdn_bhxh": "employer_social_insurance",
    "bhdn_tnld": "employer_accident_insurance",
    "bhdn_bhyt": "employer_health_insurance",
    "bhdn_bhtn": "employer_unemployment_insurance",
    "total_bhdn": "total_employer_contribution",
    "total_company_payment": "total_company_payment",
    "bhnld_bhxh": "employee_social_insurance",
    "bhnld_bhyt": "employee_health_insurance",
    "bhnld_bhtn": "employee_unemployment_insurance",
    "total_bhnld": "total_employee_contribution",
    "personal_deduction": "personal_deduction",
    "dependent_deduction": "dependent_deduction",
    "insurance_deduction": "insurance_deduction",
    "total_deduction": "total_deduction",
    "taxable_income": "taxable_income",
    "tax_5_percent": "tax_5_percent",
    "tax_10_percent": "tax_10_percent",
    "tax_15_percent": "tax_15_percent",
    "tax_20_percent": "tax_20_percent",
    "tax_25_percent": "tax_25_percent",
    "tax_30_percent": "tax_30_percent",
    "tax_35_percent": "tax_35_percent",
    "total_personal_income_tax": "total_personal_income_tax",
    "net_salary": "net_salary",
    "actual_payment": "actual_payment",
}


# ---------------------------------------------------------------------------
# SalaryDetailModel
# ---------------------------------------------------------------------------


class SalaryDetailModel(TrackedBase):
    """
    One employee's row on a monthly salary sheet.

    Maps to ``CompensationInput`` (to_input) on the way into the engine and
    is stamped from ``CompensationResult`` (apply_result) on the way out.
    """

    __tablename__ = "salary_details"

    __table_args__ = (
        UniqueConstraint(
            "employee_code", "month", "year", name="uq_salary_detail_period",
        ),
        Index("idx_salary_detail_period", "year", "month"),
    )

    employee_code: Mapped[str] = mapped_column(String(50), nullable=False)
    employee_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    team: Mapped[str | None] = mapped_column(String(100), nullable=True)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    salary_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SalaryType.WITH_INSURANCE.value,
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="VND")

    # Inputs
    gross_salary: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    working_days: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    kpi_bonus: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    overtime_1_5: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    overtime_2: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    overtime_3: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    insurance_base_amount: Mapped[Decimal] = mapped_column(
        nullable=False, default=Decimal("0"),
    )
    dependent_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    advance_payment: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    # Outputs (NULL until calculated)
    daily_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    daily_salary: Mapped[Decimal | None] = mapped_column(nullable=True)
    total_income: Mapped[Decimal | None] = mapped_column(nullable=True)
    bhdn_bhxh: Mapped[Decimal | None] = mapped_column(nullable=True)
    bhdn_tnld: Mapped[Decimal | None] = mapped_column(nullable=True)
    bhdn_bhyt: Mapped[Decimal | None] = mapped_column(nullable=True)
    bhdn_bhtn: Mapped[Decimal | None] = mapped_column(nullable=True)
    total_bhdn: Mapped[Decimal | None] = mapped_column(nullable=True)
    total_company_payment: Mapped[Decimal | None] = mapped_column(nullable=True)
    bhnld_bhxh: Mapped[Decimal | None] = mapped_column(nullable=True)
    bhnld_bhyt: Mapped[Decimal | None] = mapped_column(nullable=True)
    bhnld_bhtn: Mapped[Decimal | None] = mapped_column(nullable=True)
    total_bhnld: Mapped[Decimal | None] = mapped_column(nullable=True)
    personal_deduction: Mapped[Decimal | None] = mapped_column(nullable=True)
    dependent_deduction: Mapped[Decimal | None] = mapped_column(nullable=True)
    insurance_deduction: Mapped[Decimal | None] = mapped_column(nullable=True)
    total_deduction: Mapped[Decimal | None] = mapped_column(nullable=True)
    taxable_income: Mapped[Decimal | None] = mapped_column(nullable=True)
    tax_5_percent: Mapped[Decimal | None] = mapped_column(nullable=True)
    tax_10_percent: Mapped[Decimal | None] = mapped_column(nullable=True)
    tax_15_percent: Mapped[Decimal | None] = mapped_column(nullable=True)
    tax_20_percent: Mapped[Decimal | None] = mapped_column(nullable=True)
    tax_25_percent: Mapped[Decimal | None] = mapped_column(nullable=True)
    tax_30_percent: Mapped[Decimal | None] = mapped_column(nullable=True)
    tax_35_percent: Mapped[Decimal | None] = mapped_column(nullable=True)
    total_personal_income_tax: Mapped[Decimal | None] = mapped_column(nullable=True)
    net_salary: Mapped[Decimal | None] = mapped_column(nullable=True)
    actual_payment: Mapped[Decimal | None] = mapped_column(nullable=True)
    rate_set_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    @property
    def is_calculated(self) -> bool:
        return self.net_salary is not None

    def to_input(self) -> CompensationInput:
        return CompensationInput(
            employee_code=self.employee_code,
            currency=self.currency,
            salary_type=SalaryType(self.salary_type),
            gross_salary=self.gross_salary,
            working_days=self.working_days,
            kpi_bonus=self.kpi_bonus,
            overtime_1_5=self.overtime_1_5,
            overtime_2=self.overtime_2,
            overtime_3=self.overtime_3,
            insurance_base_amount=self.insurance_base_amount,
            dependent_count=self.dependent_count,
            advance_payment=self.advance_payment,
        )

    def apply_result(
        self,
        result: CompensationResult,
        actor_id: UUID,
        rate_set_id: str | None = None,
    ) -> None:
        for column, attribute in _PAYSLIP_COLUMNS.items():
            money: Money = getattr(result, attribute)
            setattr(self, column, money.amount)
        self.rate_set_id = rate_set_id
        self.updated_by_id = actor_id

    @classmethod
    def from_input(
        cls,
        comp_input: CompensationInput,
        month: int,
        year: int,
        created_by_id: UUID,
        employee_name: str | None = None,
        team: str | None = None,
    ) -> SalaryDetailModel:
        return cls(
            employee_code=comp_input.employee_code,
            employee_name=employee_name,
            team=team,
            month=month,
            year=year,
            salary_type=comp_input.salary_type.value,
            currency=comp_input.currency.code,
            gross_salary=comp_input.gross_salary.amount,
            working_days=comp_input.working_days,
            kpi_bonus=comp_input.kpi_bonus.amount,
            overtime_1_5=comp_input.overtime_1_5.amount,
            overtime_2=comp_input.overtime_2.amount,
            overtime_3=comp_input.overtime_3.amount,
            insurance_base_amount=comp_input.insurance_base_amount.amount,
            dependent_count=comp_input.dependent_count,
            advance_payment=comp_input.advance_payment.amount,
            created_by_id=created_by_id,
            updated_by_id=None,
        )


# ---------------------------------------------------------------------------
# KPIDetailModel
# ---------------------------------------------------------------------------


class KPIDetailModel(TrackedBase):
    """
    One employee's monthly KPI verdict.

    ``recorded_bonus`` may be seeded before calculation (the bonus HR
    recorded for the month), which sets ``recorded_bonus_seeded``.  The
    calculation writes back the bonus it compared against, the category
    totals, coefficient, monthly KPI and gap flag.  A bonus taken from the
    salary sheet is stored for review only and never marks the row seeded.
    """

    __tablename__ = "kpi_details"

    __table_args__ = (
        UniqueConstraint("employee_code", "month", "year", name="uq_kpi_detail_period"),
        Index("idx_kpi_detail_gap", "has_kpi_gap"),
    )

    employee_code: Mapped[str] = mapped_column(String(50), nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="VND")

    basic_salary: Mapped[Decimal | None] = mapped_column(nullable=True)
    recorded_bonus: Mapped[Decimal | None] = mapped_column(nullable=True)
    recorded_bonus_seeded: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    total_salary: Mapped[Decimal | None] = mapped_column(nullable=True)
    salary_coefficient: Mapped[Decimal | None] = mapped_column(nullable=True)

    productivity: Mapped[Decimal | None] = mapped_column(nullable=True)
    quality: Mapped[Decimal | None] = mapped_column(nullable=True)
    attitude: Mapped[Decimal | None] = mapped_column(nullable=True)
    progress: Mapped[Decimal | None] = mapped_column(nullable=True)
    requirements: Mapped[Decimal | None] = mapped_column(nullable=True)
    recruitment: Mapped[Decimal | None] = mapped_column(nullable=True)
    revenue: Mapped[Decimal | None] = mapped_column(nullable=True)

    kpi_coefficient: Mapped[Decimal | None] = mapped_column(nullable=True)
    total_monthly_kpi: Mapped[Decimal | None] = mapped_column(nullable=True)
    kpi_gap: Mapped[Decimal | None] = mapped_column(nullable=True)
    has_kpi_gap: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Category inputs as entered, for review
    scores: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    def apply_result(
        self,
        result: KPIResult,
        actor_id: UUID,
        scores: dict[str, Any] | None = None,
    ) -> None:
        self.currency = result.currency.code
        self.basic_salary = result.basic_salary.amount
        self.recorded_bonus = result.recorded_bonus.amount
        self.total_salary = result.total_salary.amount
        self.salary_coefficient = result.salary_coefficient
        self.productivity = result.productivity
        self.quality = result.quality
        self.attitude = result.attitude
        self.progress = result.progress
        self.requirements = result.requirements
        self.recruitment = result.recruitment
        self.revenue = result.revenue.amount
        self.kpi_coefficient = result.kpi_coefficient
        self.total_monthly_kpi = result.total_monthly_kpi.amount
        self.kpi_gap = result.kpi_gap.amount
        self.has_kpi_gap = result.has_kpi_gap
        self.scores = scores
        self.updated_by_id = actor_id
