"""
Tests for PayrollCalculationService over the SQLAlchemy record stores.

Covers:
- Payslip calculation writes every output column back to the sheet row
- Rate resolution by payroll period
- KPI calculation with looked-up basic salary and recorded bonus
- Sheet summaries
- Missing records and invalid scores
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from payroll_engines.compensation import CompensationInput, SalaryType, StatutoryRates
from payroll_engines.kpi import TierOutcome
from payroll_kernel.db.engine import session_scope
from payroll_kernel.domain.values import Money
from payroll_kernel.exceptions import (
    InvalidInputError,
    RateSetNotFoundError,
    SalaryRecordNotFoundError,
)
from payroll_services import (
    KPIRecordStore,
    PayrollCalculationService,
    SalarySheetLookup,
    SqlKPIRecordStore,
    SqlSalarySheetLookup,
)


def vnd(amount: str) -> Money:
    return Money.of(amount, "VND")


@pytest.fixture
def sheet(session, test_actor_id):
    lookup = SqlSalarySheetLookup(session)
    lookup.add_row(
        CompensationInput(
            employee_code="NV001",
            gross_salary=vnd("22000000"),
            working_days=Decimal("22"),
            insurance_base_amount=vnd("22000000"),
            kpi_bonus=vnd("3000000"),
            overtime_1_5=vnd("500000"),
        ),
        month=7, year=2024, actor_id=test_actor_id, employee_name="Nguyễn Văn A",
    )
    lookup.add_row(
        CompensationInput(
            employee_code="TV001",
            gross_salary=vnd("10000000"),
            working_days=Decimal("22"),
            salary_type=SalaryType.SEASONAL,
            advance_payment=vnd("9500000"),
        ),
        month=7, year=2024, actor_id=test_actor_id,
    )
    return lookup


@pytest.fixture
def kpi_store(session):
    return SqlKPIRecordStore(session)


@pytest.fixture
def service(sheet, kpi_store):
    return PayrollCalculationService(sheet, kpi_store)


class TestProtocols:

    def test_stores_satisfy_protocols(self, sheet, kpi_store):
        assert isinstance(sheet, SalarySheetLookup)
        assert isinstance(kpi_store, KPIRecordStore)


class TestCalculatePayslip:

    def test_writes_result_to_row(self, service, sheet, test_actor_id):
        """Every payslip column is stamped on the sheet row."""
        result = service.calculate_payslip("NV001", 7, 2024, test_actor_id)

        row = sheet.get_row("NV001", 7, 2024)
        assert row.is_calculated
        assert row.net_salary == result.net_salary.amount
        assert row.total_bhdn == Decimal("4730000")
        assert row.total_bhnld == Decimal("2310000")
        assert row.bhdn_tnld == Decimal("110000")
        assert row.tax_5_percent == Decimal("250000")
        assert row.total_personal_income_tax == result.total_personal_income_tax.amount
        assert row.rate_set_id == "VN-PAYROLL-2020-07"
        assert row.updated_by_id == test_actor_id

    def test_bonus_and_overtime_in_income(self, service, test_actor_id):
        result = service.calculate_payslip("NV001", 7, 2024, test_actor_id)

        assert result.total_income == vnd("25500000")

    def test_seasonal_row(self, service, sheet, test_actor_id):
        result = service.calculate_payslip("TV001", 7, 2024, test_actor_id)

        assert result.total_personal_income_tax == vnd("1000000")
        assert result.has_negative_payment
        assert sheet.get_row("TV001", 7, 2024).actual_payment == Decimal("-500000")

    def test_missing_row(self, service, test_actor_id):
        with pytest.raises(SalaryRecordNotFoundError) as exc_info:
            service.calculate_payslip("NV999", 7, 2024, test_actor_id)

        assert str(exc_info.value) == "Salary record not found: NV999 for 07/2024"

    def test_period_before_any_rate_set(self, session, test_actor_id, kpi_store):
        lookup = SqlSalarySheetLookup(session)
        lookup.add_row(
            CompensationInput(employee_code="NV001", gross_salary="1", working_days="1"),
            month=1, year=2019, actor_id=test_actor_id,
        )
        service = PayrollCalculationService(lookup, kpi_store)

        with pytest.raises(RateSetNotFoundError):
            service.calculate_payslip("NV001", 1, 2019, test_actor_id)

    def test_rates_resolved_for_period_start(self, sheet, kpi_store, test_actor_id):
        """The rate provider is asked for the first day of the month."""
        requested = []

        def provider(as_of: date) -> StatutoryRates:
            requested.append(as_of)
            return StatutoryRates(rate_set_id="custom")

        service = PayrollCalculationService(sheet, kpi_store, rate_provider=provider)
        service.calculate_payslip("NV001", 7, 2024, test_actor_id)

        assert requested == [date(2024, 7, 1)]
        assert sheet.get_row("NV001", 7, 2024).rate_set_id == "custom"

    def test_invalid_month(self, service, test_actor_id):
        with pytest.raises(InvalidInputError):
            service.calculate_payslip("NV001", 13, 2024, test_actor_id)

    def test_logs_carry_context(self, service, test_actor_id, captured_logs):
        """Engine records inherit the employee and period context."""
        service.calculate_payslip("NV001", 7, 2024, test_actor_id)

        computed = [r for r in captured_logs() if r["message"] == "compensation_computed"]
        assert computed[0]["payroll_period"] == "2024-07"
        assert computed[0]["actor_id"] == str(test_actor_id)

    def test_calculate_sheet(self, service, sheet, test_actor_id):
        results = service.calculate_sheet(7, 2024, test_actor_id)

        assert [r.employee_code for r in results] == ["NV001", "TV001"]
        assert sheet.get_row("TV001", 7, 2024).is_calculated

    def test_one_row_per_period(self, sheet, test_actor_id):
        with pytest.raises(IntegrityError):
            sheet.add_row(
                CompensationInput(employee_code="NV001", gross_salary="1", working_days="1"),
                month=7, year=2024, actor_id=test_actor_id,
            )


class TestCalculateKPI:

    def test_uses_sheet_figures(self, service, kpi_store, test_actor_id):
        """Basic salary is gross; recorded bonus falls back to variable pay."""
        result = service.calculate_kpi(
            "NV001", 7, 2024, test_actor_id,
            completed_on_time=TierOutcome.EXCEEDS,
            mentoring=1,
        )

        assert result.basic_salary == vnd("22000000")
        assert result.recorded_bonus == vnd("3500000")
        row = kpi_store.get_row("NV001", 7, 2024)
        assert row.kpi_coefficient == result.kpi_coefficient
        assert row.has_kpi_gap == result.has_kpi_gap
        assert row.scores == {"completed_on_time": "Vượt Trội", "mentoring": 1}

    def test_seeded_recorded_bonus(self, service, kpi_store, test_actor_id):
        """A bonus recorded on the KPI record takes precedence."""
        kpi_store.seed_recorded_bonus("NV001", 7, 2024, vnd("88220000"), test_actor_id)

        result = service.calculate_kpi("NV001", 7, 2024, test_actor_id)

        # 22M x 400 / 100
        assert result.total_monthly_kpi == vnd("88000000")
        assert result.recorded_bonus == vnd("88220000")
        assert result.has_kpi_gap

    def test_sheet_bonus_follows_sheet_edits(
        self, service, sheet, kpi_store, session, test_actor_id,
    ):
        """A bonus taken from the salary sheet is re-read on every calculation."""
        first = service.calculate_kpi("NV001", 7, 2024, test_actor_id)

        sheet.get_row("NV001", 7, 2024).kpi_bonus = Decimal("10000000")
        session.flush()
        second = service.calculate_kpi("NV001", 7, 2024, test_actor_id)

        assert first.recorded_bonus == vnd("3500000")
        assert second.recorded_bonus == vnd("10500000")
        row = kpi_store.get_row("NV001", 7, 2024)
        assert row.recorded_bonus == Decimal("10500000")
        assert not row.recorded_bonus_seeded
        assert kpi_store.get_recorded_bonus("NV001", 7, 2024) is None

    def test_seeded_bonus_survives_recalculation(
        self, service, sheet, kpi_store, session, test_actor_id,
    ):
        kpi_store.seed_recorded_bonus("NV001", 7, 2024, vnd("4000000"), test_actor_id)
        service.calculate_kpi("NV001", 7, 2024, test_actor_id)

        sheet.get_row("NV001", 7, 2024).kpi_bonus = Decimal("10000000")
        session.flush()
        result = service.calculate_kpi("NV001", 7, 2024, test_actor_id)

        assert result.recorded_bonus == vnd("4000000")
        assert kpi_store.get_row("NV001", 7, 2024).recorded_bonus_seeded

    def test_recalculation_replaces_verdict(self, service, kpi_store, session, test_actor_id):
        service.calculate_kpi("NV001", 7, 2024, test_actor_id, prod_bugs=1)
        service.calculate_kpi("NV001", 7, 2024, test_actor_id, prod_bugs=2)

        row = kpi_store.get_row("NV001", 7, 2024)
        assert row.quality == Decimal("90")

    def test_reserved_scores_refused(self, service, test_actor_id):
        with pytest.raises(InvalidInputError):
            service.calculate_kpi(
                "NV001", 7, 2024, test_actor_id, basic_salary=vnd("1"),
            )

    def test_unknown_score(self, service, test_actor_id):
        with pytest.raises(InvalidInputError):
            service.calculate_kpi("NV001", 7, 2024, test_actor_id, charisma=3)

    def test_missing_salary_row(self, service, test_actor_id):
        with pytest.raises(SalaryRecordNotFoundError):
            service.calculate_kpi("NV404", 7, 2024, test_actor_id)


class TestSummarizeSheet:

    def test_summary(self, service):
        summary = service.summarize_sheet(7, 2024)

        assert summary.employee_count == 2
        assert summary.negative_payment_count == 1
        assert summary.total_payment == (
            summary.total_net_salary
            + summary.total_personal_income_tax
            + summary.total_company_insurance
            + summary.total_personal_insurance
        )

    def test_empty_period(self, service):
        summary = service.summarize_sheet(8, 2024)

        assert summary.employee_count == 0
        assert summary.total_payment.is_zero


class TestUnitOfWork:
    """session_scope commits or rolls back the whole calculation."""

    def _seed(self, test_actor_id):
        with session_scope() as s:
            SqlSalarySheetLookup(s).add_row(
                CompensationInput(
                    employee_code="NV100",
                    gross_salary=vnd("22000000"),
                    working_days=Decimal("22"),
                ),
                month=9, year=2024, actor_id=test_actor_id,
            )

    def test_commit(self, session, test_actor_id):
        self._seed(test_actor_id)

        with session_scope() as s:
            service = PayrollCalculationService(SqlSalarySheetLookup(s), SqlKPIRecordStore(s))
            service.calculate_payslip("NV100", 9, 2024, test_actor_id)

        with session_scope() as s:
            assert SqlSalarySheetLookup(s).get_row("NV100", 9, 2024).is_calculated

    def test_rollback(self, session, test_actor_id):
        self._seed(test_actor_id)

        with pytest.raises(RuntimeError):
            with session_scope() as s:
                service = PayrollCalculationService(
                    SqlSalarySheetLookup(s), SqlKPIRecordStore(s),
                )
                service.calculate_payslip("NV100", 9, 2024, test_actor_id)
                raise RuntimeError("downstream failure")

        with session_scope() as s:
            assert not SqlSalarySheetLookup(s).get_row("NV100", 9, 2024).is_calculated
