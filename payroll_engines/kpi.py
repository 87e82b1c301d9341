"""
KPI Coefficient Engine - performance sub-scores to a monetary KPI bonus.

Pure functions with deterministic behavior. No I/O.

Two independent tracks:

- the coefficient: six weighted category scores (productivity, quality,
  attitude, progress, requirements, recruitment) summed into a
  dimensionless kpi_coefficient.
- the monetary total: basic_salary scaled by the coefficient, plus flat
  payouts that are not percentage deltas (mentoring, team management,
  large clients, LOC/LOT targets, recruitment bonuses and cost recovery).

The result is compared against the bonus recorded on the salary sheet;
a difference of more than 1,000 is reported as a KPI gap.

Tiered selectors (Đạt / Không Đạt / Vượt Trội / N/A) are a closed enum
with a static per-field delta table.  N/A scores 0, the same as Đạt, and
is listed in KPIResult.unscored_fields.

Usage:
    from payroll_engines.kpi import KPIInput, TierOutcome, compute_kpi

    result = compute_kpi(
        KPIInput(
            employee_code="NV001",
            basic_salary=Money.of("20000000"),
            recorded_bonus=Money.of("4000000"),
            completed_on_time=TierOutcome.EXCEEDS,
            clients_over_100m=1,
        )
    )
    if result.has_kpi_gap:
        ...
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from payroll_engines._numeric import (
    ZERO,
    floor_zero,
    non_negative_count,
    non_negative_decimal,
    non_negative_money,
    resolve_currency,
)
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.values import Currency, Money
from payroll_kernel.exceptions import InvalidInputError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.kpi")

# Fixed tolerance between recorded and computed bonus.  Not configurable.
KPI_GAP_TOLERANCE = Decimal("1000")

RECRUITMENT_COST_THRESHOLD = Decimal("2000000")
RECRUITMENT_COST_STEP = Decimal("10000")

MENTORING_PAYOUT = Decimal("100000")
TEAM_MANAGEMENT_PAYOUT = Decimal("2000000")
LARGE_CLIENT_PAYOUT = Decimal("4000000")
PASSED_CANDIDATE_PAYOUT = Decimal("500000")


class TierOutcome(str, Enum):
    """Qualitative outcome for a tiered KPI selector."""

    MEETS = "Đạt"
    FAILS = "Không Đạt"
    EXCEEDS = "Vượt Trội"
    NOT_APPLICABLE = "N/A"

    @classmethod
    def from_label(cls, text: str) -> TierOutcome:
        """Parse a selector label ("Đạt") or member name ("MEETS")."""
        if isinstance(text, cls):
            return text
        if isinstance(text, str):
            normalized = text.strip()
            for member in cls:
                if normalized == member.value or normalized.upper() == member.name:
                    return member
        raise InvalidInputError("tier_outcome", text, "unknown tier outcome")


class TieredField(str, Enum):
    """KPI fields scored through a tiered selector."""

    COMPLETED_ON_TIME = "completed_on_time"
    TASK_TARGET = "task_target"
    EFFORT_RATIO = "effort_ratio"
    GIT_ACTIVITY = "git_activity"


TIER_DELTAS: dict[TieredField, dict[TierOutcome, Decimal]] = {
    TieredField.COMPLETED_ON_TIME: {
        TierOutcome.MEETS: Decimal("0"),
        TierOutcome.FAILS: Decimal("-0.25"),
        TierOutcome.EXCEEDS: Decimal("0.5"),
        TierOutcome.NOT_APPLICABLE: Decimal("0"),
    },
    TieredField.TASK_TARGET: {
        TierOutcome.MEETS: Decimal("0"),
        TierOutcome.FAILS: Decimal("-0.1"),
        TierOutcome.EXCEEDS: Decimal("0.2"),
        TierOutcome.NOT_APPLICABLE: Decimal("0"),
    },
    TieredField.EFFORT_RATIO: {
        TierOutcome.MEETS: Decimal("0"),
        TierOutcome.FAILS: Decimal("-0.1"),
        TierOutcome.EXCEEDS: Decimal("0.2"),
        TierOutcome.NOT_APPLICABLE: Decimal("0"),
    },
    TieredField.GIT_ACTIVITY: {
        TierOutcome.MEETS: Decimal("0"),
        TierOutcome.FAILS: Decimal("-0.05"),
        TierOutcome.EXCEEDS: Decimal("0.1"),
        TierOutcome.NOT_APPLICABLE: Decimal("0"),
    },
}


def tier_delta(field: TieredField, outcome: TierOutcome) -> Decimal:
    """Static coefficient delta for a tiered field's outcome."""
    return TIER_DELTAS[TieredField(field)][TierOutcome.from_label(outcome)]


_MONEY_FIELDS = (
    "basic_salary",
    "recorded_bonus",
    "loc_target",
    "lot_target",
    "recruitment_cost",
)

_COUNT_FIELDS = (
    "overdue_task_count",
    "prod_bugs",
    "test_bugs",
    "tech_sharing",
    "tech_articles",
    "mentoring",
    "team_management",
    "plan_changes",
    "change_requests",
    "misunderstanding_errors",
    "cv_count",
    "passed_candidates",
    "clients_over_100m",
)

_SCORE_FIELDS = (
    "positive_attitude",
    "tech_contribution",
    "on_time_completion",
    "story_point_accuracy",
)


@dataclass(frozen=True)
class KPIInput:
    """
    Category inputs for one employee's monthly KPI.

    basic_salary and recorded_bonus are supplied by the caller (usually the
    salary sheet's gross salary and variable pay); they are never derived
    here.  Tiered fields accept a TierOutcome or its label.
    """

    employee_code: str
    basic_salary: Money
    recorded_bonus: Money

    # Productivity
    completed_on_time: TierOutcome = TierOutcome.MEETS
    overdue_task_count: int = 0
    task_target: TierOutcome = TierOutcome.MEETS
    effort_ratio: TierOutcome = TierOutcome.MEETS
    git_activity: TierOutcome = TierOutcome.MEETS
    loc_target: Money = ZERO
    lot_target: Money = ZERO

    # Quality
    prod_bugs: int = 0
    test_bugs: int = 0

    # Attitude
    positive_attitude: Decimal = ZERO
    tech_contribution: Decimal = ZERO
    tech_sharing: int = 0
    tech_articles: int = 0
    mentoring: int = 0
    team_management: int = 0

    # Progress
    on_time_completion: Decimal = ZERO
    story_point_accuracy: Decimal = ZERO
    plan_changes: int = 0

    # Requirements
    change_requests: int = 0
    misunderstanding_errors: int = 0

    # Recruitment
    cv_count: int = 0
    passed_candidates: int = 0
    recruitment_cost: Money = ZERO

    # Revenue
    clients_over_100m: int = 0

    currency: Currency | str = "VND"

    def __post_init__(self) -> None:
        currency = resolve_currency(self.currency)
        object.__setattr__(self, "currency", currency)
        for name in _MONEY_FIELDS:
            object.__setattr__(
                self, name, non_negative_money(name, getattr(self, name), currency)
            )
        for name in _COUNT_FIELDS:
            object.__setattr__(self, name, non_negative_count(name, getattr(self, name)))
        for name in _SCORE_FIELDS:
            object.__setattr__(self, name, non_negative_decimal(name, getattr(self, name)))
        for tiered in TieredField:
            raw = getattr(self, tiered.value)
            try:
                outcome = TierOutcome.from_label(raw)
            except InvalidInputError as e:
                raise InvalidInputError(tiered.value, raw, "unknown tier outcome") from e
            object.__setattr__(self, tiered.value, outcome)

    def outcome(self, field: TieredField) -> TierOutcome:
        return getattr(self, TieredField(field).value)


@dataclass(frozen=True)
class KPIResult:
    """
    Category totals, coefficient and monetary KPI for one employee.

    kpi_coefficient and total_monthly_kpi are not floored and may be
    negative when the tiered penalties and plan changes dominate.
    """

    employee_code: str
    currency: Currency

    productivity: Decimal
    quality: Decimal
    attitude: Decimal
    progress: Decimal
    requirements: Decimal
    recruitment: Decimal
    revenue: Money

    kpi_coefficient: Decimal
    total_monthly_kpi: Money

    basic_salary: Money
    recorded_bonus: Money
    total_salary: Money
    salary_coefficient: Decimal
    kpi_gap: Money
    has_kpi_gap: bool

    unscored_fields: tuple[TieredField, ...] = ()


def _validate(kpi_input: KPIInput) -> None:
    if not isinstance(kpi_input, KPIInput):
        raise InvalidInputError("kpi_input", kpi_input, "expected a KPIInput")
    currency = kpi_input.currency
    for name in _MONEY_FIELDS:
        non_negative_money(name, getattr(kpi_input, name), currency)
    for name in _COUNT_FIELDS:
        non_negative_count(name, getattr(kpi_input, name))
    for name in _SCORE_FIELDS:
        non_negative_decimal(name, getattr(kpi_input, name))
    for tiered in TieredField:
        if not isinstance(getattr(kpi_input, tiered.value), TierOutcome):
            raise InvalidInputError(
                tiered.value, getattr(kpi_input, tiered.value), "unknown tier outcome"
            )


class KPICoefficientCalculator:
    """
    Compute category scores, the KPI coefficient and the monthly KPI amount.

    Pure - no I/O, no clock, no hidden state.
    """

    @traced_engine("kpi_coefficient", "1.0", fingerprint_fields=("kpi_input",))
    def compute(self, kpi_input: KPIInput) -> KPIResult:
        """
        Score one employee's month.

        Raises:
            InvalidInputError: If the input fails validation.
        """
        _validate(kpi_input)
        k = kpi_input
        currency = k.currency

        productivity = (
            tier_delta(TieredField.COMPLETED_ON_TIME, k.completed_on_time)
            - k.overdue_task_count * Decimal("0.01")
            + tier_delta(TieredField.TASK_TARGET, k.task_target)
            + tier_delta(TieredField.EFFORT_RATIO, k.effort_ratio)
            + tier_delta(TieredField.GIT_ACTIVITY, k.git_activity)
        )
        quality = floor_zero(Decimal("100") - k.prod_bugs * 5 - k.test_bugs * 2)
        attitude = (
            k.positive_attitude
            + k.tech_contribution
            + k.tech_sharing * 5
            + k.tech_articles * 3
            + k.mentoring * 2
            + k.team_management * 3
        )
        progress = k.on_time_completion + k.story_point_accuracy - k.plan_changes * 2
        requirements = floor_zero(
            Decimal("100") - k.change_requests * 5 - k.misunderstanding_errors * 10
        )
        cost = k.recruitment_cost.amount
        recruitment = (
            k.cv_count * Decimal("0.5")
            + k.passed_candidates * 2
            + floor_zero((RECRUITMENT_COST_THRESHOLD - cost) / RECRUITMENT_COST_STEP)
        )
        revenue = k.clients_over_100m * LARGE_CLIENT_PAYOUT

        coefficient = (
            productivity + quality + attitude + progress + requirements + recruitment
        )

        basic = k.basic_salary.amount
        recorded = k.recorded_bonus.amount
        total_monthly_kpi = (
            basic * coefficient / Decimal("100")
            + MENTORING_PAYOUT * k.mentoring
            + TEAM_MANAGEMENT_PAYOUT * k.team_management
            + revenue
            + k.loc_target.amount
            + k.lot_target.amount
            + PASSED_CANDIDATE_PAYOUT * k.passed_candidates
            + floor_zero(cost - RECRUITMENT_COST_THRESHOLD)
        )
        gap = total_monthly_kpi - recorded
        has_gap = abs(gap) > KPI_GAP_TOLERANCE
        salary_coefficient = recorded / basic if basic != ZERO else ZERO
        unscored = tuple(
            f for f in TieredField if k.outcome(f) == TierOutcome.NOT_APPLICABLE
        )

        result = KPIResult(
            employee_code=k.employee_code,
            currency=currency,
            productivity=productivity,
            quality=quality,
            attitude=attitude,
            progress=progress,
            requirements=requirements,
            recruitment=recruitment,
            revenue=Money(amount=revenue, currency=currency),
            kpi_coefficient=coefficient,
            total_monthly_kpi=Money(amount=total_monthly_kpi, currency=currency),
            basic_salary=k.basic_salary,
            recorded_bonus=k.recorded_bonus,
            total_salary=k.basic_salary + k.recorded_bonus,
            salary_coefficient=salary_coefficient,
            kpi_gap=Money(amount=gap, currency=currency),
            has_kpi_gap=has_gap,
            unscored_fields=unscored,
        )

        logger.info("kpi_computed", extra={
            "employee_code": k.employee_code,
            "kpi_coefficient": str(coefficient),
            "total_monthly_kpi": str(total_monthly_kpi),
            "recorded_bonus": str(recorded),
            "has_kpi_gap": has_gap,
        })
        if unscored:
            logger.debug("kpi_unscored_fields", extra={
                "employee_code": k.employee_code,
                "fields": [f.value for f in unscored],
            })

        return result


_calculator = KPICoefficientCalculator()


def compute_kpi(kpi_input: KPIInput) -> KPIResult:
    """Module-level convenience for KPICoefficientCalculator().compute()."""
    return _calculator.compute(kpi_input)
