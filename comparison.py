"""
Period comparisons: year-over-year, month-over-month and target achievement.

Labels use dataset-relative thresholds, the same ±10% band for YoY and MoM.
A previous period with no sales gives a rate of 0, which counts as positive.
"""

from dataclasses import dataclass
from typing import Iterable

from kpi import calculate_totals
from records import SalesRecord, filter_by_period, to_number

COMPARISON_THRESHOLDS = {
    "positive": {
        "condition": "Change >= +10%",
        "threshold": 10.0,
        "message_template": "Change {pct:+.1f}% >= +{threshold}%. Label: positive.",
    },
    "negative": {
        "condition": "Change <= -10%",
        "threshold": -10.0,
        "message_template": "Change {pct:+.1f}% <= {threshold}%. Label: negative.",
    },
    "stable": {
        "condition": "Change between -10% and +10%",
        "threshold": None,
        "message_template": "Change {pct:+.1f}% within ±10%. Label: stable.",
    },
}

POSITIVE_THRESHOLD_PCT = COMPARISON_THRESHOLDS["positive"]["threshold"]
NEGATIVE_THRESHOLD_PCT = COMPARISON_THRESHOLDS["negative"]["threshold"]


@dataclass
class PeriodComparison:
    """Current vs previous period sales. month is None for whole-year comparisons."""
    current_year: int
    current_month: int | None
    current_total: float
    previous_year: int
    previous_month: int | None
    previous_total: float
    rate: float
    is_positive: bool
    label: str  # "positive" | "negative" | "stable"
    explanation: str


@dataclass
class TargetAchievement:
    annual_actual: float = 0.0
    annual_target: float = 0.0
    annual_rate: float = 0.0
    monthly_actual: float = 0.0
    monthly_target: float = 0.0
    monthly_rate: float = 0.0


def change_rate(current: float, previous: float) -> float:
    if previous > 0:
        return (current - previous) / previous * 100
    return 0.0


def classify_change(pct: float) -> tuple[str, str]:
    if pct >= POSITIVE_THRESHOLD_PCT:
        label = "positive"
    elif pct <= NEGATIVE_THRESHOLD_PCT:
        label = "negative"
    else:
        label = "stable"
    rule = COMPARISON_THRESHOLDS[label]
    return label, rule["message_template"].format(pct=pct, threshold=rule["threshold"])


def _compare(
    records: Iterable[SalesRecord] | None,
    current: tuple[int, int | None],
    previous: tuple[int, int | None],
) -> PeriodComparison:
    records = list(records or [])
    current_total = calculate_totals(filter_by_period(records, *current)).total_sales
    previous_total = calculate_totals(filter_by_period(records, *previous)).total_sales
    pct = change_rate(current_total, previous_total)
    label, explanation = classify_change(pct)
    return PeriodComparison(
        current_year=current[0],
        current_month=current[1],
        current_total=current_total,
        previous_year=previous[0],
        previous_month=previous[1],
        previous_total=previous_total,
        rate=pct,
        is_positive=pct >= 0,
        label=label,
        explanation=explanation,
    )


def calculate_yoy(
    records: Iterable[SalesRecord] | None,
    year: int,
    month: int | None = None,
) -> PeriodComparison:
    year = int(to_number(year))
    month = int(to_number(month)) or None
    return _compare(records, (year, month), (year - 1, month))


def previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def calculate_mom(
    records: Iterable[SalesRecord] | None,
    year: int,
    month: int | None,
) -> PeriodComparison | None:
    """None when no month is selected; January compares against December of year - 1."""
    month = int(to_number(month))
    if not month:
        return None
    year = int(to_number(year))
    return _compare(records, (year, month), previous_month(year, month))


def calculate_target_achievement(actual: float, target: float | None) -> float:
    target = to_number(target)
    if not target:
        return 0.0
    return to_number(actual) / target * 100


def calculate_achievements(
    records: Iterable[SalesRecord] | None,
    year: int,
    month: int | None,
    targets,
) -> TargetAchievement:
    """
    Annual and monthly achievement against configured targets.
    targets: any object with numeric `annual` and `monthly` attributes (see settings.TargetSettings).
    Without a month the monthly figures stay zero.
    """
    records = list(records or [])
    annual_actual = calculate_totals(filter_by_period(records, year)).total_sales
    result = TargetAchievement(
        annual_actual=annual_actual,
        annual_target=to_number(targets.annual),
        annual_rate=calculate_target_achievement(annual_actual, targets.annual),
        monthly_target=to_number(targets.monthly),
    )
    if month:
        monthly_actual = calculate_totals(filter_by_period(records, year, month)).total_sales
        result.monthly_actual = monthly_actual
        result.monthly_rate = calculate_target_achievement(monthly_actual, targets.monthly)
    return result
