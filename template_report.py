"""
Template-based executive summary.
"""

from typing import Iterable

from comparison import calculate_achievements, calculate_mom, calculate_yoy
from kpi import calculate_supplementary_metrics, calculate_totals, get_store_rankings
from kpi_definitions import get_metric_label
from ranking import get_individual_top10
from records import SalesRecord, filter_by_period


def _yen(value: float) -> str:
    return f"¥{value:,.0f}"


def generate_summary_report(
    records: Iterable[SalesRecord] | None,
    year: int,
    month: int | None,
    settings,
) -> str:
    """Markdown summary for the selected period. settings: settings.DashboardSettings."""
    records = list(records or [])
    period = f"{year}年{month}月" if month else f"{year}年"
    scoped = filter_by_period(records, year, month)
    totals = calculate_totals(scoped)
    sections = []

    sections.append(f"## 1. Overview ({period})")
    sections.append(
        f"{get_metric_label('total_sales')}: {_yen(totals.total_sales)}. "
        f"Customers: {totals.total_customers:,.0f}. "
        f"{get_metric_label('average_ticket')}: {_yen(totals.average_ticket)}."
    )
    extra = calculate_supplementary_metrics(records, year, month)
    sections.append(f"{get_metric_label('nomination_rate')}: {extra.average_nomination_rate:.1f}%.")
    sections.append("")

    sections.append("## 2. Comparisons")
    yoy = calculate_yoy(records, year, month)
    if yoy.previous_total > 0:
        sections.append(
            f"{get_metric_label('yoy_rate')}: {yoy.rate:+.1f}% "
            f"({_yen(yoy.previous_total)} -> {_yen(yoy.current_total)}). Label: {yoy.label}."
        )
    else:
        sections.append(f"No sales recorded for {yoy.previous_year}; year-over-year not available.")
    mom = calculate_mom(records, year, month)
    if mom is not None:
        sections.append(
            f"{get_metric_label('mom_rate')}: {mom.rate:+.1f}% against "
            f"{mom.previous_year}/{mom.previous_month:02d}. Label: {mom.label}."
        )
    sections.append("")

    sections.append("## 3. Targets")
    achievement = calculate_achievements(records, year, month, settings.targets)
    if achievement.annual_target:
        sections.append(
            f"Annual: {_yen(achievement.annual_actual)} / {_yen(achievement.annual_target)} "
            f"({achievement.annual_rate:.1f}%)."
        )
    if month and achievement.monthly_target:
        sections.append(
            f"Monthly: {_yen(achievement.monthly_actual)} / {_yen(achievement.monthly_target)} "
            f"({achievement.monthly_rate:.1f}%)."
        )
    if not achievement.annual_target and not achievement.monthly_target:
        sections.append("No targets configured.")
    sections.append("")

    sections.append("## 4. Stores")
    stores = get_store_rankings(records, year, month, settings.store_order)
    if stores:
        for s in stores:
            sections.append(f"- {s.store_id}: {_yen(s.total_sales)} ({s.customers:,.0f} customers)")
    else:
        sections.append("No store data available.")
    sections.append("")

    sections.append("## 5. Top Staff")
    top = get_individual_top10(records, year, month)
    if top:
        for entry in top[:3]:
            sections.append(f"{entry.rank}. {entry.staff_name} ({entry.store_id}): {_yen(entry.value)}")
        if len(top) > 3:
            sections.append("The full top-10 list is available in the ranking table.")
    else:
        sections.append("No staff data available.")

    return "\n".join(sections)
