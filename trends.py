"""
Month-indexed trend series.

Individual trends are dense (always months 1..12, zero-filled) so every chart
frame has the same x axis. Store trends are sparse: only months with data.
"""

from dataclasses import dataclass
from typing import Iterable

from kpi import SalesTotals, group_by_store, nomination_rate
from records import SalesRecord, clean_text, filter_by_period, is_valid, staff_identity, to_number

MONTHS = range(1, 13)


@dataclass
class TrendPoint:
    month: int
    total_sales: float = 0.0
    nominated_sales: float = 0.0
    nominated_count: float = 0.0
    nomination_rate: float = 0.0


@dataclass
class StoreMonth:
    month: int
    total_sales: float = 0.0
    nominated_sales: float = 0.0
    free_sales: float = 0.0
    product_sales: float = 0.0


def _matches_staff(record: SalesRecord, staff: str) -> bool:
    # rows left out of staff aggregates stay out of the trend too
    if staff_identity(record) is None:
        return False
    return staff in (clean_text(record.staff_name), clean_text(record.staff_id))


def get_individual_trend(
    records: Iterable[SalesRecord] | None,
    staff_name: str | None,
    year: int | None,
) -> list[TrendPoint]:
    frame = {m: SalesTotals() for m in MONTHS}
    staff = clean_text(staff_name)
    if staff is not None:
        for r in filter_by_period(records, year):
            if not is_valid(r) or not _matches_staff(r, staff):
                continue
            month = int(to_number(r.month))
            if month in frame:
                frame[month] = frame[month].add(r)
    return [
        TrendPoint(
            month=m,
            total_sales=t.total_sales,
            nominated_sales=t.nominated_sales,
            nominated_count=t.nominated_count,
            nomination_rate=nomination_rate(t.nominated_sales, t.total_sales),
        )
        for m, t in frame.items()
    ]


def get_monthly_trends(
    records: Iterable[SalesRecord] | None,
    year: int | None,
    store_order: Iterable[str] | None = None,
) -> dict[str, list[StoreMonth]]:
    trends: dict[str, list[StoreMonth]] = {}
    for store, rows in group_by_store(filter_by_period(records, year), store_order).items():
        by_month: dict[int, SalesTotals] = {}
        for r in rows:
            month = int(to_number(r.month))
            by_month[month] = by_month.get(month, SalesTotals()).add(r)
        trends[store] = [
            StoreMonth(
                month=m,
                total_sales=t.total_sales,
                nominated_sales=t.nominated_sales,
                free_sales=t.free_sales,
                product_sales=t.product_sales,
            )
            for m, t in sorted(by_month.items())
        ]
    return trends
