from dataclasses import dataclass, field, fields
from typing import Any, Iterable

from records import (
    NUMERIC_FIELDS,
    SalesRecord,
    clean_text,
    filter_by_period,
    is_valid,
    staff_identity,
    to_number,
)

DEFAULT_STORE_ORDER: tuple[str, ...] = ("奈良", "天理", "生駒", "villa")


def sort_stores_by_order(
    store_ids: Iterable[str],
    store_order: Iterable[str] | None = None,
) -> list[str]:
    """Listed stores first (substring match, list order), then the rest alphabetically."""
    order = tuple(DEFAULT_STORE_ORDER if store_order is None else store_order)

    def _key(store: str) -> tuple[int, int, str]:
        for idx, prefix in enumerate(order):
            if prefix and prefix in store:
                return (0, idx, "")
        return (1, 0, store)

    return sorted(store_ids, key=_key)


def safe_ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0


def nomination_rate(nominated_sales: float, total_sales: float) -> float:
    return safe_ratio(nominated_sales, total_sales) * 100


@dataclass(frozen=True)
class SalesTotals:
    """Summed numeric fields of a group. SalesTotals() is the zero value."""
    total_sales: float = 0.0
    nominated_sales: float = 0.0
    free_sales: float = 0.0
    product_sales: float = 0.0
    total_reward: float = 0.0
    nominated_reward: float = 0.0
    free_reward: float = 0.0
    product_reward: float = 0.0
    nominated_count: float = 0.0
    attendance_days: float = 0.0

    def add(self, record: SalesRecord) -> "SalesTotals":
        return SalesTotals(**{f: getattr(self, f) + to_number(getattr(record, f)) for f in NUMERIC_FIELDS})

    def merge(self, other: "SalesTotals") -> "SalesTotals":
        return SalesTotals(**{f: getattr(self, f) + getattr(other, f) for f in NUMERIC_FIELDS})

    @property
    def average_ticket(self) -> float:
        return safe_ratio(self.total_sales, self.nominated_count)

    @property
    def nomination_rate(self) -> float:
        return nomination_rate(self.nominated_sales, self.total_sales)

    @property
    def average_daily_sales(self) -> float:
        return safe_ratio(self.total_sales, self.attendance_days)


def fold_totals(records: Iterable[SalesRecord]) -> SalesTotals:
    acc = SalesTotals()
    for r in records:
        acc = acc.add(r)
    return acc


@dataclass
class Totals:
    total_sales: float = 0.0
    total_customers: float = 0.0
    average_ticket: float = 0.0


@dataclass
class StaffSummary:
    staff_key: str
    staff_id: str | None
    staff_name: str | None
    store_id: str | None
    total_sales: float = 0.0
    nominated_sales: float = 0.0
    free_sales: float = 0.0
    product_sales: float = 0.0
    total_reward: float = 0.0
    nominated_reward: float = 0.0
    free_reward: float = 0.0
    product_reward: float = 0.0
    nominated_count: float = 0.0
    attendance_days: float = 0.0
    average_ticket: float = 0.0
    nomination_rate: float = 0.0
    average_daily_sales: float = 0.0


@dataclass
class StoreRanking:
    store_id: str
    total_sales: float
    customers: float
    average_ticket: float


@dataclass
class SupplementaryMetrics:
    total_customers: float = 0.0
    average_ticket: float = 0.0
    average_nomination_rate: float = 0.0


@dataclass
class MonthlyStoreSeries:
    """
    series: one dict per observed month:
    {"month", "total_sales", "total_customers", "stores": {store_id: {"total_sales", "customers"}}}
    """
    series: list[dict[str, Any]] = field(default_factory=list)
    store_list: list[str] = field(default_factory=list)


def group_by_store(
    records: Iterable[SalesRecord] | None,
    store_order: Iterable[str] | None = None,
) -> dict[str, list[SalesRecord]]:
    if not records:
        return {}
    grouped: dict[str, list[SalesRecord]] = {}
    for r in records:
        if not is_valid(r):
            continue
        grouped.setdefault(clean_text(r.store_id), []).append(r)
    return {s: grouped[s] for s in sort_stores_by_order(grouped, store_order)}


def group_by_staff(records: Iterable[SalesRecord] | None) -> dict[str, list[SalesRecord]]:
    """Valid records keyed by staff identity, in first-appearance order."""
    if not records:
        return {}
    grouped: dict[str, list[SalesRecord]] = {}
    for r in records:
        if not is_valid(r):
            continue
        key = staff_identity(r)
        if key is None:
            continue
        grouped.setdefault(key, []).append(r)
    return grouped


def _staff_summary(key: str, rows: list[SalesRecord]) -> StaffSummary:
    totals = fold_totals(rows)
    last = rows[-1]
    sums = {f.name: getattr(totals, f.name) for f in fields(SalesTotals)}
    return StaffSummary(
        staff_key=key,
        staff_id=clean_text(last.staff_id),
        staff_name=clean_text(last.staff_name),
        store_id=clean_text(last.store_id),
        average_ticket=totals.average_ticket,
        nomination_rate=totals.nomination_rate,
        average_daily_sales=totals.average_daily_sales,
        **sums,
    )


def aggregate_by_staff(records: Iterable[SalesRecord] | None, year: int | None = None) -> list[StaffSummary]:
    scoped = filter_by_period(records, year)
    return [_staff_summary(key, rows) for key, rows in group_by_staff(scoped).items()]


def calculate_totals(records: Iterable[SalesRecord] | None) -> Totals:
    if not records:
        return Totals()
    totals = fold_totals(r for r in records if is_valid(r))
    return Totals(
        total_sales=totals.total_sales,
        total_customers=totals.nominated_count,
        average_ticket=totals.average_ticket,
    )


def calculate_annual_total(records: Iterable[SalesRecord] | None, year: int) -> float:
    return calculate_totals(filter_by_period(records, year)).total_sales


def calculate_monthly_total(records: Iterable[SalesRecord] | None, year: int, month: int) -> float:
    return calculate_totals(filter_by_period(records, year, month)).total_sales


def _month_of(record: SalesRecord) -> int:
    return int(to_number(record.month))


def get_monthly_totals(records: Iterable[SalesRecord] | None, year: int | None = None) -> list[dict[str, Any]]:
    """Sparse monthly totals: only months present in the valid data."""
    by_month: dict[int, SalesTotals] = {}
    for r in filter_by_period(records, year):
        month = _month_of(r)
        if not is_valid(r) or not month:
            continue
        by_month[month] = by_month.get(month, SalesTotals()).add(r)
    return [
        {
            "month": month,
            "total_sales": t.total_sales,
            "customers": t.nominated_count,
            "average_ticket": t.average_ticket,
        }
        for month, t in sorted(by_month.items())
    ]


def get_monthly_totals_by_store(
    records: Iterable[SalesRecord] | None,
    year: int | None = None,
    store_order: Iterable[str] | None = None,
) -> MonthlyStoreSeries:
    by_month: dict[int, dict[str, SalesTotals]] = {}
    for r in filter_by_period(records, year):
        month = _month_of(r)
        if not is_valid(r) or not month:
            continue
        stores = by_month.setdefault(month, {})
        store = clean_text(r.store_id)
        stores[store] = stores.get(store, SalesTotals()).add(r)

    observed: set[str] = set()
    series = []
    for month, stores in sorted(by_month.items()):
        entry: dict[str, Any] = {"month": month, "total_sales": 0.0, "total_customers": 0.0, "stores": {}}
        for store, t in stores.items():
            observed.add(store)
            entry["stores"][store] = {"total_sales": t.total_sales, "customers": t.nominated_count}
            entry["total_sales"] += t.total_sales
            entry["total_customers"] += t.nominated_count
        series.append(entry)

    return MonthlyStoreSeries(series=series, store_list=sort_stores_by_order(observed, store_order))


def get_store_rankings(
    records: Iterable[SalesRecord] | None,
    year: int | None = None,
    month: int | None = None,
    store_order: Iterable[str] | None = None,
) -> list[StoreRanking]:
    grouped = group_by_store(filter_by_period(records, year, month), store_order)
    rankings = []
    for store, rows in grouped.items():
        t = fold_totals(rows)
        rankings.append(
            StoreRanking(
                store_id=store,
                total_sales=t.total_sales,
                customers=t.nominated_count,
                average_ticket=t.average_ticket,
            )
        )
    rankings.sort(key=lambda x: x.total_sales, reverse=True)
    return rankings


def calculate_supplementary_metrics(
    records: Iterable[SalesRecord] | None,
    year: int | None = None,
    month: int | None = None,
) -> SupplementaryMetrics:
    scoped = filter_by_period(records, year, month)
    t = fold_totals(r for r in scoped if is_valid(r))
    return SupplementaryMetrics(
        total_customers=t.nominated_count,
        average_ticket=t.average_ticket,
        average_nomination_rate=t.nomination_rate,
    )
