from dataclasses import dataclass
from typing import Iterable

from kpi import aggregate_by_staff, StaffSummary
from records import SalesRecord, clean_text, filter_by_period, is_valid, staff_identity, to_number

TOP3 = 3
TOP10 = 10


@dataclass
class RankedEntry:
    rank: int
    staff_key: str
    staff_id: str | None
    staff_name: str | None
    store_id: str | None
    metric: str
    value: float


def _in_stores(record: SalesRecord, stores: Iterable[str] | None) -> bool:
    if stores is None:
        return True
    store = clean_text(record.store_id) or ""
    return any(s and s in store for s in stores)


def get_top_n(
    records: Iterable[SalesRecord] | None,
    metric: str,
    n: int,
    stores: Iterable[str] | None = None,
) -> list[RankedEntry]:
    """
    Leaderboard for one raw field: sum `metric` per staff identity, highest first.

    Only the metric is accumulated; name and store come from the last record seen
    for that person. Ties keep first-appearance order. `stores` restricts the input
    to records whose store id contains one of the given names.
    """
    if not records or n <= 0:
        return []
    stores = list(stores) if stores is not None else None
    values: dict[str, float] = {}
    last_seen: dict[str, SalesRecord] = {}
    for r in records:
        if not is_valid(r) or not _in_stores(r, stores):
            continue
        key = staff_identity(r)
        if key is None:
            continue
        values[key] = values.get(key, 0.0) + to_number(getattr(r, metric, 0))
        last_seen[key] = r

    ordered = sorted(values.items(), key=lambda kv: kv[1], reverse=True)[:n]
    return [
        RankedEntry(
            rank=i + 1,
            staff_key=key,
            staff_id=clean_text(last_seen[key].staff_id),
            staff_name=clean_text(last_seen[key].staff_name),
            store_id=clean_text(last_seen[key].store_id),
            metric=metric,
            value=value,
        )
        for i, (key, value) in enumerate(ordered)
    ]


def get_top3(
    records: Iterable[SalesRecord] | None,
    metric: str,
    stores: Iterable[str] | None = None,
) -> list[RankedEntry]:
    return get_top_n(records, metric, TOP3, stores)


def get_individual_rankings(
    records: Iterable[SalesRecord] | None,
    metric: str,
    year: int | None = None,
    month: int | None = None,
    n: int = TOP10,
) -> list[RankedEntry]:
    """Rank fully aggregated staff rows, so derived metrics such as average_ticket work too."""
    summaries: list[StaffSummary] = aggregate_by_staff(filter_by_period(records, year, month))
    ordered = sorted(summaries, key=lambda s: to_number(getattr(s, metric, 0)), reverse=True)[:max(n, 0)]
    return [
        RankedEntry(
            rank=i + 1,
            staff_key=s.staff_key,
            staff_id=s.staff_id,
            staff_name=s.staff_name,
            store_id=s.store_id,
            metric=metric,
            value=to_number(getattr(s, metric, 0)),
        )
        for i, s in enumerate(ordered)
    ]


def get_individual_top10(
    records: Iterable[SalesRecord] | None,
    year: int | None = None,
    month: int | None = None,
) -> list[RankedEntry]:
    return get_individual_rankings(records, "total_sales", year, month, TOP10)
