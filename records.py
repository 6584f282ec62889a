"""
Sales records: canonical field names, numeric coercion, validity and period filters.

Every alias lookup happens here. Downstream modules read canonical
SalesRecord attributes only.
"""

import math
import re
from dataclasses import dataclass, replace
from typing import Any, Iterable

import numpy as np

UNKNOWN_MARKER = "不明"
UNKNOWN_MARKERS = {"", UNKNOWN_MARKER, "unknown", "#n/a"}
ERROR_MARKER = "ERROR"
STORE_INVALID_REASON = "store unknown/error"

MONEY_FIELDS = (
    "total_sales",
    "nominated_sales",
    "free_sales",
    "product_sales",
    "total_reward",
    "nominated_reward",
    "free_reward",
    "product_reward",
)
COUNT_FIELDS = ("nominated_count", "attendance_days")
NUMERIC_FIELDS = MONEY_FIELDS + COUNT_FIELDS

# canonical field -> source headers, first non-empty wins
COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "year": ("年", "year"),
    "month": ("月", "month"),
    "store_id": ("店舗CD", "storeCode", "店舗", "store_id", "store"),
    "staff_id": ("スタッフCD", "staffCode", "staff_id"),
    "staff_name": ("スタッフ名", "staffName", "staff_name"),
    "total_sales": ("総売上", "totalSales", "total_sales"),
    "nominated_sales": ("指名売上", "nominatedSales", "nominated_sales"),
    "free_sales": ("フリー売上", "freeSales", "free_sales"),
    "product_sales": ("商品売上", "商品", "productSales", "product_sales"),
    "total_reward": ("報酬合計", "totalReward", "total_reward"),
    "nominated_reward": ("指名報酬", "nominatedReward", "nominated_reward"),
    "free_reward": ("フリー報酬", "freeReward", "free_reward"),
    "product_reward": ("商品報酬", "productReward", "product_reward"),
    "nominated_count": ("指名数", "nominatedCount", "nominated_count"),
    "attendance_days": ("出勤日数", "attendanceDays", "attendance_days"),
}
STAFF_LABEL_COLUMNS = ("スタッフ", "staff")

_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
# unit suffixes seen in hand-edited cells: 1,000円, 12%, 5人
UNIT_SUFFIXES = ("円", "%", "％", "人", "日", "件")


@dataclass(frozen=True)
class SalesRecord:
    """One normalized sales line for a staff member (or store) in one month."""
    year: int | str | None = None
    month: int | str | None = None
    store_id: str | None = None
    staff_id: str | None = None
    staff_name: str | None = None
    total_sales: float | str = 0.0
    nominated_sales: float | str = 0.0
    free_sales: float | str = 0.0
    product_sales: float | str = 0.0
    total_reward: float | str = 0.0
    nominated_reward: float | str = 0.0
    free_reward: float | str = 0.0
    product_reward: float | str = 0.0
    nominated_count: float | str = 0.0
    attendance_days: float | str = 0.0
    source_file: str = ""
    source_sheet: str = ""
    source_row_index: int = 0


def parse_number(value: Any) -> float | None:
    """
    Parse a cell value as a number. Handles: 1234 | 1,234.5 | " 12 " | 1,000円 | 12% | numpy scalars.
    A trailing unit is dropped; a percentage keeps its face value (12% -> 12.0).
    Returns None for anything that is not a finite number (including blanks and NaN).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        number = float(value)
        return number if math.isfinite(number) else None
    if isinstance(value, str):
        text = value.replace(",", "").strip()
        if text.endswith(UNIT_SUFFIXES):
            text = text[:-1].rstrip()
        if not _NUMBER_RE.match(text):
            return None
        return float(text)
    return None


def to_number(value: Any) -> float:
    """Coerce to float; non-numeric, empty and NaN values become 0."""
    number = parse_number(value)
    return 0.0 if number is None else number


def is_malformed_number(value: Any) -> bool:
    """True for a non-blank string that does not parse, e.g. '#REF!' or 'ERROR'."""
    return isinstance(value, str) and value.strip() != "" and parse_number(value) is None


def clean_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (float, np.floating)):
        if not math.isfinite(value):
            return None
        if float(value).is_integer():
            value = int(value)
    text = str(value).strip()
    return text or None


def is_unknown_marker(value: Any) -> bool:
    """Empty, '不明', 'unknown', '#N/A' or anything containing 'ERROR' (upper case only)."""
    text = clean_text(value)
    if text is None:
        return True
    return text.casefold() in UNKNOWN_MARKERS or ERROR_MARKER in text


def is_valid(record: SalesRecord) -> bool:
    return not is_unknown_marker(record.store_id)


def invalid_reason(record: SalesRecord) -> str | None:
    if is_valid(record):
        return None
    return STORE_INVALID_REASON


def staff_identity(record: SalesRecord) -> str | None:
    """Staff code if present, else staff name; None when the record has no usable staff."""
    staff_id = clean_text(record.staff_id)
    staff_name = clean_text(record.staff_name)
    if staff_id is None and staff_name is None:
        return None
    if staff_name is not None and is_unknown_marker(staff_name):
        return None
    return staff_id or staff_name


def filter_by_period(
    records: Iterable[SalesRecord] | None,
    year: int | str | None = None,
    month: int | str | None = None,
) -> list[SalesRecord]:
    if not records:
        return []
    out = []
    for r in records:
        if year and to_number(r.year) != to_number(year):
            continue
        if month and to_number(r.month) != to_number(month):
            continue
        out.append(r)
    return out


def get_available_years(records: Iterable[SalesRecord] | None) -> list[int]:
    """Distinct years, newest first. Looks at every record, valid or not."""
    if not records:
        return []
    years = {int(to_number(r.year)) for r in records if to_number(r.year)}
    return sorted(years, reverse=True)


def get_available_months(records: Iterable[SalesRecord] | None, year: int | None = None) -> list[int]:
    scoped = filter_by_period(records, year) if year else list(records or [])
    months = {int(to_number(r.month)) for r in scoped if to_number(r.month)}
    return sorted(months)


def _first_present(row: dict[str, Any], names: tuple[str, ...]) -> Any:
    for name in names:
        value = row.get(name)
        if clean_text(value) is not None:
            return value
    return None


def _is_blank_row(row: dict[str, Any]) -> bool:
    return all(clean_text(v) is None for v in row.values())


def normalize_row(
    row: dict[str, Any],
    staff_map: dict[str, str] | None = None,
    year: int | None = None,
    source_file: str = "",
    source_sheet: str = "",
    row_index: int = 0,
) -> SalesRecord:
    """
    Map one raw spreadsheet row (any supported header set) to a SalesRecord.

    Staff name resolution order: staff_map[staff code], the row's staff-name
    column, the raw staff label column, the staff code, then UNKNOWN_MARKER.
    An explicit year overrides whatever the row carries.
    """
    staff_map = staff_map or {}
    values = {field: _first_present(row, aliases) for field, aliases in COLUMN_ALIASES.items()}

    staff_id = clean_text(values["staff_id"])
    mapped_name = staff_map.get(staff_id) if staff_id else None
    staff_name = (
        clean_text(mapped_name)
        or clean_text(values["staff_name"])
        or clean_text(_first_present(row, STAFF_LABEL_COLUMNS))
        or staff_id
        or UNKNOWN_MARKER
    )

    row_year = values["year"] if year is None else year
    numeric = {f: (values[f] if values[f] is not None else 0.0) for f in NUMERIC_FIELDS}

    return SalesRecord(
        year=int(to_number(row_year)) if parse_number(row_year) is not None else row_year,
        month=int(to_number(values["month"])) if parse_number(values["month"]) is not None else values["month"],
        store_id=clean_text(values["store_id"]),
        staff_id=staff_id,
        staff_name=staff_name,
        source_file=source_file or UNKNOWN_MARKER,
        source_sheet=source_sheet,
        source_row_index=row_index,
        **numeric,
    )


def normalize_rows(
    rows: Iterable[dict[str, Any]],
    staff_map: dict[str, str] | None = None,
    year: int | None = None,
    source_file: str = "",
    source_sheet: str = "",
    first_row_index: int = 2,
) -> list[SalesRecord]:
    """Normalize rows in order, dropping rows whose cells are all blank."""
    records = []
    for offset, row in enumerate(rows):
        if _is_blank_row(row):
            continue
        records.append(
            normalize_row(
                row,
                staff_map=staff_map,
                year=year,
                source_file=source_file,
                source_sheet=source_sheet,
                row_index=first_row_index + offset,
            )
        )
    return records


def merge_collections(*collections: Iterable[SalesRecord] | None) -> list[SalesRecord]:
    merged: list[SalesRecord] = []
    for c in collections:
        if c:
            merged.extend(c)
    return merged


def reassign_year(
    records: Iterable[SalesRecord] | None,
    year: int,
    source_file: str | None = None,
) -> list[SalesRecord]:
    """Return a new collection with year replaced (only for source_file when given)."""
    if not records:
        return []
    return [
        replace(r, year=year) if source_file is None or r.source_file == source_file else r
        for r in records
    ]
