"""
Data quality reporting: excluded records, malformed numeric cells and warning messages.
Nothing here changes aggregates; it only describes what the aggregates left out.
"""

import csv
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Iterable

from records import NUMERIC_FIELDS, SalesRecord, invalid_reason, is_malformed_number

logger = logging.getLogger(__name__)

EXCLUDED_CSV_FIELDS = [
    "source_file",
    "source_sheet",
    "source_row_index",
    "store_id",
    "staff_id",
    "staff_name",
    "total_sales",
    "reason",
]


@dataclass
class ExcludedRecord:
    record: SalesRecord
    reason: str


@dataclass
class MalformedValue:
    record: SalesRecord
    field: str
    raw_value: Any


@dataclass
class DataQualityReport:
    total_records: int = 0
    excluded_count: int = 0
    malformed_record_count: int = 0
    malformed_value_count: int = 0
    warnings: list[str] = field(default_factory=list)
    excluded: list[ExcludedRecord] = field(default_factory=list)


def get_excluded_records(records: Iterable[SalesRecord] | None) -> list[ExcludedRecord]:
    """Every record the validity filter rejects, with the reason."""
    if not records:
        return []
    excluded = []
    for r in records:
        reason = invalid_reason(r)
        if reason is not None:
            excluded.append(ExcludedRecord(record=r, reason=reason))
    return excluded


def find_malformed_values(records: Iterable[SalesRecord] | None) -> list[MalformedValue]:
    """Numeric cells holding text that is not a number ('#REF!', 'ERROR', ...). Each counts as zero."""
    if not records:
        return []
    found = []
    for r in records:
        for name in NUMERIC_FIELDS:
            raw = getattr(r, name)
            if is_malformed_number(raw):
                found.append(MalformedValue(record=r, field=name, raw_value=raw))
    return found


def build_quality_report(records: Iterable[SalesRecord] | None) -> DataQualityReport:
    records = list(records or [])
    excluded = get_excluded_records(records)
    malformed = find_malformed_values(records)
    # the warning counts records, not cells
    malformed_records = {id(m.record) for m in malformed}

    warnings = []
    if excluded:
        warnings.append(
            f"{len(excluded)} record(s) have an unknown or error store and were excluded "
            f"from every chart and total. See the excluded records list for details."
        )
    if malformed_records:
        warnings.append(
            f"{len(malformed_records)} record(s) contain non-numeric values in numeric columns; "
            f"those values were counted as 0."
        )
    if warnings:
        logger.info(
            "Data quality: %d excluded, %d malformed record(s), %d malformed value(s)",
            len(excluded), len(malformed_records), len(malformed),
        )

    return DataQualityReport(
        total_records=len(records),
        excluded_count=len(excluded),
        malformed_record_count=len(malformed_records),
        malformed_value_count=len(malformed),
        warnings=warnings,
        excluded=excluded,
    )


def check_data_quality(records: Iterable[SalesRecord] | None) -> list[str]:
    return build_quality_report(records).warnings


def excluded_to_rows(excluded: list[ExcludedRecord]) -> list[dict[str, Any]]:
    return [
        {
            "source_file": e.record.source_file,
            "source_sheet": e.record.source_sheet,
            "source_row_index": e.record.source_row_index,
            "store_id": e.record.store_id,
            "staff_id": e.record.staff_id,
            "staff_name": e.record.staff_name,
            "total_sales": e.record.total_sales,
            "reason": e.reason,
        }
        for e in excluded
    ]


def save_excluded_to_csv(excluded: list[ExcludedRecord], path: str) -> str:
    """
    Write excluded records to CSV for offline inspection.
    Overwrites the file. Returns path.
    """
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=EXCLUDED_CSV_FIELDS)
        writer.writeheader()
        writer.writerows(excluded_to_rows(excluded))
    logger.info("Wrote %d excluded record(s) to %s", len(excluded), path)
    return path
