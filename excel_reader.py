"""Read salon sales workbooks (.xlsx) into SalesRecord collections."""

import logging
import os
import re
import zipfile
from dataclasses import dataclass, field
from typing import Any, Sequence

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from records import SalesRecord, clean_text, merge_collections, normalize_rows

logger = logging.getLogger(__name__)

DATA_SHEET = "CSV計算"
STAFF_SHEET_KEYWORD = "スタッフ"
STORE_ORDER_SHEETS = ("表", "店舗リスト")
STORE_ORDER_HEADER = "店舗リスト"
YEAR_IN_FILENAME = re.compile(r"(20\d{2}|19\d{2})")


class WorkbookError(ValueError):
    """The workbook could not be opened or has no usable data sheet."""


@dataclass
class WorkbookData:
    records: list[SalesRecord] = field(default_factory=list)
    headers: list[str] = field(default_factory=list)
    staff_map: dict[str, str] = field(default_factory=dict)
    store_order: list[str] = field(default_factory=list)
    file_names: list[str] = field(default_factory=list)


def extract_year_from_filename(name: str | None) -> int | None:
    """'2024年度売上.xlsx' -> 2024. None when the name carries no year."""
    match = YEAR_IN_FILENAME.search(name or "")
    return int(match.group(1)) if match else None


def normalize_header(header: object) -> str:
    text = str(header if header is not None else "").strip()
    return re.sub(r"\s+", " ", text)


def source_name(source: Any) -> str:
    if isinstance(source, (str, os.PathLike)):
        return os.path.basename(os.fspath(source))
    return getattr(source, "name", "") or ""


def _sheet_rows(xls: pd.ExcelFile, sheet_name: str) -> list[list[Any]]:
    frame = xls.parse(sheet_name, header=None, dtype=object)
    frame = frame.astype(object).where(frame.notna(), None)
    return frame.values.tolist()


def read_staff_map(xls: pd.ExcelFile) -> dict[str, str]:
    """Staff sheet layout: column A registered name, column B staff code, header in row 1."""
    sheet = next((s for s in xls.sheet_names if STAFF_SHEET_KEYWORD in str(s)), None)
    if sheet is None:
        logger.warning("No staff sheet found; staff codes will be shown as-is")
        return {}
    staff_map = {}
    for row in _sheet_rows(xls, sheet)[1:]:
        if len(row) < 2:
            continue
        name, code = clean_text(row[0]), clean_text(row[1])
        if name and code:
            staff_map[code] = name
    logger.info("Loaded %d staff name mapping(s) from sheet %s", len(staff_map), sheet)
    return staff_map


def read_store_order(xls: pd.ExcelFile) -> list[str]:
    sheet = next((s for s in xls.sheet_names if s in STORE_ORDER_SHEETS), None)
    if sheet is None:
        logger.warning("No store order sheet found; using configured store order")
        return []
    order = []
    for row in _sheet_rows(xls, sheet)[1:]:
        store = clean_text(row[0]) if row else None
        if store and store != STORE_ORDER_HEADER:
            order.append(store)
    logger.info("Loaded store order: %s", ", ".join(order))
    return order


def read_workbook(source: Any, year: int | None = None, filename: str | None = None) -> WorkbookData:
    """
    Read one workbook: staff map, store order and the data sheet.

    source: path or file-like object (e.g. a Streamlit upload).
    year: explicit year for every row; defaults to the year found in the file name.
    Raises WorkbookError when the file cannot be read or the data sheet is missing/empty.
    """
    name = filename or source_name(source)
    try:
        xls = pd.ExcelFile(source, engine="openpyxl")
    except (OSError, ValueError, zipfile.BadZipFile, InvalidFileException) as e:
        raise WorkbookError(f"Could not read workbook '{name}': {e}") from e

    with xls:
        staff_map = read_staff_map(xls)
        store_order = read_store_order(xls)
        if DATA_SHEET not in xls.sheet_names:
            raise WorkbookError(
                f"Sheet '{DATA_SHEET}' not found in '{name}'. Available sheets: {', '.join(map(str, xls.sheet_names))}"
            )
        rows = _sheet_rows(xls, DATA_SHEET)

    if not rows:
        raise WorkbookError(f"Sheet '{DATA_SHEET}' in '{name}' is empty")

    headers = [normalize_header(h) for h in rows[0]]
    dict_rows = [
        {h: value for h, value in zip(headers, row) if h}
        for row in rows[1:]
    ]
    resolved_year = year if year is not None else extract_year_from_filename(name)
    if resolved_year is None:
        logger.warning("No year given or found in file name '%s'; rows keep their own year column", name)

    records = normalize_rows(
        dict_rows,
        staff_map=staff_map,
        year=resolved_year,
        source_file=name,
        source_sheet=DATA_SHEET,
    )
    logger.info("Read %d record(s) from %s", len(records), name)
    return WorkbookData(
        records=records,
        headers=[h for h in headers if h],
        staff_map=staff_map,
        store_order=store_order,
        file_names=[name],
    )


def read_workbooks(
    sources: Sequence[Any],
    years: Sequence[int | None] | None = None,
) -> WorkbookData | None:
    """
    Read several workbooks and merge them into one collection.
    Unreadable files are logged and skipped; None when none could be read.
    Later staff maps win; the first non-empty store order is kept.
    """
    results: list[WorkbookData] = []
    for i, source in enumerate(sources):
        year = years[i] if years is not None and i < len(years) else None
        try:
            results.append(read_workbook(source, year))
        except WorkbookError as e:
            logger.error("Skipping workbook: %s", e)

    if not results:
        return None

    staff_map: dict[str, str] = {}
    for r in results:
        staff_map.update(r.staff_map)
    merged = WorkbookData(
        records=merge_collections(*(r.records for r in results)),
        headers=results[0].headers,
        staff_map=staff_map,
        store_order=next((r.store_order for r in results if r.store_order), []),
        file_names=[n for r in results for n in r.file_names],
    )
    logger.info("Merged %d file(s): %d record(s)", len(results), len(merged.records))
    return merged
