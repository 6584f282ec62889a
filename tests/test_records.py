import math

import numpy as np
import pytest

from conftest import make_record
from records import (
    UNKNOWN_MARKER,
    filter_by_period,
    get_available_months,
    get_available_years,
    invalid_reason,
    is_malformed_number,
    is_unknown_marker,
    is_valid,
    merge_collections,
    normalize_row,
    normalize_rows,
    reassign_year,
    staff_identity,
    to_number,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        (1500, 1500.0),
        (12.5, 12.5),
        ("1,234", 1234.0),
        ("1,234,567.5", 1234567.5),
        (" 42 ", 42.0),
        ("", 0.0),
        ("#REF!", 0.0),
        ("ERROR", 0.0),
        (None, 0.0),
        (float("nan"), 0.0),
        (np.int64(7), 7.0),
        (np.float64(2.5), 2.5),
        ([1, 2], 0.0),
        ("1,000円", 1000.0),
        ("12%", 12.0),
        ("5 人", 5.0),
        ("円", 0.0),
    ],
)
def test_to_number(value, expected):
    assert to_number(value) == expected


def test_is_malformed_number():
    assert is_malformed_number("#N/A")
    assert is_malformed_number("ERROR")
    assert not is_malformed_number("1,000")
    assert not is_malformed_number("")
    assert not is_malformed_number(None)
    assert not is_malformed_number(math.nan)


@pytest.mark.parametrize("store", [None, "", "  ", "不明", "unknown", "Unknown", "#N/A", "#ERROR!", "store ERROR 3"])
def test_invalid_stores(store):
    r = make_record(store_id=store)
    assert not is_valid(r)
    assert invalid_reason(r) == "store unknown/error"


def test_valid_store():
    r = make_record(store_id="奈良-A")
    assert is_valid(r)
    assert invalid_reason(r) is None


def test_staff_identity_prefers_code():
    assert staff_identity(make_record(staff_id="S1", staff_name="佐藤")) == "S1"
    assert staff_identity(make_record(staff_id=None, staff_name="佐藤")) == "佐藤"
    assert staff_identity(make_record(staff_id=None, staff_name=None)) is None


def test_staff_identity_rejects_unknown_name_even_with_code():
    assert staff_identity(make_record(staff_id="S1", staff_name="不明")) is None
    assert staff_identity(make_record(staff_id="S1", staff_name="#N/A")) is None


def test_filter_by_period_coerces_types():
    records = [
        make_record(year="2024", month="3"),
        make_record(year=2024, month=4),
        make_record(year=2023, month=3),
    ]
    assert len(filter_by_period(records, 2024)) == 2
    assert filter_by_period(records, 2024, 3) == [records[0]]
    assert len(filter_by_period(records, "2024", "4")) == 1
    assert filter_by_period(records) == records


def test_filter_by_period_empty_input():
    assert filter_by_period(None, 2024) == []
    assert filter_by_period([], 2024, 1) == []


def test_available_years_and_months():
    records = [
        make_record(year=2023, month=12),
        make_record(year=2024, month=3, store_id="#N/A"),
        make_record(year=2024, month=1),
    ]
    assert get_available_years(records) == [2024, 2023]
    assert get_available_months(records, 2024) == [1, 3]
    assert get_available_months(records) == [1, 3, 12]
    assert get_available_years(None) == []


def test_normalize_row_japanese_headers_with_staff_map():
    row = {
        "店舗CD": "奈良",
        "スタッフCD": 101.0,
        "スタッフ": "yamada",
        "月": "2",
        "総売上": "12,000",
        "指名売上": 8000,
        "商品": 1500,
        "指名数": 3,
    }
    r = normalize_row(row, staff_map={"101": "山田"}, year=2024, source_file="2024.xlsx", source_sheet="CSV計算", row_index=5)
    assert r.store_id == "奈良"
    assert r.staff_id == "101"
    assert r.staff_name == "山田"
    assert r.year == 2024
    assert r.month == 2
    assert to_number(r.total_sales) == 12000
    assert r.product_sales == 1500
    assert r.free_sales == 0.0
    assert (r.source_file, r.source_sheet, r.source_row_index) == ("2024.xlsx", "CSV計算", 5)


def test_normalize_row_english_aliases_and_name_fallbacks():
    r = normalize_row({"storeCode": "生駒", "staffCode": "S7", "staff": "raw label", "totalSales": 10, "year": 2023})
    assert r.staff_name == "raw label"
    assert r.year == 2023

    r = normalize_row({"storeCode": "生駒", "staffCode": "S7"})
    assert r.staff_name == "S7"

    r = normalize_row({"storeCode": "生駒"})
    assert r.staff_name == UNKNOWN_MARKER
    assert staff_identity(r) is None
    assert r.source_file == UNKNOWN_MARKER


def test_normalize_row_keeps_malformed_numbers_raw():
    r = normalize_row({"店舗CD": "奈良", "総売上": "#REF!"})
    assert r.total_sales == "#REF!"
    assert to_number(r.total_sales) == 0.0


def test_normalize_rows_skips_blank_rows_and_tracks_row_numbers():
    rows = [
        {"店舗CD": "奈良", "総売上": 1},
        {"店舗CD": "", "総売上": None},
        {"店舗CD": "天理", "総売上": 2},
    ]
    records = normalize_rows(rows, source_file="a.xlsx")
    assert [r.store_id for r in records] == ["奈良", "天理"]
    assert [r.source_row_index for r in records] == [2, 4]


def test_reassign_year_returns_new_collection():
    original = [make_record(year=2023, source_file="a.xlsx"), make_record(year=2023, source_file="b.xlsx")]
    updated = reassign_year(original, 2025, source_file="a.xlsx")
    assert [r.year for r in updated] == [2025, 2023]
    assert [r.year for r in original] == [2023, 2023]
    assert [r.year for r in reassign_year(original, 2022)] == [2022, 2022]
    assert reassign_year(None, 2024) == []


def test_merge_collections():
    a = [make_record(month=1)]
    b = [make_record(month=2)]
    assert merge_collections(a, None, b) == a + b


def test_unit_suffix_is_not_malformed():
    assert not is_malformed_number("1,000円")
    assert not is_malformed_number("12%")
    assert is_malformed_number("%")


@pytest.mark.parametrize("store", ["error bar", "Errorville"])
def test_lowercase_error_in_store_name_is_valid(store):
    assert not is_unknown_marker(store)
    assert is_valid(make_record(store_id=store))
