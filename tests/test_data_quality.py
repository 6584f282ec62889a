import csv

from conftest import make_record
from data_quality import (
    build_quality_report,
    check_data_quality,
    find_malformed_values,
    get_excluded_records,
    save_excluded_to_csv,
)
from kpi import calculate_totals


def test_na_store_excluded_from_totals_but_listed():
    bad = make_record(store_id="#N/A", total_sales=1000, source_file="2024.xlsx", source_row_index=7)
    good = make_record(store_id="奈良", total_sales=200)
    assert calculate_totals([bad, good]).total_sales == 200
    excluded = get_excluded_records([bad, good])
    assert len(excluded) == 1
    assert excluded[0].record is bad
    assert excluded[0].reason == "store unknown/error"


def test_get_excluded_records_empty():
    assert get_excluded_records(None) == []
    assert get_excluded_records([make_record()]) == []


def test_find_malformed_values():
    r = make_record(total_sales="#REF!", nominated_sales="ERROR", free_sales="1,000")
    found = find_malformed_values([r, make_record()])
    assert [(m.field, m.raw_value) for m in found] == [("total_sales", "#REF!"), ("nominated_sales", "ERROR")]


def test_quality_report_counts_records_and_values():
    records = [
        make_record(total_sales="#REF!", nominated_sales="ERROR"),
        make_record(total_sales="#VALUE!"),
        make_record(store_id="不明"),
        make_record(),
    ]
    report = build_quality_report(records)
    assert report.total_records == 4
    assert report.excluded_count == 1
    assert report.malformed_record_count == 2
    assert report.malformed_value_count == 3
    assert len(report.warnings) == 2
    assert report.warnings[0].startswith("1 record(s)")
    assert report.warnings[1].startswith("2 record(s)")


def test_quality_report_does_not_change_totals():
    records = [make_record(total_sales="#REF!"), make_record(total_sales=300)]
    before = calculate_totals(records)
    build_quality_report(records)
    assert calculate_totals(records) == before
    assert before.total_sales == 300


def test_clean_data_has_no_warnings():
    assert check_data_quality([make_record(total_sales=1)]) == []
    assert check_data_quality(None) == []


def test_save_excluded_to_csv(tmp_path):
    excluded = get_excluded_records([make_record(store_id="ERROR", staff_name="佐藤", source_file="a.xlsx", source_row_index=3)])
    path = save_excluded_to_csv(excluded, str(tmp_path / "out" / "excluded.csv"))
    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 1
    assert rows[0]["store_id"] == "ERROR"
    assert rows[0]["staff_name"] == "佐藤"
    assert rows[0]["source_row_index"] == "3"
    assert rows[0]["reason"] == "store unknown/error"
