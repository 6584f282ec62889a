import pytest

from conftest import make_record
from kpi import aggregate_by_staff
from trends import get_individual_trend, get_monthly_trends


def test_individual_trend_is_dense(sales_records):
    trend = get_individual_trend(sales_records, "佐藤", 2024)
    assert [p.month for p in trend] == list(range(1, 13))
    assert trend[0].total_sales == 1000
    assert trend[1].total_sales == 2500
    assert trend[0].nomination_rate == pytest.approx(60.0)
    assert all(p.total_sales == 0 and p.nomination_rate == 0 for p in trend[2:])


def test_individual_trend_matches_staff_code(sales_records):
    trend = get_individual_trend(sales_records, "S1", 2024)
    assert sum(p.total_sales for p in trend) == 3500


def test_individual_trend_excludes_invalid_stores(sales_records):
    trend = get_individual_trend(sales_records, "田中", 2024)
    assert sum(p.total_sales for p in trend) == 0


@pytest.mark.parametrize("records, name", [(None, "A"), ([], "A"), ([make_record()], None), ([make_record()], "")])
def test_individual_trend_empty_inputs(records, name):
    trend = get_individual_trend(records, name, 2024)
    assert len(trend) == 12
    assert all(p.total_sales == 0 for p in trend)


def test_individual_trend_ignores_out_of_range_months():
    trend = get_individual_trend([make_record(month=13, total_sales=10), make_record(month=0, total_sales=5)], "A", 2024)
    assert sum(p.total_sales for p in trend) == 0


def test_monthly_trends_sparse_and_sorted():
    records = [
        make_record(store_id="生駒", month=5, total_sales=10),
        make_record(store_id="奈良", month=3, total_sales=20, product_sales=4),
        make_record(store_id="奈良", month=1, total_sales=30),
        make_record(store_id="奈良", month=3, total_sales=5),
        make_record(store_id="ERROR", month=2, total_sales=1),
    ]
    trends = get_monthly_trends(records, 2024)
    assert list(trends) == ["奈良", "生駒"]
    assert [p.month for p in trends["奈良"]] == [1, 3]
    assert trends["奈良"][1].total_sales == 25
    assert trends["奈良"][1].product_sales == 4
    assert get_monthly_trends(None, 2024) == {}


def test_individual_trend_agrees_with_staff_aggregate():
    records = [
        make_record(staff_id="S1", staff_name="佐藤", total_sales=1000),
        make_record(staff_id="S1", staff_name="不明", month=2, total_sales=500),
    ]
    (summary,) = aggregate_by_staff(records, 2024)
    trend = get_individual_trend(records, "S1", 2024)
    assert sum(p.total_sales for p in trend) == summary.total_sales == 1000
    assert sum(p.total_sales for p in get_individual_trend(records, "不明", 2024)) == 0
