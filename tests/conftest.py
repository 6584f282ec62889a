import pytest

from records import SalesRecord


def make_record(**kwargs) -> SalesRecord:
    defaults = {"year": 2024, "month": 1, "store_id": "奈良", "staff_id": None, "staff_name": "A"}
    defaults.update(kwargs)
    return SalesRecord(**defaults)


@pytest.fixture
def sales_records() -> list[SalesRecord]:
    return [
        make_record(staff_id="S1", staff_name="佐藤", total_sales=1000, nominated_sales=600, nominated_count=2),
        make_record(staff_id="S2", staff_name="鈴木", store_id="生駒", total_sales=3000, nominated_sales=1500, nominated_count=5),
        make_record(staff_id="S1", staff_name="佐藤", month=2, total_sales=2500, nominated_sales=500, nominated_count=4),
        make_record(staff_id="S3", staff_name="高橋", store_id="villa", total_sales=800, nominated_count=1),
        make_record(staff_id="S9", staff_name="田中", store_id="#N/A", total_sales=99999, nominated_count=50),
        make_record(staff_id="S1", staff_name="佐藤", year=2023, total_sales=500, nominated_count=1),
        make_record(staff_id=None, staff_name=None, store_id="奈良", total_sales=7000, nominated_count=9),
    ]
