from settings import DashboardSettings, TargetSettings
from template_report import generate_summary_report


def test_summary_report_for_month(sales_records):
    settings = DashboardSettings(targets=TargetSettings(annual=28600, monthly=11800))
    report = generate_summary_report(sales_records, 2024, 1, settings)
    assert "## 1. Overview (2024年1月)" in report
    assert "総売上: ¥11,800" in report
    assert "前年比: +2260.0%" in report
    assert "前月比" in report
    assert "Annual: ¥14,300 / ¥28,600 (50.0%)." in report
    assert "Monthly: ¥11,800 / ¥11,800 (100.0%)." in report
    assert "- 奈良: ¥8,000" in report
    assert "1. 鈴木 (生駒): ¥3,000" in report


def test_summary_report_without_data_or_targets():
    report = generate_summary_report([], 2024, None, DashboardSettings())
    assert "## 1. Overview (2024年)" in report
    assert "year-over-year not available" in report
    assert "No targets configured." in report
    assert "No store data available." in report
    assert "No staff data available." in report
    assert "前月比" not in report
