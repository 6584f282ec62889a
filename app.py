import io
import logging
import os
from dataclasses import asdict

import pandas as pd
import streamlit as st

from comparison import calculate_achievements, calculate_mom, calculate_yoy
from data_quality import build_quality_report, excluded_to_rows, save_excluded_to_csv
from excel_reader import extract_year_from_filename, read_workbooks
from kpi import (
    aggregate_by_staff,
    calculate_supplementary_metrics,
    calculate_totals,
    get_monthly_totals_by_store,
    get_store_rankings,
)
from kpi_definitions import METRIC_DEFINITIONS, get_field_metrics, get_metric_label, get_rankable_metrics
from ranking import get_individual_rankings, get_top3
from records import filter_by_period, get_available_months, get_available_years, reassign_year
from settings import load_settings, save_targets, with_store_order
from template_report import generate_summary_report
from trends import get_individual_trend, get_monthly_trends

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
OUTPUT_DIR = os.path.join(BASE_DIR, "outputs")
EXCLUDED_CSV = os.path.join(OUTPUT_DIR, "excluded_records.csv")
ALL_MONTHS = "全月"

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _frame(items) -> pd.DataFrame:
    return pd.DataFrame([asdict(i) for i in items])


def _labelled(df: pd.DataFrame) -> pd.DataFrame:
    return df.rename(columns={c: get_metric_label(c) for c in df.columns if c in METRIC_DEFINITIONS})


def init_session_state():
    defaults = {
        "records": [],
        "file_names": [],
        "settings": None,
    }
    for k, v in defaults.items():
        if k not in st.session_state:
            st.session_state[k] = v
    if st.session_state.settings is None:
        st.session_state.settings = load_settings(BASE_DIR)


def load_uploads(uploads, years: list[int | None]) -> None:
    sources = [io.BytesIO(u.getvalue()) for u in uploads]
    for src, u in zip(sources, uploads):
        src.name = u.name
    result = read_workbooks(sources, years)
    if result is None:
        st.error("None of the uploaded workbooks could be read. Check that each has a 'CSV計算' sheet.")
        return
    st.session_state.records = result.records
    st.session_state.file_names = result.file_names
    st.session_state.settings = with_store_order(st.session_state.settings, result.store_order)
    skipped = len(uploads) - len(result.file_names)
    if skipped:
        st.warning(f"{skipped} file(s) could not be read and were skipped.")


def upload_years(uploads) -> list[int | None]:
    """One year input per upload, keyed by position so repeated file names stay distinct."""
    years = []
    for i, u in enumerate(uploads):
        guessed = extract_year_from_filename(u.name) or 0
        year = st.number_input(
            f"Year for {u.name}", min_value=0, max_value=2100, value=guessed, step=1, key=f"upload_year_{i}"
        )
        years.append(int(year) or None)
    return years


def sidebar():
    settings = st.session_state.settings
    with st.sidebar:
        st.markdown("### Data")
        uploads = st.file_uploader("Sales workbooks (.xlsx)", type=["xlsx"], accept_multiple_files=True)
        if uploads:
            years = upload_years(uploads)
            if st.button("Load files", type="primary"):
                load_uploads(uploads, years)

        records = st.session_state.records
        if records and st.session_state.file_names:
            with st.expander("Correct year per file", expanded=False):
                target = st.selectbox("File", st.session_state.file_names, key="fix_file")
                new_year = st.number_input("Year", min_value=1900, max_value=2100, value=2024, step=1, key="fix_year")
                if st.button("Apply year"):
                    st.session_state.records = reassign_year(records, int(new_year), target)
                    st.rerun()

        st.divider()
        st.markdown("### Targets")
        annual = st.number_input("Annual target", min_value=0.0, value=float(settings.targets.annual), step=100000.0)
        monthly = st.number_input("Monthly target", min_value=0.0, value=float(settings.targets.monthly), step=10000.0)
        if st.button("Save targets"):
            st.session_state.settings = save_targets(settings, annual, monthly)
            st.success("Targets saved")

        with st.expander("Metric definitions", expanded=False):
            for name, defn in METRIC_DEFINITIONS.items():
                st.markdown(f"**{defn['label']}** ({name})")
                st.caption(defn["formula"])


def header_metrics(records, year, month, settings):
    totals = calculate_totals(filter_by_period(records, year, month))
    yoy = calculate_yoy(records, year, month)
    mom = calculate_mom(records, year, month)
    achievement = calculate_achievements(records, year, month, settings.targets)
    extra = calculate_supplementary_metrics(records, year, month)

    c1, c2, c3, c4 = st.columns(4)
    c1.metric(get_metric_label("total_sales"), f"¥{totals.total_sales:,.0f}", f"{yoy.rate:+.1f}% YoY")
    c2.metric("Customers", f"{totals.total_customers:,.0f}")
    c3.metric(get_metric_label("average_ticket"), f"¥{totals.average_ticket:,.0f}")
    c4.metric(get_metric_label("nomination_rate"), f"{extra.average_nomination_rate:.1f}%")
    c5, c6, c7 = st.columns(3)
    if mom is not None:
        c5.metric(get_metric_label("mom_rate"), f"{mom.rate:+.1f}%", mom.label)
    c6.metric("Annual target", f"{achievement.annual_rate:.1f}%")
    if month:
        c7.metric("Monthly target", f"{achievement.monthly_rate:.1f}%")


def data_warnings(records):
    report = build_quality_report(records)
    for w in report.warnings:
        st.warning(w)
    if report.excluded:
        with st.expander(f"Excluded records ({report.excluded_count})", expanded=False):
            st.dataframe(pd.DataFrame(excluded_to_rows(report.excluded)), width="stretch")
            if st.button("Save excluded records to CSV"):
                path = save_excluded_to_csv(report.excluded, EXCLUDED_CSV)
                st.caption(f"Saved to {path}")


def tab_individual_monthly(records, year, month, store_order):
    summaries = aggregate_by_staff(filter_by_period(records, year, month))
    if not summaries:
        st.info("No staff data for this period.")
        return
    st.dataframe(_labelled(_frame(summaries)), width="stretch")
    stores = get_store_rankings(records, year, month, store_order)
    metric = st.selectbox(
        "Department top 3 metric",
        get_field_metrics(),
        format_func=get_metric_label,
        key="top3_metric",
    )
    cols = st.columns(max(len(stores), 1))
    scoped = filter_by_period(records, year, month)
    for col, store in zip(cols, stores):
        with col:
            st.markdown(f"**{store.store_id}**")
            top = get_top3(scoped, metric, [store.store_id])
            for entry in top:
                st.caption(f"{entry.rank}. {entry.staff_name}: {entry.value:,.0f}")


def tab_store_monthly(records, year, store_order):
    monthly = get_monthly_totals_by_store(records, year, store_order)
    if not monthly.series:
        st.info("No store data for this year.")
        return
    rows = {}
    for entry in monthly.series:
        row = {(s, "sales"): entry["stores"].get(s, {}).get("total_sales", 0.0) for s in monthly.store_list}
        row[("合計", "sales")] = entry["total_sales"]
        row[("合計", "customers")] = entry["total_customers"]
        rows[entry["month"]] = row
    frame = pd.DataFrame.from_dict(rows, orient="index")
    frame.index.name = "month"
    st.dataframe(frame, width="stretch")


def tab_individual_annual(records, year, month):
    metric = st.selectbox("Ranking metric", get_rankable_metrics(), format_func=get_metric_label, key="rank_metric")
    rankings = get_individual_rankings(records, metric, year, month)
    if rankings:
        st.dataframe(_frame(rankings), width="stretch")
    names = sorted({s.staff_name for s in aggregate_by_staff(records, year) if s.staff_name})
    if names:
        staff = st.selectbox("Staff trend", names, key="trend_staff")
        st.dataframe(_labelled(_frame(get_individual_trend(records, staff, year))), width="stretch")


def tab_store_annual(records, year, store_order):
    trends = get_monthly_trends(records, year, store_order)
    if not trends:
        st.info("No store data for this year.")
        return
    for store, points in trends.items():
        st.markdown(f"**{store}**")
        st.dataframe(_labelled(_frame(points)), width="stretch")


def main():
    st.set_page_config(page_title="Salon Sales Dashboard", layout="wide", initial_sidebar_state="expanded")
    init_session_state()
    sidebar()

    st.title("Salon Sales Dashboard")
    records = st.session_state.records
    settings = st.session_state.settings
    if not records:
        st.info("👈 Upload one or more sales workbooks in the sidebar.")
        return

    years = get_available_years(records)
    if not years:
        st.warning("No year found in the data. Set a year for each file in the sidebar.")
        return
    c_year, c_month = st.columns(2)
    year = c_year.selectbox("Year", years, key="year")
    month_choice = c_month.selectbox("Month", [ALL_MONTHS] + get_available_months(records, year), key="month")
    month = None if month_choice == ALL_MONTHS else int(month_choice)

    header_metrics(records, year, month, settings)
    data_warnings(records)

    t1, t2, t3, t4, t5 = st.tabs(["個別売上（月間）", "店舗別売上（月間）", "個別売上（年間）", "店舗別年間売上", "Summary"])
    with t1:
        tab_individual_monthly(records, year, month, settings.store_order)
    with t2:
        tab_store_monthly(records, year, settings.store_order)
    with t3:
        tab_individual_annual(records, year, month)
    with t4:
        tab_store_annual(records, year, settings.store_order)
    with t5:
        report = generate_summary_report(records, year, month, settings)
        st.markdown(report)
        st.download_button(
            "Download summary",
            data=report,
            file_name=f"summary_{year}_{month or 'all'}.md",
            mime="text/markdown",
            key="dl_summary",
        )


if __name__ == "__main__":
    main()
