"""
Metric definitions: source field, formula and display label for every KPI.

Each metric is defined with:
- field: canonical SalesRecord field it is read from (None for derived metrics)
- label: column / selector label shown in the dashboard
- formula: short text describing the computation
- rankable: whether it may be used for staff leaderboards
- output_type: scalar | table | series

All metrics are derived ONLY from valid records (see records.is_valid).
"""

METRIC_DEFINITIONS = {
    "total_sales": {
        "name": "total_sales",
        "field": "total_sales",
        "label": "総売上",
        "formula": "sum(total_sales)",
        "rankable": True,
        "output_type": "scalar",
    },
    "nominated_sales": {
        "name": "nominated_sales",
        "field": "nominated_sales",
        "label": "指名売上",
        "formula": "sum(nominated_sales)",
        "rankable": True,
        "output_type": "scalar",
    },
    "free_sales": {
        "name": "free_sales",
        "field": "free_sales",
        "label": "フリー売上",
        "formula": "sum(free_sales)",
        "rankable": True,
        "output_type": "scalar",
    },
    "product_sales": {
        "name": "product_sales",
        "field": "product_sales",
        "label": "商品売上",
        "formula": "sum(product_sales)",
        "rankable": True,
        "output_type": "scalar",
    },
    "total_reward": {
        "name": "total_reward",
        "field": "total_reward",
        "label": "報酬合計",
        "formula": "sum(total_reward)",
        "rankable": True,
        "output_type": "scalar",
    },
    "nominated_count": {
        "name": "nominated_count",
        "field": "nominated_count",
        "label": "指名数",
        "formula": "sum(nominated_count); also used as the customer count",
        "rankable": True,
        "output_type": "scalar",
    },
    "average_ticket": {
        "name": "average_ticket",
        "field": None,
        "label": "客単価",
        "formula": "total_sales / nominated_count, 0 when nominated_count == 0",
        "rankable": True,
        "output_type": "scalar",
    },
    "nomination_rate": {
        "name": "nomination_rate",
        "field": None,
        "label": "指名率",
        "formula": "100 * nominated_sales / total_sales, 0 when total_sales == 0",
        "rankable": False,
        "output_type": "scalar",
    },
    "yoy_rate": {
        "name": "yoy_rate",
        "field": None,
        "label": "前年比",
        "formula": "100 * (current - previous) / previous for the same month of year - 1",
        "rankable": False,
        "output_type": "scalar",
    },
    "mom_rate": {
        "name": "mom_rate",
        "field": None,
        "label": "前月比",
        "formula": "100 * (current - previous) / previous; January compares with December of year - 1",
        "rankable": False,
        "output_type": "scalar",
    },
    "target_achievement": {
        "name": "target_achievement",
        "field": None,
        "label": "目標達成率",
        "formula": "100 * actual / target, 0 when no target is set",
        "rankable": False,
        "output_type": "scalar",
    },
    "monthly_trend": {
        "name": "monthly_trend",
        "field": "total_sales",
        "label": "月次推移",
        "formula": "groupby(store, month).sum(total_sales)",
        "rankable": False,
        "output_type": "series",
    },
}


def get_rankable_metrics() -> list[str]:
    return [name for name, d in METRIC_DEFINITIONS.items() if d["rankable"]]


def get_metric_label(name: str) -> str:
    """Display label, falling back to the metric name itself."""
    defn = METRIC_DEFINITIONS.get(name)
    return defn["label"] if defn else name


def get_field_metrics() -> list[str]:
    """Rankable metrics read straight from a record field (usable with ranking.get_top_n)."""
    return [name for name, d in METRIC_DEFINITIONS.items() if d["rankable"] and d["field"]]
