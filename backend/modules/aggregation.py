"""
BizData Backend - Aggregation Module
Single-pass revenue statistics, entity ranking, time-of-sale heatmap, and growth
"""

from typing import Optional

import numpy as np

from models import (
    BusinessData,
    BusinessStats,
    DataCapabilities,
    EntityTotal,
    HeatmapData,
    MonthlyGrowth,
    RevenuePoint,
)

from .intelligence import (
    ColumnRole,
    detect_capabilities,
    is_blank,
    parse_amount,
    parse_timestamp,
    resolve_columns,
    stringify,
)

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
HOUR_LABELS = [f"{hour}:00" for hour in range(24)]
TOP_ENTITY_LIMIT = 5


def rank_top_entities(entity_totals: dict[str, float], limit: int = TOP_ENTITY_LIMIT) -> list[EntityTotal]:
    """Highest totals first; equal totals keep the order they were first seen in"""
    ranked = sorted(entity_totals.items(), key=lambda item: item[1], reverse=True)
    return [EntityTotal(name=name, value=value) for name, value in ranked[:limit]]


def compute_monthly_growth(month_totals: dict[str, float], capabilities: DataCapabilities) -> list[MonthlyGrowth]:
    """
    Month-over-month percentage growth over "YYYY-MM" keys.
    Needs both time and financial data; otherwise there is no trend to report.
    The first month has no baseline, and a zero or negative prior month makes
    the percentage undefined, so both yield growth=None.
    """
    if not (capabilities.has_time_data and capabilities.has_financial_data):
        return []

    months = sorted(month_totals)
    growth_series = []
    for index, month in enumerate(months):
        revenue = month_totals[month]
        growth = None
        if index > 0:
            previous = month_totals[months[index - 1]]
            if previous > 0:
                growth = (revenue - previous) / previous * 100
        growth_series.append(MonthlyGrowth(month=month, revenue=revenue, growth=growth))
    return growth_series


def latest_growth(monthly_growth: list[MonthlyGrowth]) -> Optional[float]:
    """Growth of the most recent month vs the one before it"""
    if not monthly_growth:
        return None
    return monthly_growth[-1].growth


def calculate_stats(rows: list[dict], headers: list[str], capabilities: DataCapabilities) -> BusinessStats:
    """Compute the full statistics snapshot in one pass over the rows"""
    columns = resolve_columns(headers)
    revenue_col = columns[ColumnRole.REVENUE]
    date_col = columns[ColumnRole.DATE]
    entity_col = columns[ColumnRole.ENTITY]

    use_revenue = capabilities.has_financial_data and revenue_col is not None
    use_dates = capabilities.has_time_data and date_col is not None

    total_revenue = 0.0
    label_totals: dict[str, float] = {}
    month_totals: dict[str, float] = {}
    entity_totals: dict[str, float] = {}
    entities: set[str] = set()
    heat = np.zeros((len(WEEKDAYS), len(HOUR_LABELS)))

    for row in rows:
        revenue = 0.0
        if use_revenue:
            parsed = parse_amount(row.get(revenue_col))
            if parsed is not None:
                revenue = parsed
        total_revenue += revenue

        if entity_col is not None and not is_blank(row.get(entity_col)):
            entity = stringify(row[entity_col])
            entities.add(entity)
            entity_totals[entity] = entity_totals.get(entity, 0.0) + revenue

        if use_dates and not is_blank(row.get(date_col)):
            stamp = parse_timestamp(row[date_col])
            if stamp is None:
                continue
            label = stamp.strftime("%b %Y")
            label_totals[label] = label_totals.get(label, 0.0) + revenue
            month = stamp.strftime("%Y-%m")
            month_totals[month] = month_totals.get(month, 0.0) + revenue
            heat[stamp.dayofweek, stamp.hour] += revenue

    row_count = len(rows)
    return BusinessStats(
        total_revenue=total_revenue,
        average_transaction=total_revenue / row_count if row_count > 0 else 0.0,
        customer_count=len(entities) if entities else row_count,
        revenue_by_date=[RevenuePoint(date=label, amount=amount) for label, amount in label_totals.items()],
        top_entities=rank_top_entities(entity_totals),
        monthly_growth=compute_monthly_growth(month_totals, capabilities),
        heatmap=HeatmapData(x=list(HOUR_LABELS), y=list(WEEKDAYS), z=heat.tolist()),
    )


def build_business_data(rows: list[dict], headers: list[str], capabilities: DataCapabilities) -> BusinessData:
    return BusinessData(
        headers=headers,
        rows=rows,
        stats=calculate_stats(rows, headers, capabilities),
        capabilities=capabilities,
    )


def process_raw_data(rows: list[dict]) -> BusinessData:
    """
    Entry point for freshly ingested records. Headers come from the first
    record; every record is assumed to share them. No rows gives the empty
    snapshot: zero totals, no series, and an all-zero heatmap.
    """
    headers = list(rows[0].keys()) if rows else []
    capabilities = detect_capabilities(rows, headers)
    return build_business_data(rows, headers, capabilities)
