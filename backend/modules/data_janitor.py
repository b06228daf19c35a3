"""
BizData Backend - Data Janitor Module
Derived calendar features, date canonicalization, trimming, and imputation
"""

import logging
from time import perf_counter
from typing import Any

from models import BusinessData

from .aggregation import build_business_data
from .intelligence import (
    ColumnRole,
    ZERO_FILL_HEADER_RULE,
    find_column,
    is_blank,
    is_numeric_value,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

TIME_FEATURE_HEADERS = ["Month", "Day_of_Week", "Hour", "Is_Weekend"]
CANONICAL_DATE_FORMAT = "%Y-%m-%d"
UNKNOWN_PLACEHOLDER = "Unknown"


def add_time_features(row: dict[str, Any], date_col: str) -> bool:
    """
    Rewrite the date cell as YYYY-MM-DD and fill the derived calendar
    columns. Returns False (row untouched) when the date does not parse.
    """
    value = row.get(date_col)
    if is_blank(value):
        return False
    stamp = parse_timestamp(value)
    if stamp is None:
        return False

    row["Month"] = stamp.strftime("%B")
    row["Day_of_Week"] = stamp.strftime("%A")
    row["Hour"] = int(stamp.hour)
    row["Is_Weekend"] = stamp.dayofweek >= 5
    row[date_col] = stamp.strftime(CANONICAL_DATE_FORMAT)
    return True


def impute_value(header: str, value: Any) -> Any:
    """0 for blank money columns and numeric NaNs, 'Unknown' for any other blank"""
    if is_numeric_value(value) or ZERO_FILL_HEADER_RULE.matches(header):
        return 0
    return UNKNOWN_PLACEHOLDER


def clean_data(data: BusinessData) -> tuple[BusinessData, list[str]]:
    """
    Produce a normalized copy of the dataset and its refreshed snapshot.
    Returns: (cleaned_data, cleaning_actions)

    Capabilities are carried over from the original dataset rather than
    re-detected, so the cleaned snapshot gates exactly like the original.
    """
    start = perf_counter()
    capabilities = data.capabilities
    headers = list(data.headers)
    cleaning_actions: list[str] = []

    date_col = find_column(data.headers, ColumnRole.DATE)
    derive_time = capabilities.has_time_data and date_col is not None
    if derive_time:
        added = [h for h in TIME_FEATURE_HEADERS if h not in headers]
        headers.extend(added)
        if added:
            cleaning_actions.append(f"Added time features: {', '.join(added)}")

    standardized = 0
    filled: dict[str, dict[Any, int]] = {}
    trimmed: dict[str, int] = {}
    cleaned_rows = []

    for original in data.rows:
        row = dict(original)

        if derive_time and add_time_features(row, date_col):
            standardized += 1

        for header in data.headers:
            value = row.get(header)
            if isinstance(value, str):
                stripped = value.strip()
                if stripped != value:
                    trimmed[header] = trimmed.get(header, 0) + 1
                value = row[header] = stripped
            if is_blank(value):
                replacement = impute_value(header, value)
                row[header] = replacement
                counts = filled.setdefault(header, {})
                counts[replacement] = counts.get(replacement, 0) + 1

        cleaned_rows.append(row)

    if standardized:
        cleaning_actions.append(f"Standardized {standardized} '{date_col}' values to YYYY-MM-DD")
    for header, counts in filled.items():
        for replacement, count in counts.items():
            shown = replacement if replacement == 0 else f"'{replacement}'"
            cleaning_actions.append(f"Filled {count} missing '{header}' values with {shown}")
    for header, count in trimmed.items():
        cleaning_actions.append(f"Trimmed whitespace in {count} '{header}' values")

    cleaned = build_business_data(cleaned_rows, headers, capabilities)
    logger.info(
        "Cleaned %d rows in %.2fs (%d actions)",
        len(cleaned_rows), perf_counter() - start, len(cleaning_actions),
    )
    return cleaned, cleaning_actions
