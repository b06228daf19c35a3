"""
BizData Backend - Intelligence Module
Column role detection, capability gating, and tolerant value parsing
"""

import math
import re
import warnings
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

import numpy as np
import pandas as pd

from models import DataCapabilities

# Only the head of the file is scanned for dates. Date columns whose early
# values are blank are missed on purpose; downstream views rely on this bound.
TIME_SAMPLE_ROWS = 10

_NON_NUMERIC_RE = re.compile(r"[^0-9.\-]+")
_LEADING_NUMBER_RE = re.compile(r"^-?(?:\d+\.?\d*|\.\d+)")
_HAS_DIGIT_RE = re.compile(r"\d")


class ColumnRole:
    REVENUE = "revenue"
    DATE = "date"
    ENTITY = "entity"


@dataclass(frozen=True)
class RoleRule:
    """A case-insensitive header pattern bound to a semantic role."""
    role: str
    pattern: re.Pattern

    def matches(self, header: Any) -> bool:
        return bool(self.pattern.search(str(header)))


def _rule(role: str, expression: str) -> RoleRule:
    return RoleRule(role=role, pattern=re.compile(expression, re.IGNORECASE))


# Order matters: the first rule that matches a header wins.
ROLE_RULES: list[RoleRule] = [
    _rule(ColumnRole.REVENUE, r"revenue|amount|total|price|sales|cost|value"),
    _rule(ColumnRole.DATE, r"date|time|created|period|timestamp"),
    _rule(ColumnRole.ENTITY, r"customer|name|client|user|item|product|description"),
]

FINANCIAL_HEADER_RULE = _rule("financial", r"revenue|amount|total|price|sales|cost|value")
NUMERIC_DATE_HEADER_RULE = _rule("numeric_date", r"date|time|year|month")
ZERO_FILL_HEADER_RULE = _rule("zero_fill", r"revenue|amount|price|cost")


def classify_header(header: Any, rules: Optional[list[RoleRule]] = None) -> Optional[str]:
    """Return the role of the first rule matching this header, if any"""
    for rule in rules if rules is not None else ROLE_RULES:
        if rule.matches(header):
            return rule.role
    return None


def find_column(headers: list[str], role: str, rules: Optional[list[RoleRule]] = None) -> Optional[str]:
    """
    Pick the column for a role: the first header, in header order, that any
    rule for that role matches. Headers are not exclusive to one role, so an
    "Order Date Total" header can serve as both revenue and date column.
    """
    role_rules = [r for r in (rules if rules is not None else ROLE_RULES) if r.role == role]
    for header in headers:
        if any(rule.matches(header) for rule in role_rules):
            return header
    return None


def resolve_columns(headers: list[str], rules: Optional[list[RoleRule]] = None) -> dict[str, Optional[str]]:
    """Map every known role to its selected column (or None)"""
    return {
        role: find_column(headers, role, rules)
        for role in (ColumnRole.REVENUE, ColumnRole.DATE, ColumnRole.ENTITY)
    }


def is_numeric_value(value: Any) -> bool:
    return isinstance(value, (int, float, np.number)) and not isinstance(value, (bool, np.bool_))


def is_blank(value: Any) -> bool:
    """None, empty string, or a NaN left behind by spreadsheet parsing"""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if is_numeric_value(value):
        return math.isnan(float(value))
    return value is pd.NaT


def stringify(value: Any) -> str:
    if is_numeric_value(value) and float(value).is_integer():
        return str(int(value))
    return str(value)


def parse_amount(value: Any) -> Optional[float]:
    """
    Read a money-ish cell: drop everything except digits, '.' and '-', then
    take the leading number ("$1,250.50" -> 1250.5, "12-5" -> 12).
    Returns None when nothing numeric is left.
    """
    if value is None:
        return None
    cleaned = _NON_NUMERIC_RE.sub("", stringify(value))
    match = _LEADING_NUMBER_RE.match(cleaned)
    if not match:
        return None
    number = float(match.group(0))
    return number if math.isfinite(number) else None


def parse_timestamp(value: Any) -> Optional[pd.Timestamp]:
    """
    Generic date parsing. Strings go through pandas/dateutil inference (ISO
    8601 and the usual locale layouts), numbers are epoch milliseconds, and
    datetimes pass straight through. Aware values are shifted to naive UTC.
    """
    if is_blank(value) or isinstance(value, (bool, np.bool_)):
        return None
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            if isinstance(value, (date, pd.Timestamp)):
                parsed = pd.Timestamp(value)
            elif is_numeric_value(value):
                parsed = pd.to_datetime(value, unit="ms", errors="coerce")
            else:
                text = str(value).strip()
                if not _HAS_DIGIT_RE.search(text):
                    return None
                parsed = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None

    if parsed is None or pd.isna(parsed):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.tz_convert("UTC").tz_localize(None)
    return parsed


def _is_date_candidate(header: str, value: Any) -> bool:
    if isinstance(value, (bool, np.bool_)) or is_blank(value):
        return False
    if isinstance(value, (str, date)):
        return True
    if is_numeric_value(value):
        # Bare numbers are only dates under a date-ish header, otherwise a
        # column of large amounts would read as epoch timestamps.
        return value != 0 and NUMERIC_DATE_HEADER_RULE.matches(header)
    return False


def has_financial_data(rows: list[dict], headers: list[str]) -> bool:
    financial_headers = [h for h in headers if FINANCIAL_HEADER_RULE.matches(h)]
    return any(
        row.get(h) is not None and parse_amount(row.get(h)) is not None
        for h in financial_headers
        for row in rows
    )


def has_time_data(rows: list[dict], headers: list[str]) -> bool:
    sample = rows[:TIME_SAMPLE_ROWS]
    return any(
        _is_date_candidate(h, row.get(h)) and parse_timestamp(row.get(h)) is not None
        for h in headers
        for row in sample
    )


def detect_capabilities(rows: list[dict], headers: list[str]) -> DataCapabilities:
    """Decide which analyses the dataset supports from headers and sampled values"""
    if not rows:
        return DataCapabilities(has_financial_data=False, has_time_data=False)
    return DataCapabilities(
        has_financial_data=has_financial_data(rows, headers),
        has_time_data=has_time_data(rows, headers),
    )
