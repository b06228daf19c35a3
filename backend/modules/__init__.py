"""
BizData Backend Modules
"""

from .intelligence import (
    ColumnRole,
    RoleRule,
    ROLE_RULES,
    classify_header,
    find_column,
    resolve_columns,
    parse_amount,
    parse_timestamp,
    detect_capabilities,
)

from .aggregation import (
    calculate_stats,
    compute_monthly_growth,
    latest_growth,
    rank_top_entities,
    build_business_data,
    process_raw_data,
)

from .data_janitor import (
    clean_data,
)

from .advisor import (
    AdvisorError,
    GREETING,
    FALLBACK_REPLY,
    ask_advisor,
    build_data_summary,
)

__all__ = [
    # Intelligence
    'ColumnRole',
    'RoleRule',
    'ROLE_RULES',
    'classify_header',
    'find_column',
    'resolve_columns',
    'parse_amount',
    'parse_timestamp',
    'detect_capabilities',
    # Aggregation
    'calculate_stats',
    'compute_monthly_growth',
    'latest_growth',
    'rank_top_entities',
    'build_business_data',
    'process_raw_data',
    # Data Janitor
    'clean_data',
    # Advisor
    'AdvisorError',
    'GREETING',
    'FALLBACK_REPLY',
    'ask_advisor',
    'build_data_summary',
]
