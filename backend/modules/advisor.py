"""
BizData Backend - Advisor Module
Textual data summary and the LLM business-consultant call
"""

import logging
import os
from typing import Any, Optional

from openai import OpenAI

from models import BusinessData, HeatmapData, MonthlyGrowth

logger = logging.getLogger(__name__)

# Client initialized lazily to avoid import-time side effects
_client: Optional[OpenAI] = None

ADVISOR_MODEL = os.getenv("ADVISOR_MODEL", "gpt-4o-mini")
ADVISOR_TEMPERATURE = 0.7
ADVISOR_TOP_P = 0.95
ADVISOR_WORD_LIMIT = 180

GREETING = (
    "Hello! I'm your Business Consultant. I've analyzed your data and noticed some "
    "interesting trends. How can I help you grow your business today?"
)
EMPTY_REPLY = (
    "I've analyzed your data but couldn't generate a specific insight. "
    "Try asking me about your best-performing months or weekend sales!"
)
FALLBACK_REPLY = (
    "I'm sorry, I encountered an issue processing that. Could you try rephrasing or "
    "asking something else about your revenue or customers?"
)


class AdvisorError(Exception):
    """The advisory call could not produce an answer"""


def get_openai_client() -> OpenAI:
    global _client
    if _client is None:
        _client = OpenAI(api_key=os.getenv("OPENAI_API_KEY"))
    return _client


def weekend_vs_weekday(heatmap: HeatmapData) -> tuple[float, float]:
    """Average revenue per weekday (Mon-Fri rows) and per weekend day (Sat-Sun rows)"""
    weekday_total = sum(sum(day) for day in heatmap.z[:5])
    weekend_total = sum(sum(day) for day in heatmap.z[5:7])
    return weekday_total / 5, weekend_total / 2


def highest_growth_month(monthly_growth: list[MonthlyGrowth]) -> Optional[MonthlyGrowth]:
    # Missing growth ranks as 0; the earliest month wins a tie.
    if not monthly_growth:
        return None
    return max(monthly_growth, key=lambda m: m.growth or 0)


def _describe_growth(entry: Optional[MonthlyGrowth]) -> str:
    if entry is None:
        return "Insufficient data"
    growth = f"{entry.growth:.1f}%" if entry.growth is not None else "n/a"
    return f"{entry.month} (Growth: {growth})"


def build_data_summary(data: BusinessData) -> dict[str, Any]:
    stats = data.stats
    avg_weekday, avg_weekend = weekend_vs_weekday(stats.heatmap)
    if avg_weekend > avg_weekday:
        weekly = (
            f"Weekends are more profitable on average (${avg_weekend:.2f}/day) "
            f"than weekdays (${avg_weekday:.2f}/day)."
        )
    else:
        weekly = (
            f"Weekdays perform better on average (${avg_weekday:.2f}/day) "
            f"than weekends (${avg_weekend:.2f}/day)."
        )

    return {
        "total_revenue": stats.total_revenue,
        "customer_count": stats.customer_count,
        "avg_transaction": stats.average_transaction,
        "top_segments": ", ".join(f"{e.name} (${e.value:.2f})" for e in stats.top_entities),
        "column_headers": ", ".join(data.headers),
        "record_count": len(data.rows),
        "revenue_trend": "; ".join(f"{p.date}: ${p.amount:.2f}" for p in stats.revenue_by_date),
        "highest_growth_month": _describe_growth(highest_growth_month(stats.monthly_growth)),
        "weekend_vs_weekday": weekly,
        "has_negative_growth": any(
            m.growth is not None and m.growth < 0 for m in stats.monthly_growth
        ),
    }


def build_system_prompt(summary: dict[str, Any]) -> str:
    return f"""You are a world-class Business Consultant for small business owners.
Your tone should be helpful, encouraging, and non-technical. Use simple business terms.

KEY BUSINESS DATA:
- Total Sales: ${summary['total_revenue']:.2f}
- Records: {summary['record_count']} rows of {summary['column_headers']}
- Highest Growth Period: {summary['highest_growth_month']}
- Weekly Patterns: {summary['weekend_vs_weekday']}
- Top Performance: {summary['top_segments']}
- Monthly Performance List: {summary['revenue_trend']}

YOUR SPECIFIC TASKS:
1. Tell the owner which specific month had the highest growth and explain if weekends are outperforming weekdays based on the data.
2. If you see any negative growth in the data (Negative Growth Detected: {summary['has_negative_growth']}), suggest a basic marketing "sale" or "bundle" strategy for the upcoming month to counter historical slow periods.
3. Keep advice actionable and non-technical. Reference specific numbers from the data provided.
4. Keep responses under {ADVISOR_WORD_LIMIT} words.
5. If the user asks non-business questions, refocus them on their sales trends and growth opportunities."""


def ask_advisor(question: str, data: BusinessData) -> str:
    """
    Ask the consultant model one question about the dataset.
    Raises AdvisorError when the key is missing or the call fails.
    """
    if not os.getenv("OPENAI_API_KEY"):
        raise AdvisorError("OpenAI API key not configured.")

    system_prompt = build_system_prompt(build_data_summary(data))
    try:
        response = get_openai_client().chat.completions.create(
            model=ADVISOR_MODEL,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": question},
            ],
            temperature=ADVISOR_TEMPERATURE,
            top_p=ADVISOR_TOP_P,
        )
    except Exception as e:
        raise AdvisorError(f"Advisor request failed: {e}") from e

    content = response.choices[0].message.content if response.choices else None
    return content.strip() if content and content.strip() else EMPTY_REPLY
