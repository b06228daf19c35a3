"""
BizData Backend - Pydantic Models
Snapshot types plus all request/response schemas
"""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class DataCapabilities(BaseModel):
    model_config = ConfigDict(frozen=True)

    has_financial_data: bool
    has_time_data: bool


class RevenuePoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str
    amount: float


class EntityTotal(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    value: float


class MonthlyGrowth(BaseModel):
    model_config = ConfigDict(frozen=True)

    month: str  # ISO "YYYY-MM"
    revenue: float
    growth: Optional[float] = None  # None for the first month or a non-positive prior month


class HeatmapData(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: list[str]  # hour labels
    y: list[str]  # weekday names, Monday first
    z: list[list[float]]


class BusinessStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_revenue: float
    average_transaction: float
    customer_count: int
    revenue_by_date: list[RevenuePoint]
    top_entities: list[EntityTotal]
    monthly_growth: list[MonthlyGrowth]
    heatmap: HeatmapData


class BusinessData(BaseModel):
    """A dataset together with the snapshot derived from it"""
    headers: list[str]
    rows: list[dict[str, Any]]
    stats: BusinessStats
    capabilities: DataCapabilities


class DashboardViews(BaseModel):
    heatmap: bool
    monthly_growth: bool
    revenue_trend: bool
    top_entities: bool


class DatasetResponse(BaseModel):
    dataset_id: str
    filename: str
    headers: list[str]
    row_count: int
    capabilities: DataCapabilities
    stats: BusinessStats
    latest_growth: Optional[float] = None
    views: DashboardViews
    cleaning_actions: list[str] = Field(default_factory=list)


class IngestRequest(BaseModel):
    filename: str = "records.json"
    rows: list[dict[str, Any]]


class RowsResponse(BaseModel):
    data: list[dict[str, Any]]
    headers: list[str]
    total_rows: int
    limit: int


class ChatMessage(BaseModel):
    role: str  # "user" or "assistant"
    content: str


class ChatRequest(BaseModel):
    dataset_id: str
    message: str


class ChatResponse(BaseModel):
    reply: str
    messages: list[ChatMessage]
