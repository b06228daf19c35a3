"""
BizData Backend - Business Insights API
Spreadsheet ingestion, capability-gated statistics, auto-clean, and advisory chat
"""

import io
import logging
import os
from pathlib import Path
from time import perf_counter
from typing import BinaryIO, TextIO

import pandas as pd
from dotenv import load_dotenv
from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

# Environment must be loaded before modules read their settings
load_dotenv()

# Import models
from models import (
    BusinessStats, ChatRequest, ChatResponse, DashboardViews, DataCapabilities,
    DatasetResponse, IngestRequest, RowsResponse,
)

# Import storage
from storage import DATASETS, DatasetInfo, cleanup_expired, get_dataset, store_dataset

# Import modules
from modules import (
    AdvisorError,
    FALLBACK_REPLY,
    GREETING,
    ask_advisor,
    clean_data,
    latest_growth,
    process_raw_data,
)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="BizData Insights API",
    description="Business spreadsheet statistics and advisory chat",
    version="1.0.0"
)

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:3001,http://127.0.0.1:3001",
    ).split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

CSV_EXTENSIONS = {".csv"}
EXCEL_EXTENSIONS = {".xlsx", ".xls"}
EMPTY_FILE_MESSAGE = "The file appears to be empty."
DEFAULT_ROW_LIMIT = 100
MAX_ROW_LIMIT = 1000


# ============================================================================
# Helper Functions
# ============================================================================

def read_csv_fast(source: str | Path | TextIO | BinaryIO) -> pd.DataFrame:
    """Read CSV using pyarrow when available, with safe fallback."""
    try:
        return pd.read_csv(source, engine="pyarrow")
    except pd.errors.EmptyDataError:
        raise
    except Exception:
        if hasattr(source, "seek"):
            source.seek(0)
        return pd.read_csv(source, low_memory=False)


def read_spreadsheet(filename: str, source: BinaryIO) -> pd.DataFrame:
    """Parse an uploaded CSV or the first sheet of an Excel workbook"""
    ext = Path(filename).suffix.lower()
    if ext in CSV_EXTENSIONS:
        return read_csv_fast(source)
    if ext in EXCEL_EXTENSIONS:
        return pd.read_excel(io.BytesIO(source.read()), sheet_name=0)
    raise HTTPException(status_code=400, detail="Please upload a CSV or Excel file.")


def dataframe_to_records(df: pd.DataFrame) -> list[dict]:
    """Flat records with string keys; missing cells become None"""
    frame = df.copy()
    frame.columns = [str(c) for c in frame.columns]
    frame = frame.astype(object).where(frame.notna(), None)
    return frame.to_dict(orient="records")


def dashboard_views(capabilities: DataCapabilities, stats: BusinessStats) -> DashboardViews:
    """Which dashboard panels have the data they need; the rest get placeholders"""
    timed_revenue = capabilities.has_time_data and capabilities.has_financial_data
    return DashboardViews(
        heatmap=capabilities.has_time_data,
        monthly_growth=timed_revenue and len(stats.monthly_growth) > 0,
        revenue_trend=timed_revenue and len(stats.revenue_by_date) > 0,
        top_entities=len(stats.top_entities) > 0,
    )


def build_dataset_response(ds: DatasetInfo) -> DatasetResponse:
    data = ds.data
    return DatasetResponse(
        dataset_id=ds.id,
        filename=ds.filename,
        headers=data.headers,
        row_count=len(data.rows),
        capabilities=data.capabilities,
        stats=data.stats,
        latest_growth=latest_growth(data.stats.monthly_growth),
        views=dashboard_views(data.capabilities, data.stats),
        cleaning_actions=ds.cleaning_actions,
    )


def ingest_records(filename: str, rows: list[dict]) -> DatasetInfo:
    """Run the statistics pipeline on parsed records and open a session for them"""
    if not rows:
        raise HTTPException(status_code=400, detail=EMPTY_FILE_MESSAGE)

    t0 = perf_counter()
    data = process_raw_data(rows)
    logger.info(
        "Processed %s: %d rows, %d columns, financial=%s, time=%s in %.2fs",
        filename, len(data.rows), len(data.headers),
        data.capabilities.has_financial_data, data.capabilities.has_time_data,
        perf_counter() - t0,
    )

    ds_info = DatasetInfo(data=data, filename=filename, greeting=GREETING)
    store_dataset(ds_info)
    return ds_info


# ============================================================================
# Endpoints
# ============================================================================

@app.get("/")
async def root():
    return {"status": "ok", "version": "1.0.0"}


@app.get("/validate/{dataset_id}")
async def validate_dataset(dataset_id: str):
    """Check if a dataset ID is still valid (exists in memory)"""
    cleanup_expired()
    if dataset_id in DATASETS:
        ds = DATASETS[dataset_id]
        ds.touch()
        return {"valid": True, "filename": ds.filename}
    return {"valid": False}


@app.post("/upload", response_model=DatasetResponse)
async def upload_file(file: UploadFile = File(...)):
    filename = file.filename or ""
    if Path(filename).suffix.lower() not in CSV_EXTENSIONS | EXCEL_EXTENSIONS:
        raise HTTPException(status_code=400, detail="Please upload a CSV or Excel file.")

    try:
        t0 = perf_counter()
        df = read_spreadsheet(filename, file.file)
        rows = dataframe_to_records(df)
        logger.info("Parsed %s in %.2fs", filename, perf_counter() - t0)
        ds_info = ingest_records(filename, rows)
        return build_dataset_response(ds_info)
    except HTTPException:
        raise
    except pd.errors.EmptyDataError:
        raise HTTPException(status_code=400, detail=EMPTY_FILE_MESSAGE)
    except Exception as e:
        logger.exception("Upload of %s failed", filename)
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/ingest", response_model=DatasetResponse)
async def ingest_endpoint(request: IngestRequest):
    """Accept records that were already parsed client-side"""
    ds_info = ingest_records(request.filename, request.rows)
    return build_dataset_response(ds_info)


@app.get("/datasets/{dataset_id}", response_model=DatasetResponse)
async def dataset_endpoint(dataset_id: str):
    return build_dataset_response(get_dataset(dataset_id))


@app.get("/datasets/{dataset_id}/rows", response_model=RowsResponse)
async def rows_endpoint(dataset_id: str, limit: int = DEFAULT_ROW_LIMIT):
    """Raw rows for the table view"""
    ds = get_dataset(dataset_id)
    limit = max(0, min(limit, MAX_ROW_LIMIT))
    return RowsResponse(
        data=ds.data.rows[:limit],
        headers=ds.data.headers,
        total_rows=len(ds.data.rows),
        limit=limit,
    )


@app.post("/clean/{dataset_id}", response_model=DatasetResponse)
async def clean_endpoint(dataset_id: str):
    ds = get_dataset(dataset_id)
    cleaned, actions = clean_data(ds.data)
    ds.replace_data(cleaned, actions)
    return build_dataset_response(ds)


@app.post("/chat", response_model=ChatResponse)
def chat_endpoint(request: ChatRequest):
    message = request.message.strip()
    if not message:
        raise HTTPException(status_code=400, detail="Message is empty.")

    ds = get_dataset(request.dataset_id)
    ds.append_message("user", message)
    try:
        reply = ask_advisor(message, ds.data)
    except AdvisorError as e:
        logger.warning("Advisor unavailable for dataset %s: %s", ds.id, e)
        reply = FALLBACK_REPLY
    ds.append_message("assistant", reply)
    return ChatResponse(reply=reply, messages=ds.messages)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
