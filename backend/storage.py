"""
BizData Backend - Dataset Storage
In-memory dataset sessions with TTL expiration and a per-dataset chat log
"""

import logging
import os
import uuid
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException

from models import BusinessData, ChatMessage

logger = logging.getLogger(__name__)

DATASET_TTL_HOURS = float(os.getenv("DATASET_TTL_HOURS", "1"))
MAX_DATASETS = int(os.getenv("MAX_DATASETS", "10"))


class DatasetInfo:
    """Container for an uploaded dataset, its current snapshot, and chat history"""

    def __init__(
        self,
        data: BusinessData,
        filename: str,
        cleaning_actions: Optional[list[str]] = None,
        greeting: Optional[str] = None,
    ):
        self.id = str(uuid.uuid4())
        self.data = data
        self.filename = filename
        self.cleaning_actions = cleaning_actions or []
        self.messages: list[ChatMessage] = []
        if greeting:
            self.messages.append(ChatMessage(role="assistant", content=greeting))
        self.created_at = datetime.now()
        self.touch()

    def touch(self):
        """Update last accessed time"""
        self.last_accessed = datetime.now()

    def is_expired(self, ttl_hours: float = DATASET_TTL_HOURS) -> bool:
        """Check if dataset has expired"""
        return datetime.now() - self.last_accessed > timedelta(hours=ttl_hours)

    def replace_data(self, data: BusinessData, cleaning_actions: list[str]):
        """Swap in a recomputed dataset; the previous snapshot is discarded"""
        self.data = data
        self.cleaning_actions = cleaning_actions
        self.touch()

    def append_message(self, role: str, content: str) -> ChatMessage:
        message = ChatMessage(role=role, content=content)
        self.messages.append(message)
        return message


# Global dataset storage
DATASETS: dict[str, DatasetInfo] = {}


def cleanup_expired():
    """Remove expired datasets from memory"""
    expired = [k for k, v in DATASETS.items() if v.is_expired()]
    for k in expired:
        del DATASETS[k]
    if expired:
        logger.info("Expired %d dataset(s)", len(expired))


def get_dataset(dataset_id: str) -> DatasetInfo:
    """Retrieve dataset by ID, with expiration check"""
    cleanup_expired()
    if dataset_id not in DATASETS:
        raise HTTPException(status_code=404, detail="Dataset not found or expired. Please re-upload.")
    ds = DATASETS[dataset_id]
    ds.touch()
    return ds


def store_dataset(ds_info: DatasetInfo) -> str:
    """Store dataset and return its ID"""
    cleanup_expired()

    # Evict oldest if at capacity
    if len(DATASETS) >= MAX_DATASETS:
        oldest_id = min(DATASETS.keys(), key=lambda k: DATASETS[k].last_accessed)
        del DATASETS[oldest_id]
        logger.info("Evicted dataset %s (capacity %d)", oldest_id, MAX_DATASETS)

    DATASETS[ds_info.id] = ds_info
    return ds_info.id
