"""
ProcessedEvent Entity

Dedup record of a lifecycle event that has been applied.
"""

from datetime import datetime
from typing import Optional

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utc_now

from .enums import LifecycleEventType


class ProcessedEvent(SQLModel, table=True):
    """
    ProcessedEvent entity - dedup table for webhook ingestion.

    Business Rules:
    - (subscription_reference, event_id) is the primary key, so inserting an
      already-recorded event fails atomically
    - Rows only live for the dedup window, then get purged
    """

    __tablename__ = "processed_lifecycle_events"

    subscription_reference: str = Field(primary_key=True, max_length=255)
    event_id: str = Field(primary_key=True, max_length=255)

    tenant_id: Optional[str] = Field(default=None, max_length=64)
    event_type: LifecycleEventType
    payload_hash: str = Field(max_length=64)

    processed_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(DateTime(timezone=True))
    )

    __table_args__ = (Index("idx_processed_event_processed_at", "processed_at"),)
