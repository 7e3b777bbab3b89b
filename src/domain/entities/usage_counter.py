"""
UsageCounter Entity

Per-tenant, per-metric consumption counter.
"""

from datetime import datetime
from typing import Optional

from sqlmodel import Column, DateTime, Field, SQLModel

from src.domain.base import utc_now


class UsageCounter(SQLModel, table=True):
    """
    UsageCounter entity - consumption of one metric by one tenant.

    Business Rules:
    - Created lazily on first increment
    - Increments are checked against the limit and applied via compare-and-swap
      on version, never with locks
    - Periodic metrics are reset by an external scheduler
    """

    __tablename__ = "usage_counters"

    tenant_id: str = Field(primary_key=True, max_length=64)
    metric: str = Field(primary_key=True, max_length=100)

    value: int = Field(default=0)

    period_start: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )
    period_end: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )

    version: int = Field(default=1)
    updated_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(DateTime(timezone=True))
    )
