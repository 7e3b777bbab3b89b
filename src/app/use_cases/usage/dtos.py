"""
Usage Use Case DTOs
"""

from typing import Optional

from pydantic import BaseModel


class IncrementUsageResponse(BaseModel):
    """Response for try increment use case"""

    tenant_id: str
    metric: str
    incremented: bool
    value: int
    limit: int


class DecrementUsageResponse(BaseModel):
    """Response for decrement use case"""

    tenant_id: str
    metric: str
    value: int


class ResetUsageResponse(BaseModel):
    """Response for reset use case"""

    tenant_id: str
    metric: str
    value: int
    version: int
    period_start: Optional[str] = None
    period_end: Optional[str] = None
