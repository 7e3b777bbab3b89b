"""
Webhook Use Case DTOs

Response classes for lifecycle event ingestion and dedup maintenance.
"""

from typing import List, Optional

from pydantic import BaseModel

APPLIED = "applied"
DUPLICATE_IGNORED = "duplicate_ignored"


class IngestLifecycleEventResponse(BaseModel):
    """Response for ingest lifecycle event use case"""

    outcome: str
    event_id: str
    subscription_reference: str
    tenant_id: Optional[str] = None
    transitioned: bool = False
    previous_status: Optional[str] = None
    status: Optional[str] = None
    plan_tier: Optional[str] = None
    version: Optional[int] = None
    effects: List[str] = []


class PurgeProcessedEventsResponse(BaseModel):
    """Response for purge processed events use case"""

    purged: int
    cutoff: str
