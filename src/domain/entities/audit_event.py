"""
AuditEvent Entity

Outbox of audit events emitted by the service.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel

from src.domain.base import utc_now


class AuditEvent(SQLModel, table=True):
    """
    AuditEvent entity - one row per applied lifecycle transition or
    entitlement denial.

    Business Rules:
    - Immutable (never updated or deleted by this service)
    - Written in the same transaction as the change it describes
    - Consumed by the external audit-log collaborator, never queried here
    """

    __tablename__ = "audit_events"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    tenant_id: Optional[str] = Field(default=None, max_length=64, index=True)
    action: str = Field(max_length=100)  # e.g., "subscription_transition"

    event_id: Optional[str] = Field(default=None, max_length=255)
    old_status: Optional[str] = Field(default=None, max_length=32)
    new_status: Optional[str] = Field(default=None, max_length=32)
    event_metadata: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    # Timestamps
    created_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(DateTime(timezone=True))
    )

    __table_args__ = (
        Index("idx_audit_created_at", "created_at"),
        Index("idx_audit_tenant_action", "tenant_id", "action"),
    )
