"""
Subscription Entity

The mutable entitlement record for one tenant.
"""

from datetime import datetime
from typing import Optional

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utc_now

from .enums import PlanTier, SubscriptionStatus


class Subscription(SQLModel, table=True):
    """
    Subscription entity - one row per tenant.

    Business Rules:
    - Exactly one subscription per tenant (tenant_id is the primary key)
    - Status changes only through the lifecycle state machine
    - version is the compare-and-swap token: +1 on every committed transition
    - Never hard-deleted, Cancelled rows are kept for audit and reactivation
    """

    __tablename__ = "subscriptions"

    tenant_id: str = Field(primary_key=True, max_length=64)
    external_reference: str = Field(max_length=255, unique=True)

    plan_tier: PlanTier = Field(default=PlanTier.free)
    status: SubscriptionStatus = Field(default=SubscriptionStatus.active)
    quantity: int = Field(default=1)

    trial_ends_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )
    grace_period_ends_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )

    # Optimistic concurrency + idempotency
    version: int = Field(default=1)
    last_event_id: Optional[str] = Field(default=None, max_length=255)

    # Timestamps
    created_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(DateTime(timezone=True))
    )
    updated_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(DateTime(timezone=True))
    )

    __table_args__ = (
        Index("idx_subscription_status", "status"),
        Index("idx_subscription_trial_ends_at", "trial_ends_at"),
        Index("idx_subscription_grace_ends_at", "grace_period_ends_at"),
    )
