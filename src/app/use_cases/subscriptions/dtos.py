"""
Subscription Use Case DTOs
"""

from typing import List, Optional

from pydantic import BaseModel

from src.domain.base import ensure_utc
from src.domain.entities import Subscription, SubscriptionStatus


def _iso(value) -> Optional[str]:
    value = ensure_utc(value)
    return value.isoformat() if value else None


class SubscriptionResponse(BaseModel):
    """Stored subscription record with its effective status"""

    tenant_id: str
    external_reference: str
    plan_tier: str
    status: str
    stored_status: str
    quantity: int
    trial_ends_at: Optional[str] = None
    grace_period_ends_at: Optional[str] = None
    version: int
    last_event_id: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_subscription(
        cls, subscription: Subscription, effective: SubscriptionStatus
    ) -> "SubscriptionResponse":
        return cls(
            tenant_id=subscription.tenant_id,
            external_reference=subscription.external_reference,
            plan_tier=subscription.plan_tier.value,
            status=effective.value,
            stored_status=subscription.status.value,
            quantity=subscription.quantity,
            trial_ends_at=_iso(subscription.trial_ends_at),
            grace_period_ends_at=_iso(subscription.grace_period_ends_at),
            version=subscription.version,
            last_event_id=subscription.last_event_id,
            updated_at=_iso(subscription.updated_at),
        )


class SweptSubscription(BaseModel):
    tenant_id: str
    previous_status: str
    status: str
    version: int


class SweepExpiredSubscriptionsResponse(BaseModel):
    """Response for sweep expired subscriptions use case"""

    examined: int
    updated: List[SweptSubscription]
    skipped_conflicts: int
