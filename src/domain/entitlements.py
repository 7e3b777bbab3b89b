"""
Entitlement Policy

Pure decision functions used by the entitlement use cases. They take the
effective status (see lifecycle.effective_status) and the plan definition and
never touch a store.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from src.domain.base import ensure_utc
from src.domain.entities import OperationKind, PlanTier, Subscription, SubscriptionStatus
from src.domain.lifecycle import effective_status
from src.domain.plan_catalog import UNLIMITED, PlanDefinition, minimum_tier_for_feature


class DenialReason(str, Enum):
    """Machine-readable reason for a denied entitlement check"""

    feature_not_in_plan = "feature_not_in_plan"
    quota_exceeded = "quota_exceeded"
    subscription_suspended = "subscription_suspended"
    subscription_cancelled = "subscription_cancelled"
    grace_period_read_only = "grace_period_read_only"
    access_ended = "access_ended"


@dataclass(frozen=True)
class EntitlementDecision:
    """Allowed or denied, with enough structure to render an upgrade prompt"""

    allowed: bool
    status: SubscriptionStatus
    plan_tier: PlanTier
    reason: Optional[DenialReason] = None
    feature: Optional[str] = None
    required_tier: Optional[PlanTier] = None
    metric: Optional[str] = None
    current: Optional[int] = None
    limit: Optional[int] = None
    requested: Optional[int] = None


@dataclass(frozen=True)
class SubscriptionView:
    """A subscription as seen at a point in time"""

    subscription: Subscription
    status: SubscriptionStatus
    now: datetime

    @classmethod
    def at(cls, subscription: Subscription, now: datetime) -> "SubscriptionView":
        return cls(subscription=subscription, status=effective_status(subscription, now), now=now)

    @property
    def plan_tier(self) -> PlanTier:
        return self.subscription.plan_tier

    @property
    def within_cancellation_grace(self) -> bool:
        grace_ends_at = ensure_utc(self.subscription.grace_period_ends_at)
        return grace_ends_at is not None and ensure_utc(self.now) < grace_ends_at


_READ_ONLY = (OperationKind.read,)
_NO_CREATE = (OperationKind.read, OperationKind.sensitive_read, OperationKind.write)


def access_denial(view: SubscriptionView, operation: OperationKind) -> Optional[DenialReason]:
    """
    Status gating.

    - Trialing/Active: everything
    - GracePeriod: full read and writes, no new resources
    - Suspended: plain reads only
    - Cancelled: plain reads until the grace end, nothing afterwards
    """
    status = view.status
    if status in (SubscriptionStatus.trialing, SubscriptionStatus.active):
        return None
    if status == SubscriptionStatus.grace_period:
        return None if operation in _NO_CREATE else DenialReason.grace_period_read_only
    if status == SubscriptionStatus.suspended:
        return None if operation in _READ_ONLY else DenialReason.subscription_suspended
    if not view.within_cancellation_grace:
        return DenialReason.access_ended
    return None if operation in _READ_ONLY else DenialReason.subscription_cancelled


def check_access(view: SubscriptionView, operation: OperationKind) -> EntitlementDecision:
    reason = access_denial(view, operation)
    return EntitlementDecision(
        allowed=reason is None,
        status=view.status,
        plan_tier=view.plan_tier,
        reason=reason,
    )


def check_feature(view: SubscriptionView, plan: PlanDefinition, feature: str) -> EntitlementDecision:
    """Feature use counts as a write; the plan's flag decides the rest"""
    reason = access_denial(view, OperationKind.write)
    if reason is None and not plan.has_feature(feature):
        reason = DenialReason.feature_not_in_plan

    return EntitlementDecision(
        allowed=reason is None,
        status=view.status,
        plan_tier=view.plan_tier,
        reason=reason,
        feature=feature,
        required_tier=(
            minimum_tier_for_feature(feature)
            if reason == DenialReason.feature_not_in_plan
            else None
        ),
    )


def check_quota(
    view: SubscriptionView,
    plan: PlanDefinition,
    metric: str,
    current: int,
    requested_delta: int,
) -> EntitlementDecision:
    """Allowed iff current + requested_delta <= limit, or the limit is unlimited"""
    limit = plan.limit_for(metric)
    operation = OperationKind.create if requested_delta > 0 else OperationKind.write
    reason = access_denial(view, operation)
    if reason is None and limit != UNLIMITED and current + requested_delta > limit:
        reason = DenialReason.quota_exceeded

    return EntitlementDecision(
        allowed=reason is None,
        status=view.status,
        plan_tier=view.plan_tier,
        reason=reason,
        metric=metric,
        current=current,
        limit=limit,
        requested=requested_delta,
    )
