"""
Entitlement Use Case DTOs (Data Transfer Objects)

Decisions are rendered as plain dicts-of-strings so routes can return them
as-is and guards can embed them in error details.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel

from src.domain.entitlements import EntitlementDecision


# ============================================================================
# Response DTOs
# ============================================================================


class EntitlementDecisionResponse(BaseModel):
    """Allowed or denied, with the data needed for an upgrade prompt"""

    tenant_id: str
    allowed: bool
    status: str
    plan_tier: str
    reason: Optional[str] = None
    feature: Optional[str] = None
    required_tier: Optional[str] = None
    metric: Optional[str] = None
    current: Optional[int] = None
    limit: Optional[int] = None
    requested: Optional[int] = None

    @classmethod
    def from_decision(cls, tenant_id: str, decision: EntitlementDecision) -> "EntitlementDecisionResponse":
        return cls(
            tenant_id=tenant_id,
            allowed=decision.allowed,
            status=decision.status.value,
            plan_tier=decision.plan_tier.value,
            reason=decision.reason.value if decision.reason else None,
            feature=decision.feature,
            required_tier=decision.required_tier.value if decision.required_tier else None,
            metric=decision.metric,
            current=decision.current,
            limit=decision.limit,
            requested=decision.requested,
        )


class QuotaUsage(BaseModel):
    """Current usage of one metric against its plan limit (-1 = unlimited)"""

    metric: str
    current: int
    limit: int


class EntitlementsSummaryResponse(BaseModel):
    """Everything a tenant is entitled to right now"""

    tenant_id: str
    status: str
    plan_tier: str
    plan_name: str
    catalog_version: int
    trial_ends_at: Optional[str] = None
    grace_period_ends_at: Optional[str] = None
    features: Dict[str, bool]
    quotas: List[QuotaUsage]
    support_level: str
    audit_retention_days: int
