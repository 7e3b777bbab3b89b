"""
Helpers shared by the entitlement use cases.

Every check re-reads the subscription row; there is no process-wide status cache.
"""

import logging
from datetime import datetime

from libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent
from src.domain.entitlements import EntitlementDecision, SubscriptionView

logger = logging.getLogger(__name__)


async def load_view(uow: UnitOfWork, tenant_id: str, now: datetime) -> Result[SubscriptionView]:
    subscription = await uow.subscriptions.get_by_tenant(tenant_id)
    if subscription is None:
        return Return.err(
            Error("SUBSCRIPTION_NOT_FOUND", "Tenant has no subscription", reason=tenant_id)
        )
    return Return.ok(SubscriptionView.at(subscription, now))


async def record_denial(
    uow: UnitOfWork, tenant_id: str, decision: EntitlementDecision, check: str, now: datetime
) -> None:
    """Emit the entitlement_denied audit event and commit it"""
    logger.info(
        f"Entitlement denied for tenant {tenant_id}: {check} "
        f"({decision.reason.value}, status {decision.status.value})"
    )
    await uow.audit_events.create(
        AuditEvent(
            tenant_id=tenant_id,
            action="entitlement_denied",
            old_status=decision.status.value,
            new_status=decision.status.value,
            event_metadata={
                "check": check,
                "reason": decision.reason.value,
                "plan_tier": decision.plan_tier.value,
                "feature": decision.feature,
                "required_tier": decision.required_tier.value if decision.required_tier else None,
                "metric": decision.metric,
                "current": decision.current,
                "limit": decision.limit,
                "requested": decision.requested,
            },
            created_at=now,
        )
    )
    await uow.commit()
