"""
Use Case: Get Entitlements

Summary of a tenant's plan, effective status and usage, for the tenant's own
view of its subscription.
"""

from datetime import datetime
from typing import Callable

from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import ensure_utc, utc_now
from src.domain.entitlements import SubscriptionView
from src.domain.plan_catalog import CATALOG_VERSION, FEATURES, METRICS, get_plan

from .common import load_view
from .dtos import EntitlementsSummaryResponse, QuotaUsage


def _iso(value):
    value = ensure_utc(value)
    return value.isoformat() if value else None


class GetEntitlementsUseCase:
    def __init__(self, uow: UnitOfWork, clock: Callable[[], datetime] = utc_now):
        self.uow = uow
        self.clock = clock

    async def execute(self, tenant_id: str) -> Result[EntitlementsSummaryResponse]:
        async with self.uow:
            view_result = await load_view(self.uow, tenant_id, self.clock())
            if view_result.is_err():
                return view_result

            counters = await self.uow.usage_counters.list_for_tenant(tenant_id)
            usage = {counter.metric: counter.value for counter in counters}
            # Rendered before the unit of work closes, its rollback expires the rows
            summary = self._summarize(tenant_id, view_result.value, usage)

        return Return.ok(summary)

    @staticmethod
    def _summarize(tenant_id: str, view: SubscriptionView, usage: dict) -> EntitlementsSummaryResponse:
        plan = get_plan(view.plan_tier)
        subscription = view.subscription
        return EntitlementsSummaryResponse(
            tenant_id=tenant_id,
            status=view.status.value,
            plan_tier=plan.tier.value,
            plan_name=plan.display_name,
            catalog_version=CATALOG_VERSION,
            trial_ends_at=_iso(subscription.trial_ends_at),
            grace_period_ends_at=_iso(subscription.grace_period_ends_at),
            features={feature: plan.has_feature(feature) for feature in FEATURES},
            quotas=[
                QuotaUsage(metric=metric, current=usage.get(metric, 0), limit=plan.limit_for(metric))
                for metric in METRICS
            ],
            support_level=plan.support_level,
            audit_retention_days=plan.audit_retention_days,
        )
