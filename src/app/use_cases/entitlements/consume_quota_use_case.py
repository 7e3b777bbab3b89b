"""
Use Case: Consume Quota

Request-path check-and-increment: status gating, plan limit lookup and the
atomic counter increment in one call, so the limit check cannot race with the
increment.
"""

from datetime import datetime
from typing import Callable

from libs.result import Error, Result, Return
from src.app.services.retry import RetryPolicy
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.usage_counters import UsageCounterService
from src.domain.base import utc_now
from src.domain.entitlements import DenialReason, EntitlementDecision, check_quota
from src.domain.plan_catalog import get_plan, is_known_metric

from .common import load_view, record_denial
from .dtos import EntitlementDecisionResponse


class ConsumeQuotaUseCase:
    """
    Consume delta units of a metric if the tenant is entitled to them.

    Business Logic:
    1. Validate metric and delta
    2. Load the subscription and gate on effective status
    3. TryIncrement against the plan limit (atomic CAS on the counter)
    4. LimitExceeded becomes a quota_exceeded denial with the observed value
    5. On denial emit an entitlement_denied audit event

    Errors:
        - UNKNOWN_METRIC: Metric is not in the catalog
        - INVALID_DELTA: Delta below 1
        - SUBSCRIPTION_NOT_FOUND: Tenant has no subscription
        - RETRY_EXHAUSTED: Counter contention outlasted the retry budget
    """

    def __init__(
        self,
        uow: UnitOfWork,
        retry_policy: RetryPolicy = RetryPolicy(),
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow = uow
        self.retry_policy = retry_policy
        self.clock = clock

    async def execute(
        self, tenant_id: str, metric: str, delta: int = 1
    ) -> Result[EntitlementDecisionResponse]:
        if not is_known_metric(metric):
            return Return.err(Error("UNKNOWN_METRIC", "Metric is not defined", reason=metric))
        if delta < 1:
            return Return.err(Error("INVALID_DELTA", "Delta must be at least 1"))

        now = self.clock()
        async with self.uow:
            view_result = await load_view(self.uow, tenant_id, now)
            if view_result.is_err():
                return view_result

            view = view_result.value
            # Captured up front, a conflict rollback expires the loaded row
            status, plan_tier = view.status, view.plan_tier
            plan = get_plan(plan_tier)
            limit = plan.limit_for(metric)

            # Status gate first, the counter is never touched for a gated tenant
            gate = check_quota(view, plan, metric, 0, delta)
            if not gate.allowed and gate.reason != DenialReason.quota_exceeded:
                await record_denial(self.uow, tenant_id, gate, f"consume:{metric}", now)
                return Return.ok(EntitlementDecisionResponse.from_decision(tenant_id, gate))

            service = UsageCounterService(self.uow, self.retry_policy)
            increment_result = await service.try_increment(tenant_id, metric, delta, limit)
            if increment_result.is_err():
                return increment_result

            outcome = increment_result.value
            decision = EntitlementDecision(
                allowed=outcome.incremented,
                status=status,
                plan_tier=plan_tier,
                reason=None if outcome.incremented else DenialReason.quota_exceeded,
                metric=metric,
                current=outcome.value,
                limit=limit,
                requested=delta,
            )
            if not decision.allowed:
                await record_denial(self.uow, tenant_id, decision, f"consume:{metric}", now)

        return Return.ok(EntitlementDecisionResponse.from_decision(tenant_id, decision))
