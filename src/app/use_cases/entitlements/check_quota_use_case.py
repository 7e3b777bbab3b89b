"""
Use Case: Check Quota

Read-only quota check. Use ConsumeQuotaUseCase when the check must be followed
by an increment, since a separate check and increment can race.
"""

from datetime import datetime
from typing import Callable

from libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now
from src.domain.entitlements import check_quota
from src.domain.plan_catalog import get_plan, is_known_metric

from .common import load_view, record_denial
from .dtos import EntitlementDecisionResponse


class CheckQuotaUseCase:
    """
    Check whether a tenant may add requested_delta units of a metric.

    Business Logic:
    1. Validate metric and delta
    2. Load the subscription and derive its effective status
    3. Gate on status (a positive delta counts as resource creation)
    4. Compare current usage + delta with the plan limit (-1 = unlimited)
    5. On denial emit an entitlement_denied audit event

    Errors:
        - UNKNOWN_METRIC: Metric is not in the catalog
        - INVALID_DELTA: Negative delta
        - SUBSCRIPTION_NOT_FOUND: Tenant has no subscription
    """

    def __init__(self, uow: UnitOfWork, clock: Callable[[], datetime] = utc_now):
        self.uow = uow
        self.clock = clock

    async def execute(
        self, tenant_id: str, metric: str, requested_delta: int = 1
    ) -> Result[EntitlementDecisionResponse]:
        if not is_known_metric(metric):
            return Return.err(Error("UNKNOWN_METRIC", "Metric is not defined", reason=metric))
        if requested_delta < 0:
            return Return.err(Error("INVALID_DELTA", "Requested delta must not be negative"))

        now = self.clock()
        async with self.uow:
            view_result = await load_view(self.uow, tenant_id, now)
            if view_result.is_err():
                return view_result

            view = view_result.value
            counter = await self.uow.usage_counters.get(tenant_id, metric)
            current = counter.value if counter is not None else 0

            decision = check_quota(view, get_plan(view.plan_tier), metric, current, requested_delta)
            if not decision.allowed:
                await record_denial(self.uow, tenant_id, decision, f"quota:{metric}", now)

        return Return.ok(EntitlementDecisionResponse.from_decision(tenant_id, decision))
