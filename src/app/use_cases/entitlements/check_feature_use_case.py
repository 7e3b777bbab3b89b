"""
Use Case: Check Feature

Decides whether a tenant's plan and current status allow a feature.
"""

from datetime import datetime
from typing import Callable

from libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now
from src.domain.entitlements import check_feature
from src.domain.plan_catalog import get_plan, is_known_feature

from .common import load_view, record_denial
from .dtos import EntitlementDecisionResponse


class CheckFeatureUseCase:
    """
    Check a feature flag for a tenant.

    Business Logic:
    1. Validate the feature name against the catalog
    2. Load the subscription and derive its effective status
    3. Gate on status (feature use counts as a write)
    4. Consult the plan's feature flag
    5. On denial emit an entitlement_denied audit event

    Errors:
        - UNKNOWN_FEATURE: Feature is not in the catalog
        - SUBSCRIPTION_NOT_FOUND: Tenant has no subscription
    """

    def __init__(self, uow: UnitOfWork, clock: Callable[[], datetime] = utc_now):
        self.uow = uow
        self.clock = clock

    async def execute(self, tenant_id: str, feature: str) -> Result[EntitlementDecisionResponse]:
        if not is_known_feature(feature):
            return Return.err(Error("UNKNOWN_FEATURE", "Feature is not defined", reason=feature))

        now = self.clock()
        async with self.uow:
            view_result = await load_view(self.uow, tenant_id, now)
            if view_result.is_err():
                return view_result

            view = view_result.value
            decision = check_feature(view, get_plan(view.plan_tier), feature)
            if not decision.allowed:
                await record_denial(self.uow, tenant_id, decision, f"feature:{feature}", now)

        return Return.ok(EntitlementDecisionResponse.from_decision(tenant_id, decision))
