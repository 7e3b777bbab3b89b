"""
Use Case: Check Access

Status gating only, for operations that are not tied to a feature or quota.
"""

from datetime import datetime
from typing import Callable

from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now
from src.domain.entities import OperationKind
from src.domain.entitlements import check_access

from .common import load_view, record_denial
from .dtos import EntitlementDecisionResponse


class CheckAccessUseCase:
    def __init__(self, uow: UnitOfWork, clock: Callable[[], datetime] = utc_now):
        self.uow = uow
        self.clock = clock

    async def execute(
        self, tenant_id: str, operation: OperationKind
    ) -> Result[EntitlementDecisionResponse]:
        now = self.clock()
        async with self.uow:
            view_result = await load_view(self.uow, tenant_id, now)
            if view_result.is_err():
                return view_result

            decision = check_access(view_result.value, operation)
            if not decision.allowed:
                await record_denial(self.uow, tenant_id, decision, f"access:{operation.value}", now)

        return Return.ok(EntitlementDecisionResponse.from_decision(tenant_id, decision))
