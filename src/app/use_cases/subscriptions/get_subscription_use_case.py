"""
Use Case: Get Subscription

Returns the tenant's stored subscription together with its effective status.
"""

from datetime import datetime
from typing import Callable

from libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now
from src.domain.lifecycle import effective_status

from .dtos import SubscriptionResponse


class GetSubscriptionUseCase:
    def __init__(self, uow: UnitOfWork, clock: Callable[[], datetime] = utc_now):
        self.uow = uow
        self.clock = clock

    async def execute(self, tenant_id: str) -> Result[SubscriptionResponse]:
        async with self.uow:
            subscription = await self.uow.subscriptions.get_by_tenant(tenant_id)
            if subscription is None:
                return Return.err(
                    Error("SUBSCRIPTION_NOT_FOUND", "Tenant has no subscription", reason=tenant_id)
                )

            # Rendered before the unit of work closes, its rollback expires the row
            response = SubscriptionResponse.from_subscription(
                subscription, effective_status(subscription, self.clock())
            )

        return Return.ok(response)
