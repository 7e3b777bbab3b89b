"""
Use Case: Decrement Usage

Releases usage when a resource is deleted. Never checked against a limit.
"""

from libs.result import Error, Result, Return
from src.app.services.retry import RetryPolicy
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.usage_counters import UsageCounterService
from src.domain.plan_catalog import is_known_metric

from .dtos import DecrementUsageResponse


class DecrementUsageUseCase:
    def __init__(self, uow: UnitOfWork, retry_policy: RetryPolicy = RetryPolicy()):
        self.uow = uow
        self.retry_policy = retry_policy

    async def execute(self, tenant_id: str, metric: str, delta: int = 1) -> Result[DecrementUsageResponse]:
        if not is_known_metric(metric):
            return Return.err(Error("UNKNOWN_METRIC", "Metric is not defined", reason=metric))
        if delta < 1:
            return Return.err(Error("INVALID_DELTA", "Delta must be at least 1"))

        async with self.uow:
            result = await UsageCounterService(self.uow, self.retry_policy).decrement(
                tenant_id, metric, delta
            )

        if result.is_err():
            return result
        return Return.ok(DecrementUsageResponse(tenant_id=tenant_id, metric=metric, value=result.value))
