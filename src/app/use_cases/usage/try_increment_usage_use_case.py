"""
Use Case: Try Increment Usage

Atomic check-and-increment against a caller-supplied limit.
"""

from libs.result import Error, Result, Return
from src.app.services.retry import RetryPolicy
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.usage_counters import UsageCounterService
from src.domain.plan_catalog import UNLIMITED, is_known_metric

from .dtos import IncrementUsageResponse


class TryIncrementUsageUseCase:
    """
    Increment a usage counter unless it would exceed limit.

    LimitExceeded is a normal outcome (incremented=False, value=current),
    not an error.

    Errors:
        - UNKNOWN_METRIC: Metric is not in the catalog
        - INVALID_DELTA: Delta below 1
        - INVALID_LIMIT: Limit below -1
        - RETRY_EXHAUSTED: Counter contention outlasted the retry budget
    """

    def __init__(self, uow: UnitOfWork, retry_policy: RetryPolicy = RetryPolicy()):
        self.uow = uow
        self.retry_policy = retry_policy

    async def execute(
        self, tenant_id: str, metric: str, delta: int, limit: int
    ) -> Result[IncrementUsageResponse]:
        if not is_known_metric(metric):
            return Return.err(Error("UNKNOWN_METRIC", "Metric is not defined", reason=metric))
        if delta < 1:
            return Return.err(Error("INVALID_DELTA", "Delta must be at least 1"))
        if limit < UNLIMITED:
            return Return.err(Error("INVALID_LIMIT", "Limit must be -1 (unlimited) or non-negative"))

        async with self.uow:
            result = await UsageCounterService(self.uow, self.retry_policy).try_increment(
                tenant_id, metric, delta, limit
            )

        if result.is_err():
            return result

        outcome = result.value
        return Return.ok(
            IncrementUsageResponse(
                tenant_id=tenant_id,
                metric=metric,
                incremented=outcome.incremented,
                value=outcome.value,
                limit=outcome.limit,
            )
        )
