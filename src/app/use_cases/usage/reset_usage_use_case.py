"""
Use Case: Reset Usage

Zeroes a counter at the start of a new period. Called by the external period
scheduler through the admin API.
"""

import logging
from datetime import datetime
from typing import Optional

from libs.result import Error, Result, Return
from src.app.services.retry import RetryPolicy
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.usage_counters import UsageCounterService
from src.domain.base import ensure_utc
from src.domain.plan_catalog import is_known_metric

from .dtos import ResetUsageResponse

logger = logging.getLogger(__name__)


class ResetUsageUseCase:
    """
    Reset a usage counter.

    Errors:
        - UNKNOWN_METRIC: Metric is not in the catalog
        - INVALID_PERIOD: period_end not after period_start
        - RETRY_EXHAUSTED: Counter contention outlasted the retry budget
    """

    def __init__(self, uow: UnitOfWork, retry_policy: RetryPolicy = RetryPolicy()):
        self.uow = uow
        self.retry_policy = retry_policy

    async def execute(
        self,
        tenant_id: str,
        metric: str,
        period_start: Optional[datetime] = None,
        period_end: Optional[datetime] = None,
    ) -> Result[ResetUsageResponse]:
        if not is_known_metric(metric):
            return Return.err(Error("UNKNOWN_METRIC", "Metric is not defined", reason=metric))

        period_start = ensure_utc(period_start)
        period_end = ensure_utc(period_end)
        if period_start and period_end and period_end <= period_start:
            return Return.err(Error("INVALID_PERIOD", "period_end must be after period_start"))

        async with self.uow:
            result = await UsageCounterService(self.uow, self.retry_policy).reset(
                tenant_id, metric, period_start, period_end
            )

        if result.is_err():
            return result

        logger.info(f"Reset usage counter {tenant_id}/{metric}")
        return Return.ok(
            ResetUsageResponse(
                tenant_id=tenant_id,
                metric=metric,
                value=0,
                version=result.value,
                period_start=period_start.isoformat() if period_start else None,
                period_end=period_end.isoformat() if period_end else None,
            )
        )
