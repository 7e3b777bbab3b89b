"""
Usage Counter operations.

Atomic check-and-increment on top of the counter repository. The limit check and
the increment happen in one compare-and-swap on the counter version, so two
concurrent callers cannot both pass the check and jointly overshoot the limit.

All methods expect an entered UnitOfWork and commit on success.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from libs.result import Error, Result, Return
from src.app.services.retry import RetryPolicy
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import UsageCounter
from src.domain.plan_catalog import UNLIMITED

logger = logging.getLogger(__name__)


class IncrementStatus(str, Enum):
    incremented = "incremented"
    limit_exceeded = "limit_exceeded"


@dataclass(frozen=True)
class IncrementOutcome:
    """incremented: value is the new value; limit_exceeded: value is the current one"""

    status: IncrementStatus
    value: int
    limit: int

    @property
    def incremented(self) -> bool:
        return self.status == IncrementStatus.incremented


def _retry_exhausted(tenant_id: str, metric: str, attempts: int) -> Error:
    return Error(
        "RETRY_EXHAUSTED",
        "Usage counter is under contention, retry later",
        reason=f"{attempts} version conflicts on {tenant_id}/{metric}",
    )


class UsageCounterService:
    def __init__(self, uow: UnitOfWork, retry_policy: RetryPolicy = RetryPolicy()):
        self.uow = uow
        self.retry_policy = retry_policy

    async def _after_conflict(self, attempt: int, tenant_id: str, metric: str) -> None:
        await self.uow.rollback()
        logger.warning(
            f"Usage counter conflict on {tenant_id}/{metric} (attempt {attempt + 1})"
        )
        if attempt + 1 < self.retry_policy.max_attempts:
            await self.retry_policy.backoff(attempt)

    async def try_increment(
        self, tenant_id: str, metric: str, delta: int, limit: int
    ) -> Result[IncrementOutcome]:
        """
        Add delta unless the result would exceed limit (-1 = unlimited).

        Returns:
            Ok(IncrementOutcome) either incremented or limit_exceeded
            Err(RETRY_EXHAUSTED) when every attempt hit a version conflict
        """
        for attempt in range(self.retry_policy.max_attempts):
            counter = await self.uow.usage_counters.get(tenant_id, metric)
            current = counter.value if counter is not None else 0

            if limit != UNLIMITED and current + delta > limit:
                return Return.ok(
                    IncrementOutcome(IncrementStatus.limit_exceeded, current, limit)
                )

            if counter is None:
                written = await self.uow.usage_counters.create(
                    UsageCounter(tenant_id=tenant_id, metric=metric, value=delta, version=1)
                )
            else:
                written = await self.uow.usage_counters.compare_and_swap(
                    tenant_id, metric, counter.version, current + delta
                )

            if written:
                await self.uow.commit()
                return Return.ok(
                    IncrementOutcome(IncrementStatus.incremented, current + delta, limit)
                )

            await self._after_conflict(attempt, tenant_id, metric)

        return Return.err(_retry_exhausted(tenant_id, metric, self.retry_policy.max_attempts))

    async def decrement(self, tenant_id: str, metric: str, delta: int) -> Result[int]:
        """Unconditional decrement, floored at zero. Returns the new value."""
        for attempt in range(self.retry_policy.max_attempts):
            counter = await self.uow.usage_counters.get(tenant_id, metric)
            if counter is None:
                return Return.ok(0)

            new_value = max(0, counter.value - delta)
            if await self.uow.usage_counters.compare_and_swap(
                tenant_id, metric, counter.version, new_value
            ):
                await self.uow.commit()
                return Return.ok(new_value)

            await self._after_conflict(attempt, tenant_id, metric)

        return Return.err(_retry_exhausted(tenant_id, metric, self.retry_policy.max_attempts))

    async def reset(
        self,
        tenant_id: str,
        metric: str,
        period_start: Optional[datetime],
        period_end: Optional[datetime],
    ) -> Result[int]:
        """Zero the counter and start a new period. Returns the new version."""
        for attempt in range(self.retry_policy.max_attempts):
            counter = await self.uow.usage_counters.get(tenant_id, metric)
            if counter is None:
                written = await self.uow.usage_counters.create(
                    UsageCounter(
                        tenant_id=tenant_id,
                        metric=metric,
                        value=0,
                        period_start=period_start,
                        period_end=period_end,
                        version=1,
                    )
                )
                new_version = 1
            else:
                written = await self.uow.usage_counters.compare_and_swap(
                    tenant_id,
                    metric,
                    counter.version,
                    0,
                    period_start=period_start,
                    period_end=period_end,
                    update_period=True,
                )
                new_version = counter.version + 1

            if written:
                await self.uow.commit()
                return Return.ok(new_version)

            await self._after_conflict(attempt, tenant_id, metric)

        return Return.err(_retry_exhausted(tenant_id, metric, self.retry_policy.max_attempts))
