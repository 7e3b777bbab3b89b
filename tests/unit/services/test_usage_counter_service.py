"""
Unit tests for UsageCounterService
Runs against the in-memory store so concurrent callers really interleave
between their read and their compare-and-swap.
"""

import asyncio
from datetime import timedelta

import pytest

from src.app.services.retry import RetryPolicy
from src.app.services.usage_counters import IncrementStatus, UsageCounterService
from src.domain.entities import UsageCounter
from tests.fixtures.builders import NOW


def seed_counter(store, value: int, tenant_id: str = "tenant-1", metric: str = "externalUsers"):
    store.usage_counters[(tenant_id, metric)] = UsageCounter(
        tenant_id=tenant_id, metric=metric, value=value, version=1
    )


async def increment(store, retry, delta=1, limit=50, tenant_id="tenant-1", metric="externalUsers"):
    async with store.unit_of_work() as uow:
        return await UsageCounterService(uow, retry).try_increment(tenant_id, metric, delta, limit)


@pytest.mark.asyncio
async def test_first_increment_creates_counter(store, no_delay_retry):
    result = await increment(store, no_delay_retry, delta=3)

    assert result.is_ok()
    assert result.value.status == IncrementStatus.incremented
    assert result.value.value == 3
    counter = store.usage_counters[("tenant-1", "externalUsers")]
    assert counter.value == 3
    assert counter.version == 1


@pytest.mark.asyncio
async def test_increment_over_limit_returns_current(store, no_delay_retry):
    seed_counter(store, 50)

    result = await increment(store, no_delay_retry)

    assert result.is_ok()
    assert result.value.status == IncrementStatus.limit_exceeded
    assert result.value.value == 50
    assert result.value.limit == 50
    assert store.usage_counters[("tenant-1", "externalUsers")].value == 50


@pytest.mark.asyncio
async def test_unlimited_never_exceeds(store, no_delay_retry):
    seed_counter(store, 10_000)
    result = await increment(store, no_delay_retry, delta=100, limit=-1)
    assert result.value.incremented
    assert result.value.value == 10_100


@pytest.mark.asyncio
async def test_two_concurrent_increments_at_49(store, no_delay_retry):
    """Exactly one reaches 50, the other sees LimitExceeded(current=50)"""
    seed_counter(store, 49)

    first, second = await asyncio.gather(
        increment(store, no_delay_retry), increment(store, no_delay_retry)
    )

    outcomes = sorted([first.value, second.value], key=lambda o: o.status.value)
    assert [o.status for o in outcomes] == [IncrementStatus.incremented, IncrementStatus.limit_exceeded]
    assert outcomes[0].value == 50
    assert outcomes[1].value == 50
    assert store.usage_counters[("tenant-1", "externalUsers")].value == 50


@pytest.mark.asyncio
async def test_n_concurrent_increments_never_overshoot(store):
    seed_counter(store, 0)
    retry = RetryPolicy(max_attempts=50, base_delay_seconds=0, max_delay_seconds=0)

    results = await asyncio.gather(*(increment(store, retry, limit=10) for _ in range(25)))

    incremented = [r for r in results if r.is_ok() and r.value.incremented]
    assert len(incremented) == 10
    assert store.usage_counters[("tenant-1", "externalUsers")].value == 10
    assert all(r.value.value <= 10 for r in results if r.is_ok())


@pytest.mark.asyncio
async def test_concurrent_first_increments_race_on_create(store, no_delay_retry):
    """A lost insert race re-reads and increments the winner's row"""
    results = await asyncio.gather(
        increment(store, no_delay_retry, delta=2), increment(store, no_delay_retry, delta=2)
    )

    assert all(r.value.incremented for r in results)
    assert store.usage_counters[("tenant-1", "externalUsers")].value == 4


@pytest.mark.asyncio
async def test_retry_exhausted_is_an_error(mock_uow):
    from unittest.mock import AsyncMock

    mock_uow.usage_counters.get = AsyncMock(
        return_value=UsageCounter(tenant_id="t", metric="libraries", value=1, version=1)
    )
    mock_uow.usage_counters.compare_and_swap = AsyncMock(return_value=False)
    retry = RetryPolicy(max_attempts=3, base_delay_seconds=0, max_delay_seconds=0)

    result = await UsageCounterService(mock_uow, retry).try_increment("t", "libraries", 1, 25)

    assert result.is_err()
    assert result.error.code == "RETRY_EXHAUSTED"
    assert mock_uow.usage_counters.compare_and_swap.call_count == 3
    assert mock_uow.rollback.call_count == 3
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_decrement_floors_at_zero(store, no_delay_retry):
    seed_counter(store, 2)

    async with store.unit_of_work() as uow:
        result = await UsageCounterService(uow, no_delay_retry).decrement("tenant-1", "externalUsers", 5)

    assert result.value == 0
    assert store.usage_counters[("tenant-1", "externalUsers")].value == 0


@pytest.mark.asyncio
async def test_decrement_missing_counter(store, no_delay_retry):
    async with store.unit_of_work() as uow:
        result = await UsageCounterService(uow, no_delay_retry).decrement("tenant-1", "libraries", 1)
    assert result.value == 0
    assert ("tenant-1", "libraries") not in store.usage_counters


@pytest.mark.asyncio
async def test_decrement_concurrent_with_increments(store, no_delay_retry):
    seed_counter(store, 10)

    async def release():
        async with store.unit_of_work() as uow:
            return await UsageCounterService(uow, no_delay_retry).decrement(
                "tenant-1", "externalUsers", 1
            )

    retry = RetryPolicy(max_attempts=20, base_delay_seconds=0, max_delay_seconds=0)
    await asyncio.gather(release(), increment(store, retry), release(), increment(store, retry))

    assert store.usage_counters[("tenant-1", "externalUsers")].value == 10


@pytest.mark.asyncio
async def test_reset_sets_period_and_bumps_version(store, no_delay_retry):
    seed_counter(store, 42, metric="apiCallsThisPeriod")

    async with store.unit_of_work() as uow:
        result = await UsageCounterService(uow, no_delay_retry).reset(
            "tenant-1", "apiCallsThisPeriod", NOW, NOW + timedelta(days=30)
        )

    assert result.value == 2
    counter = store.usage_counters[("tenant-1", "apiCallsThisPeriod")]
    assert counter.value == 0
    assert counter.period_start == NOW
    assert counter.period_end == NOW + timedelta(days=30)
