"""
Integration tests for the SQLModel repositories against SQLite
"""

import pytest
from datetime import datetime, timedelta, UTC

from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.repositories.subscription_repository import CasOutcome
from src.domain.entities import (
    LifecycleEventType,
    PlanTier,
    ProcessedEvent,
    Subscription,
    SubscriptionStatus,
    UsageCounter,
)


def subscription(**overrides) -> Subscription:
    data = dict(
        tenant_id="tenant-acme",
        external_reference="sub-acme",
        plan_tier=PlanTier.pro,
        status=SubscriptionStatus.active,
    )
    data.update(overrides)
    return Subscription(**data)


@pytest.mark.asyncio
async def test_subscription_cas_rejects_stale_version(db_session):
    async with SqlAlchemyUnitOfWork(db_session) as uow:
        assert await uow.subscriptions.create(subscription())
        await uow.commit()

        fresh = await uow.subscriptions.get_by_tenant("tenant-acme")
        assert fresh.version == 1
        suspended = subscription(status=SubscriptionStatus.suspended, version=2)

        assert await uow.subscriptions.compare_and_swap("tenant-acme", 1, suspended) == CasOutcome.success
        await uow.commit()

        # A writer still holding version 1 loses
        stale = subscription(status=SubscriptionStatus.cancelled, version=2)
        assert await uow.subscriptions.compare_and_swap("tenant-acme", 1, stale) == (
            CasOutcome.version_conflict
        )
        assert await uow.subscriptions.compare_and_swap("ghost", 1, stale) == CasOutcome.not_found
        await uow.rollback()

        stored = await uow.subscriptions.get_by_tenant("tenant-acme")
        assert stored.status == SubscriptionStatus.suspended
        assert stored.version == 2


@pytest.mark.asyncio
async def test_subscription_create_conflicts_on_reference(db_session):
    async with SqlAlchemyUnitOfWork(db_session) as uow:
        assert await uow.subscriptions.create(subscription())
        await uow.commit()

        duplicate = subscription(tenant_id="tenant-other")
        assert await uow.subscriptions.create(duplicate) is False
        await uow.rollback()

        assert await uow.subscriptions.get_by_reference("sub-acme") is not None


@pytest.mark.asyncio
async def test_processed_event_insert_is_atomic_dedup(db_session):
    def record():
        return ProcessedEvent(
            subscription_reference="sub-acme",
            event_id="evt-1",
            event_type=LifecycleEventType.renewed,
            payload_hash="a" * 64,
        )

    async with SqlAlchemyUnitOfWork(db_session) as uow:
        assert await uow.processed_events.insert_if_absent(record())
        await uow.commit()

        assert await uow.processed_events.insert_if_absent(record()) is False
        await uow.rollback()

        assert await uow.processed_events.exists("sub-acme", "evt-1")
        assert not await uow.processed_events.exists("sub-other", "evt-1")


@pytest.mark.asyncio
async def test_list_expired_finds_lagging_rows(db_session):
    now = datetime.now(UTC)
    async with SqlAlchemyUnitOfWork(db_session) as uow:
        await uow.subscriptions.create(
            subscription(
                tenant_id="tenant-a",
                external_reference="ref-a",
                status=SubscriptionStatus.trialing,
                trial_ends_at=now - timedelta(days=1),
                grace_period_ends_at=now + timedelta(days=6),
            )
        )
        await uow.subscriptions.create(
            subscription(
                tenant_id="tenant-b",
                external_reference="ref-b",
                status=SubscriptionStatus.trialing,
                trial_ends_at=now + timedelta(days=1),
            )
        )
        await uow.commit()

        expired = await uow.subscriptions.list_expired(now)

        assert [s.tenant_id for s in expired] == ["tenant-a"]


@pytest.mark.asyncio
async def test_usage_counter_cas(db_session):
    async with SqlAlchemyUnitOfWork(db_session) as uow:
        assert await uow.usage_counters.create(
            UsageCounter(tenant_id="tenant-acme", metric="libraries", value=3)
        )
        await uow.commit()

        assert await uow.usage_counters.compare_and_swap("tenant-acme", "libraries", 1, 4)
        await uow.commit()
        assert not await uow.usage_counters.compare_and_swap("tenant-acme", "libraries", 1, 5)
        await uow.rollback()

        counter = await uow.usage_counters.get("tenant-acme", "libraries")
        assert (counter.value, counter.version) == (4, 2)
        assert [c.metric for c in await uow.usage_counters.list_for_tenant("tenant-acme")] == ["libraries"]
