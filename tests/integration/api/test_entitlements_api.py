"""
Integration tests for the entitlement check endpoints
"""

import pytest
from datetime import datetime, timedelta, UTC
from httpx import AsyncClient
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.domain.entities import (
    AuditEvent,
    PlanTier,
    Subscription,
    SubscriptionStatus,
    UsageCounter,
)


async def seed_subscription(db_session: AsyncSession, **overrides) -> None:
    data = dict(
        tenant_id="tenant-acme",
        external_reference="sub-acme",
        plan_tier=PlanTier.pro,
        status=SubscriptionStatus.active,
    )
    data.update(overrides)
    db_session.add(Subscription(**data))
    await db_session.commit()


async def seed_usage(db_session: AsyncSession, metric: str, value: int, tenant_id="tenant-acme"):
    db_session.add(UsageCounter(tenant_id=tenant_id, metric=metric, value=value))
    await db_session.commit()


@pytest.mark.asyncio
async def test_feature_allowed(client: AsyncClient, db_session, service_headers):
    await seed_subscription(db_session)

    response = await client.get("/entitlements/tenant-acme/features/auditExport", headers=service_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["allowed"] is True
    assert data["status"] == "Active"
    assert data["plan_tier"] == "Pro"


@pytest.mark.asyncio
async def test_feature_denied_names_required_tier(client: AsyncClient, db_session, service_headers):
    """
    Given a Pro tenant
    When it checks ssoIntegration
    Then the answer is 200 allowed=false with reason feature_not_in_plan
    And an entitlement_denied audit event is recorded
    """
    await seed_subscription(db_session)

    response = await client.get(
        "/entitlements/tenant-acme/features/ssoIntegration", headers=service_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["allowed"] is False
    assert data["reason"] == "feature_not_in_plan"
    assert data["required_tier"] == "Enterprise"

    result = await db_session.exec(select(AuditEvent).where(AuditEvent.action == "entitlement_denied"))
    audit = result.one()
    assert audit.tenant_id == "tenant-acme"
    assert audit.event_metadata["feature"] == "ssoIntegration"


@pytest.mark.asyncio
async def test_unknown_feature_returns_400(client: AsyncClient, db_session, service_headers):
    await seed_subscription(db_session)

    response = await client.get("/entitlements/tenant-acme/features/teleport", headers=service_headers)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "UNKNOWN_FEATURE"


@pytest.mark.asyncio
async def test_missing_subscription_returns_404(client: AsyncClient, service_headers):
    response = await client.get("/entitlements/ghost/features/apiAccess", headers=service_headers)

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "SUBSCRIPTION_NOT_FOUND"


@pytest.mark.asyncio
async def test_quota_check_at_limit(client: AsyncClient, db_session, service_headers):
    """Active/Pro with 50 external users: one more is denied with current=50, limit=50"""
    await seed_subscription(db_session)
    await seed_usage(db_session, "externalUsers", 50)

    response = await client.post(
        "/entitlements/tenant-acme/quotas/externalUsers/check",
        json={"requested_delta": 1},
        headers=service_headers,
    )

    data = response.json()
    assert data["allowed"] is False
    assert data["reason"] == "quota_exceeded"
    assert data["current"] == 50
    assert data["limit"] == 50


@pytest.mark.asyncio
async def test_quota_check_defaults_to_one(client: AsyncClient, db_session, service_headers):
    await seed_subscription(db_session, plan_tier=PlanTier.enterprise)

    response = await client.post(
        "/entitlements/tenant-acme/quotas/libraries/check", headers=service_headers
    )

    data = response.json()
    assert data["allowed"] is True
    assert data["limit"] == -1
    assert data["requested"] == 1


@pytest.mark.asyncio
async def test_quota_check_unknown_metric(client: AsyncClient, db_session, service_headers):
    await seed_subscription(db_session)

    response = await client.post(
        "/entitlements/tenant-acme/quotas/seats/check", json={}, headers=service_headers
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "UNKNOWN_METRIC"


@pytest.mark.asyncio
async def test_expired_trial_reads_as_grace_period(client: AsyncClient, db_session, service_headers):
    """
    Given a Trialing subscription whose trial ended a minute ago
    When no event has been received
    Then checks report GracePeriod and creation is denied
    """
    now = datetime.now(UTC)
    await seed_subscription(
        db_session,
        status=SubscriptionStatus.trialing,
        trial_ends_at=now - timedelta(minutes=1),
        grace_period_ends_at=now + timedelta(days=7),
    )

    read = await client.post(
        "/entitlements/tenant-acme/access", json={"operation": "read"}, headers=service_headers
    )
    create = await client.post(
        "/entitlements/tenant-acme/access", json={"operation": "create"}, headers=service_headers
    )

    assert read.json()["status"] == "GracePeriod"
    assert read.json()["allowed"] is True
    assert create.json()["allowed"] is False
    assert create.json()["reason"] == "grace_period_read_only"


@pytest.mark.asyncio
async def test_cancelled_after_grace_has_no_access(client: AsyncClient, db_session, service_headers):
    await seed_subscription(
        db_session,
        status=SubscriptionStatus.cancelled,
        grace_period_ends_at=datetime.now(UTC) - timedelta(days=1),
    )

    response = await client.post(
        "/entitlements/tenant-acme/access", json={"operation": "read"}, headers=service_headers
    )

    assert response.json()["allowed"] is False
    assert response.json()["reason"] == "access_ended"


@pytest.mark.asyncio
async def test_access_rejects_unknown_operation(client: AsyncClient, db_session, service_headers):
    await seed_subscription(db_session)

    response = await client.post(
        "/entitlements/tenant-acme/access", json={"operation": "teleport"}, headers=service_headers
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_entitlements_require_service_key(client: AsyncClient, db_session):
    await seed_subscription(db_session)

    response = await client.get("/entitlements/tenant-acme/features/apiAccess")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_get_subscription(client: AsyncClient, db_session, service_headers):
    await seed_subscription(
        db_session,
        status=SubscriptionStatus.grace_period,
        grace_period_ends_at=datetime.now(UTC) - timedelta(hours=1),
        version=4,
    )

    response = await client.get("/subscriptions/tenant-acme", headers=service_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "Cancelled"
    assert data["stored_status"] == "GracePeriod"
    assert data["version"] == 4

    missing = await client.get("/subscriptions/ghost", headers=service_headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["catalog_version"] == 3
