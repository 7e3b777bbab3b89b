from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, or_, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.subscription_repository import CasOutcome, ISubscriptionRepository
from src.domain.entities import Subscription, SubscriptionStatus


class SubscriptionRepository(ISubscriptionRepository):
    """Subscription repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_tenant(self, tenant_id: str) -> Optional[Subscription]:
        """Get the tenant's subscription with its current version"""
        stmt = (
            select(Subscription)
            .where(Subscription.tenant_id == tenant_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_reference(self, external_reference: str) -> Optional[Subscription]:
        """Get subscription by billing provider reference"""
        stmt = (
            select(Subscription)
            .where(Subscription.external_reference == external_reference)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, subscription: Subscription) -> bool:
        """Insert a new subscription, False if tenant or reference is taken"""
        try:
            self.session.add(subscription)
            await self.session.flush()
        except IntegrityError:
            return False
        return True

    async def compare_and_swap(
        self, tenant_id: str, expected_version: int, subscription: Subscription
    ) -> CasOutcome:
        """Single conditional UPDATE keyed on (tenant_id, version)"""
        values = subscription.model_dump(exclude={"tenant_id", "created_at"})
        values["version"] = expected_version + 1

        stmt = (
            update(Subscription)
            .where(Subscription.tenant_id == tenant_id)
            .where(Subscription.version == expected_version)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 1:
            return CasOutcome.success

        # Distinguish a stale version from a missing row
        exists = await self.session.execute(
            select(Subscription.tenant_id).where(Subscription.tenant_id == tenant_id)
        )
        if exists.first() is None:
            return CasOutcome.not_found
        return CasOutcome.version_conflict

    async def list_expired(self, now: datetime, limit: int = 100) -> List[Subscription]:
        """Trialing past trial end, or GracePeriod past grace end"""
        stmt = (
            select(Subscription)
            .where(
                or_(
                    and_(
                        Subscription.status == SubscriptionStatus.trialing,
                        Subscription.trial_ends_at <= now,
                    ),
                    and_(
                        Subscription.status == SubscriptionStatus.grace_period,
                        Subscription.grace_period_ends_at <= now,
                    ),
                )
            )
            .order_by(Subscription.tenant_id)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
