from datetime import datetime
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.usage_counter_repository import IUsageCounterRepository
from src.domain.base import utc_now
from src.domain.entities import UsageCounter


class UsageCounterRepository(IUsageCounterRepository):
    """UsageCounter repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, tenant_id: str, metric: str) -> Optional[UsageCounter]:
        stmt = (
            select(UsageCounter)
            .where(UsageCounter.tenant_id == tenant_id)
            .where(UsageCounter.metric == metric)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_tenant(self, tenant_id: str) -> List[UsageCounter]:
        stmt = (
            select(UsageCounter)
            .where(UsageCounter.tenant_id == tenant_id)
            .order_by(UsageCounter.metric)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, counter: UsageCounter) -> bool:
        try:
            self.session.add(counter)
            await self.session.flush()
        except IntegrityError:
            return False
        return True

    async def compare_and_swap(
        self,
        tenant_id: str,
        metric: str,
        expected_version: int,
        value: int,
        period_start: Optional[datetime] = None,
        period_end: Optional[datetime] = None,
        update_period: bool = False,
    ) -> bool:
        values = {"value": value, "version": expected_version + 1, "updated_at": utc_now()}
        if update_period:
            values.update(period_start=period_start, period_end=period_end)

        stmt = (
            update(UsageCounter)
            .where(UsageCounter.tenant_id == tenant_id)
            .where(UsageCounter.metric == metric)
            .where(UsageCounter.version == expected_version)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
