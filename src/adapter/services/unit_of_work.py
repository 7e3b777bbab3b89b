from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories.audit_event_repository import AuditEventRepository
from src.adapter.repositories.processed_event_repository import ProcessedEventRepository
from src.adapter.repositories.subscription_repository import SubscriptionRepository
from src.adapter.repositories.usage_counter_repository import UsageCounterRepository
from src.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy implementation of UnitOfWork pattern"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self):
        # Initialize all repositories with the session
        self.subscriptions = SubscriptionRepository(self.session)
        self.processed_events = ProcessedEventRepository(self.session)
        self.usage_counters = UsageCounterRepository(self.session)
        self.audit_events = AuditEventRepository(self.session)
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()
