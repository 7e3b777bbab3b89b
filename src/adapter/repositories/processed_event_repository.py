from datetime import datetime

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.processed_event_repository import IProcessedEventRepository
from src.domain.entities import ProcessedEvent


class ProcessedEventRepository(IProcessedEventRepository):
    """Dedup table implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def exists(self, subscription_reference: str, event_id: str) -> bool:
        stmt = select(ProcessedEvent.event_id).where(
            ProcessedEvent.subscription_reference == subscription_reference,
            ProcessedEvent.event_id == event_id,
        )
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def insert_if_absent(self, processed_event: ProcessedEvent) -> bool:
        # Composite primary key makes the insert itself the atomic check
        try:
            self.session.add(processed_event)
            await self.session.flush()
        except IntegrityError:
            return False
        return True

    async def delete_older_than(self, cutoff: datetime) -> int:
        stmt = delete(ProcessedEvent).where(ProcessedEvent.processed_at < cutoff)
        result = await self.session.execute(stmt)
        return result.rowcount
