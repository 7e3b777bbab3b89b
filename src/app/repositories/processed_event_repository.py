from abc import ABC, abstractmethod
from datetime import datetime

from src.domain.entities import ProcessedEvent


class IProcessedEventRepository(ABC):
    """Dedup table interface - application layer"""

    @abstractmethod
    async def exists(self, subscription_reference: str, event_id: str) -> bool:
        """Check whether the event was already applied"""
        pass

    @abstractmethod
    async def insert_if_absent(self, processed_event: ProcessedEvent) -> bool:
        """
        Record an applied event.

        Returns:
            False if the (subscription_reference, event_id) pair already exists.
            The transaction must then be rolled back by the caller.
        """
        pass

    @abstractmethod
    async def delete_older_than(self, cutoff: datetime) -> int:
        """Purge records outside the dedup window, returns rows deleted"""
        pass
