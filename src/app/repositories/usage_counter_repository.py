from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from src.domain.entities import UsageCounter


class IUsageCounterRepository(ABC):
    """UsageCounter repository interface - application layer"""

    @abstractmethod
    async def get(self, tenant_id: str, metric: str) -> Optional[UsageCounter]:
        """Get counter with its current version"""
        pass

    @abstractmethod
    async def list_for_tenant(self, tenant_id: str) -> List[UsageCounter]:
        """All counters of a tenant"""
        pass

    @abstractmethod
    async def create(self, counter: UsageCounter) -> bool:
        """
        Insert a new counter.

        Returns:
            False if the counter already exists. The transaction must then be
            rolled back by the caller.
        """
        pass

    @abstractmethod
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
        """
        Set value (and the period when update_period is set) if the stored
        version still equals expected_version. Returns False on conflict.
        """
        pass
