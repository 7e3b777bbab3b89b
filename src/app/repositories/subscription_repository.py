from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import List, Optional

from src.domain.entities import Subscription


class CasOutcome(str, Enum):
    """Outcome of a compare-and-swap write"""

    success = "success"
    version_conflict = "version_conflict"
    not_found = "not_found"


class ISubscriptionRepository(ABC):
    """Subscription repository interface - application layer"""

    @abstractmethod
    async def get_by_tenant(self, tenant_id: str) -> Optional[Subscription]:
        """Get the tenant's subscription with its current version"""
        pass

    @abstractmethod
    async def get_by_reference(self, external_reference: str) -> Optional[Subscription]:
        """Get subscription by billing provider reference"""
        pass

    @abstractmethod
    async def create(self, subscription: Subscription) -> bool:
        """
        Insert a new subscription at version 1.

        Returns:
            False if the tenant or reference already has a subscription.
            The transaction must then be rolled back by the caller.
        """
        pass

    @abstractmethod
    async def compare_and_swap(
        self, tenant_id: str, expected_version: int, subscription: Subscription
    ) -> CasOutcome:
        """
        Replace the stored record if its version still equals expected_version.

        All fields are written together and version becomes expected_version + 1.
        """
        pass

    @abstractmethod
    async def list_expired(self, now: datetime, limit: int = 100) -> List[Subscription]:
        """Subscriptions whose trial or grace end has passed without being applied"""
        pass
