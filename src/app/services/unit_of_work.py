from abc import ABC, abstractmethod

from src.app.repositories.audit_event_repository import IAuditEventRepository
from src.app.repositories.processed_event_repository import IProcessedEventRepository
from src.app.repositories.subscription_repository import ISubscriptionRepository
from src.app.repositories.usage_counter_repository import IUsageCounterRepository


class UnitOfWork(ABC):
    """Abstract UnitOfWork - defines repository access and transaction management"""

    # Repository properties (initialized in __aenter__)
    subscriptions: ISubscriptionRepository
    processed_events: IProcessedEventRepository
    usage_counters: IUsageCounterRepository
    audit_events: IAuditEventRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
