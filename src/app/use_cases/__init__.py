"""
Use Cases

Organized into domain folders:
- webhooks/: Lifecycle event ingestion and dedup maintenance
- entitlements/: Feature, quota and access checks
- usage/: Usage counter operations
- subscriptions/: Subscription read and expiry sweep
"""

from .entitlements import (
    CheckAccessUseCase,
    CheckFeatureUseCase,
    CheckQuotaUseCase,
    ConsumeQuotaUseCase,
    GetEntitlementsUseCase,
)
from .subscriptions import (
    GetSubscriptionUseCase,
    SweepExpiredSubscriptionsUseCase,
)
from .usage import (
    DecrementUsageUseCase,
    ResetUsageUseCase,
    TryIncrementUsageUseCase,
)
from .webhooks import (
    IngestLifecycleEventUseCase,
    PurgeProcessedEventsUseCase,
)

__all__ = [
    # Webhooks
    "IngestLifecycleEventUseCase",
    "PurgeProcessedEventsUseCase",
    # Entitlements
    "CheckAccessUseCase",
    "CheckFeatureUseCase",
    "CheckQuotaUseCase",
    "ConsumeQuotaUseCase",
    "GetEntitlementsUseCase",
    # Usage
    "TryIncrementUsageUseCase",
    "DecrementUsageUseCase",
    "ResetUsageUseCase",
    # Subscriptions
    "GetSubscriptionUseCase",
    "SweepExpiredSubscriptionsUseCase",
]
