"""
Entitlement Service Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    LifecycleEventType,
    OperationKind,
    PlanTier,
    SubscriptionStatus,
)

# Export all entities
from .subscription import Subscription
from .processed_event import ProcessedEvent
from .usage_counter import UsageCounter
from .audit_event import AuditEvent
from .lifecycle_event import LifecycleEvent

__all__ = [
    # Enums
    "LifecycleEventType",
    "OperationKind",
    "PlanTier",
    "SubscriptionStatus",
    # Entities
    "Subscription",
    "ProcessedEvent",
    "UsageCounter",
    "AuditEvent",
    "LifecycleEvent",
]
