"""
Entitlement Service Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class PlanTier(str, Enum):
    """Plan tier of a subscription"""

    free = "Free"
    pro = "Pro"
    enterprise = "Enterprise"


class SubscriptionStatus(str, Enum):
    """Lifecycle status of a subscription"""

    trialing = "Trialing"
    active = "Active"
    grace_period = "GracePeriod"
    suspended = "Suspended"
    cancelled = "Cancelled"


class LifecycleEventType(str, Enum):
    """Lifecycle notification types sent by the billing provider"""

    subscribed = "Subscribed"
    change_plan = "ChangePlan"
    change_quantity = "ChangeQuantity"
    suspended = "Suspended"
    reinstated = "Reinstated"
    renewed = "Renewed"
    unsubscribed = "Unsubscribed"


class OperationKind(str, Enum):
    """Kind of operation a caller wants to perform"""

    read = "read"
    sensitive_read = "sensitive_read"
    write = "write"
    create = "create"
