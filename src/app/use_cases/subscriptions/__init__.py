"""Subscription read and maintenance use cases."""

from .dtos import SubscriptionResponse, SweepExpiredSubscriptionsResponse, SweptSubscription
from .get_subscription_use_case import GetSubscriptionUseCase
from .sweep_expired_subscriptions_use_case import SweepExpiredSubscriptionsUseCase

__all__ = [
    "GetSubscriptionUseCase",
    "SweepExpiredSubscriptionsUseCase",
    "SubscriptionResponse",
    "SweepExpiredSubscriptionsResponse",
    "SweptSubscription",
]
