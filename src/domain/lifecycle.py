"""
Lifecycle State Machine

Pure functions computing subscription transitions. No I/O: callers read the
current record, call apply_event() and persist the returned record with a
compare-and-swap on its version.

Time-based transitions (trial expiry, grace expiry) are never pushed by events.
effective_status() derives them from the stored timestamps on every read, and
apply_event() works from the effective status, so every caller sees the same
lazily-derived state.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional, Tuple

from src.domain.base import ensure_utc
from src.domain.entities import (
    LifecycleEvent,
    LifecycleEventType,
    Subscription,
    SubscriptionStatus,
)

Status = SubscriptionStatus
EventType = LifecycleEventType


@dataclass(frozen=True)
class LifecyclePolicy:
    """Grace windows applied by the state machine"""

    trial_grace: timedelta = timedelta(days=7)
    cancellation_grace: timedelta = timedelta(days=30)


@dataclass(frozen=True)
class Transition:
    """
    Result of applying an event.

    subscription is the next record to persist, None when the event is an
    idempotent no-op for the current state.
    """

    from_status: Optional[SubscriptionStatus]
    to_status: SubscriptionStatus
    subscription: Optional[Subscription]
    effects: Tuple[str, ...] = ()
    created: bool = False

    @property
    def is_noop(self) -> bool:
        return self.subscription is None


class InvalidTransitionError(Exception):
    """Event is not allowed from the current status"""

    def __init__(self, from_status: Optional[SubscriptionStatus], event_type: LifecycleEventType):
        self.from_status = from_status
        self.event_type = event_type
        from_label = from_status.value if from_status else "(none)"
        super().__init__(f"No transition from {from_label} on {event_type.value}")


def effective_status(subscription: Subscription, now: datetime) -> SubscriptionStatus:
    """Stored status with trial and grace expiry applied as of now"""
    now = ensure_utc(now)
    status = subscription.status
    trial_ends_at = ensure_utc(subscription.trial_ends_at)
    grace_ends_at = ensure_utc(subscription.grace_period_ends_at)

    if status == Status.trialing and trial_ends_at is not None and now >= trial_ends_at:
        status = Status.grace_period
    if status == Status.grace_period and grace_ends_at is not None and now >= grace_ends_at:
        status = Status.cancelled
    return status


def _evolve(
    current: Subscription, now: datetime, event_id: Optional[str], changes: Dict[str, Any]
) -> Subscription:
    data = current.model_dump()
    data.update(changes)
    data.update(version=current.version + 1, last_event_id=event_id, updated_at=now)
    return Subscription(**data)


# ============================================================================
# Handlers: (current, event, now, policy) -> (changes, effects)
# ============================================================================

Changes = Tuple[Dict[str, Any], Tuple[str, ...]]


def _cycle_fields(event: LifecycleEvent, now: datetime, policy: LifecyclePolicy) -> Changes:
    trial_ends_at = ensure_utc(event.trial_ends_at)
    changes: Dict[str, Any] = {
        "external_reference": event.subscription_reference,
        "plan_tier": event.plan_tier,
        "quantity": event.quantity if event.quantity is not None else 1,
    }
    if trial_ends_at is not None and trial_ends_at > now:
        changes.update(
            status=Status.trialing,
            trial_ends_at=trial_ends_at,
            grace_period_ends_at=trial_ends_at + policy.trial_grace,
        )
        return changes, ("trial_started",)

    changes.update(status=Status.active, trial_ends_at=None, grace_period_ends_at=None)
    return changes, ()


def _reactivate(current, event, now, policy) -> Changes:
    changes, effects = _cycle_fields(event, now, policy)
    return changes, ("reactivated",) + effects


def _convert_trial(current, event, now, policy) -> Changes:
    changes: Dict[str, Any] = {
        "status": Status.active,
        "trial_ends_at": None,
        "grace_period_ends_at": None,
    }
    effects = ["trial_converted"]
    if event.plan_tier is not None and event.plan_tier != current.plan_tier:
        changes["plan_tier"] = event.plan_tier
        effects.append("plan_changed")
    if event.quantity is not None:
        changes["quantity"] = event.quantity
    return changes, tuple(effects)


def _change_plan(current, event, now, policy) -> Changes:
    if event.plan_tier == current.plan_tier:
        return {}, ()
    return {"plan_tier": event.plan_tier}, ("plan_changed",)


def _change_quantity(current, event, now, policy) -> Changes:
    return {"quantity": event.quantity}, ("quantity_changed",)


def _renew(current, event, now, policy) -> Changes:
    return {}, ("renewed",)


def _suspend(current, event, now, policy) -> Changes:
    return {"status": Status.suspended}, ("access_suspended",)


def _restore(current, event, now, policy) -> Changes:
    changes = {
        "status": Status.active,
        "trial_ends_at": None,
        "grace_period_ends_at": None,
    }
    return changes, ("access_restored",)


def _cancel(current, event, now, policy) -> Changes:
    grace_ends_at = ensure_utc(current.grace_period_ends_at)
    if effective_status(current, now) != Status.grace_period or grace_ends_at is None:
        grace_ends_at = now + policy.cancellation_grace
    changes = {
        "status": Status.cancelled,
        "trial_ends_at": None,
        "grace_period_ends_at": grace_ends_at,
    }
    return changes, ("cancelled",)


Handler = Optional[Callable[..., Changes]]

# None marks an idempotent no-op guard
TRANSITIONS: Dict[Tuple[SubscriptionStatus, LifecycleEventType], Handler] = {
    (Status.trialing, EventType.renewed): _convert_trial,
    (Status.trialing, EventType.change_plan): _convert_trial,
    (Status.trialing, EventType.subscribed): _convert_trial,
    (Status.active, EventType.change_plan): _change_plan,
    (Status.active, EventType.change_quantity): _change_quantity,
    (Status.active, EventType.renewed): _renew,
    (Status.active, EventType.suspended): _suspend,
    (Status.active, EventType.unsubscribed): _cancel,
    (Status.active, EventType.reinstated): None,
    (Status.active, EventType.subscribed): None,
    (Status.grace_period, EventType.renewed): _restore,
    (Status.grace_period, EventType.unsubscribed): _cancel,
    (Status.grace_period, EventType.change_plan): _change_plan,
    (Status.grace_period, EventType.change_quantity): _change_quantity,
    (Status.suspended, EventType.reinstated): _restore,
    (Status.suspended, EventType.suspended): None,
    (Status.suspended, EventType.change_plan): _change_plan,
    (Status.suspended, EventType.change_quantity): _change_quantity,
    (Status.cancelled, EventType.subscribed): _reactivate,
    (Status.cancelled, EventType.unsubscribed): None,
}


def apply_event(
    current: Optional[Subscription],
    event: LifecycleEvent,
    now: datetime,
    policy: LifecyclePolicy = LifecyclePolicy(),
) -> Transition:
    """
    Compute the transition caused by event.

    Args:
        current: Stored subscription, None if the tenant has none yet
        event: Validated lifecycle event
        now: Current time (timezone-aware)
        policy: Grace windows

    Returns:
        Transition with the next record, or a no-op transition

    Raises:
        InvalidTransitionError: event is not allowed from the effective status
    """
    now = ensure_utc(now)

    if current is None:
        if event.event_type != EventType.subscribed or event.tenant_id is None:
            raise InvalidTransitionError(None, event.event_type)
        changes, effects = _cycle_fields(event, now, policy)
        created = Subscription(
            tenant_id=event.tenant_id,
            version=1,
            last_event_id=event.event_id,
            created_at=now,
            updated_at=now,
            **changes,
        )
        return Transition(
            from_status=None,
            to_status=created.status,
            subscription=created,
            effects=("subscription_created",) + effects,
            created=True,
        )

    status = effective_status(current, now)

    if current.last_event_id == event.event_id:
        return Transition(from_status=status, to_status=status, subscription=None)

    # Only a reactivation may move the tenant onto a different provider subscription
    if event.subscription_reference != current.external_reference and not (
        status == Status.cancelled and event.event_type == EventType.subscribed
    ):
        raise InvalidTransitionError(status, event.event_type)

    key = (status, event.event_type)
    if key not in TRANSITIONS:
        raise InvalidTransitionError(status, event.event_type)

    handler = TRANSITIONS[key]
    if handler is None:
        return Transition(from_status=status, to_status=status, subscription=None)

    changes, effects = handler(current, event, now, policy)
    changes.setdefault("status", status)
    next_subscription = _evolve(current, now, event.event_id, changes)
    return Transition(
        from_status=status,
        to_status=next_subscription.status,
        subscription=next_subscription,
        effects=effects,
    )


def materialize_expiry(current: Subscription, now: datetime) -> Optional[Transition]:
    """Persistable form of a pending lazy transition, None if nothing is pending"""
    now = ensure_utc(now)
    status = effective_status(current, now)
    if status == current.status:
        return None

    changes: Dict[str, Any] = {"status": status}
    if current.status == Status.trialing:
        changes["trial_ends_at"] = None
    next_subscription = _evolve(current, now, current.last_event_id, changes)
    return Transition(
        from_status=current.status,
        to_status=status,
        subscription=next_subscription,
        effects=("expiry_applied",),
    )
