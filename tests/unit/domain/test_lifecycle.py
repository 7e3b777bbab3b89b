"""
Unit tests for the Lifecycle State Machine
Pure functions, no store involved.
"""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from src.domain.entities import LifecycleEventType, PlanTier, SubscriptionStatus
from src.domain.lifecycle import (
    InvalidTransitionError,
    LifecyclePolicy,
    apply_event,
    effective_status,
    materialize_expiry,
)
from tests.fixtures.builders import NOW, make_event, make_subscription

EventType = LifecycleEventType
Status = SubscriptionStatus


# ============================================================================
# effective_status
# ============================================================================


def test_effective_status_expired_trial_is_grace_period():
    """A trial past its end reads as GracePeriod even with no event applied"""
    sub = make_subscription(
        status=Status.trialing,
        trial_ends_at=NOW - timedelta(hours=1),
        grace_period_ends_at=NOW + timedelta(days=6),
    )
    assert effective_status(sub, NOW) == Status.grace_period


def test_effective_status_trial_and_grace_expired_is_cancelled():
    sub = make_subscription(
        status=Status.trialing,
        trial_ends_at=NOW - timedelta(days=10),
        grace_period_ends_at=NOW - timedelta(days=3),
    )
    assert effective_status(sub, NOW) == Status.cancelled


def test_effective_status_running_trial():
    sub = make_subscription(status=Status.trialing, trial_ends_at=NOW + timedelta(days=1))
    assert effective_status(sub, NOW) == Status.trialing


def test_effective_status_accepts_naive_timestamps():
    """SQLite returns naive datetimes, they are read as UTC"""
    sub = make_subscription(
        status=Status.grace_period,
        grace_period_ends_at=(NOW - timedelta(minutes=1)).replace(tzinfo=None),
    )
    assert effective_status(sub, NOW) == Status.cancelled


def test_effective_status_leaves_other_statuses_alone():
    for status in (Status.active, Status.suspended, Status.cancelled):
        sub = make_subscription(status=status, grace_period_ends_at=NOW - timedelta(days=1))
        assert effective_status(sub, NOW) == status


# ============================================================================
# apply_event: creation
# ============================================================================


def test_subscribed_creates_active_subscription():
    event = make_event(EventType.subscribed, tenant_id="tenant-9", plan_tier=PlanTier.enterprise)

    transition = apply_event(None, event, NOW)

    assert transition.created is True
    assert transition.from_status is None
    assert transition.to_status == Status.active
    sub = transition.subscription
    assert sub.tenant_id == "tenant-9"
    assert sub.external_reference == "sub-ref-1"
    assert sub.plan_tier == PlanTier.enterprise
    assert sub.version == 1
    assert sub.last_event_id == event.event_id
    assert transition.effects == ("subscription_created",)


def test_subscribed_with_future_trial_starts_trial():
    trial_end = NOW + timedelta(days=14)
    event = make_event(EventType.subscribed, tenant_id="tenant-9", trial_ends_at=trial_end)

    transition = apply_event(None, event, NOW, LifecyclePolicy(trial_grace=timedelta(days=7)))

    assert transition.to_status == Status.trialing
    assert transition.subscription.trial_ends_at == trial_end
    assert transition.subscription.grace_period_ends_at == trial_end + timedelta(days=7)
    assert "trial_started" in transition.effects


def test_unknown_subscription_requires_subscribed_with_tenant():
    with pytest.raises(InvalidTransitionError):
        apply_event(None, make_event(EventType.renewed), NOW)
    with pytest.raises(InvalidTransitionError):
        apply_event(None, make_event(EventType.subscribed), NOW)


# ============================================================================
# apply_event: transition table
# ============================================================================


def test_trialing_subscribed_converts_to_active():
    sub = make_subscription(
        status=Status.trialing,
        plan_tier=PlanTier.free,
        trial_ends_at=NOW + timedelta(days=3),
        grace_period_ends_at=NOW + timedelta(days=10),
        version=4,
    )
    event = make_event(EventType.subscribed, plan_tier=PlanTier.pro)

    transition = apply_event(sub, event, NOW)

    assert transition.from_status == Status.trialing
    assert transition.to_status == Status.active
    new = transition.subscription
    assert new.plan_tier == PlanTier.pro
    assert new.trial_ends_at is None
    assert new.grace_period_ends_at is None
    assert new.version == 5
    assert transition.effects == ("trial_converted", "plan_changed")
    # Input record untouched
    assert sub.status == Status.trialing
    assert sub.version == 4


def test_same_event_id_is_noop():
    sub = make_subscription(last_event_id="evt-dup", version=7)
    event = make_event(EventType.suspended, event_id="evt-dup")

    transition = apply_event(sub, event, NOW)

    assert transition.is_noop
    assert transition.to_status == Status.active


def test_active_suspended_then_reinstated():
    sub = make_subscription(version=2)

    suspended = apply_event(sub, make_event(EventType.suspended), NOW)
    assert suspended.to_status == Status.suspended
    assert suspended.subscription.version == 3
    assert suspended.effects == ("access_suspended",)

    reinstated = apply_event(suspended.subscription, make_event(EventType.reinstated), NOW)
    assert reinstated.from_status == Status.suspended
    assert reinstated.to_status == Status.active
    assert reinstated.subscription.version == 4


def test_idempotent_guards_are_noops():
    cases = [
        (Status.active, EventType.reinstated),
        (Status.active, EventType.subscribed),
        (Status.suspended, EventType.suspended),
    ]
    for status, event_type in cases:
        sub = make_subscription(status=status)
        transition = apply_event(sub, make_event(event_type), NOW)
        assert transition.is_noop, (status, event_type)
        assert transition.to_status == status


def test_cancelled_unsubscribed_is_noop():
    sub = make_subscription(status=Status.cancelled, grace_period_ends_at=NOW + timedelta(days=5))
    assert apply_event(sub, make_event(EventType.unsubscribed), NOW).is_noop


def test_unsubscribed_from_active_starts_cancellation_grace():
    sub = make_subscription()
    policy = LifecyclePolicy(cancellation_grace=timedelta(days=30))

    transition = apply_event(sub, make_event(EventType.unsubscribed), NOW, policy)

    assert transition.to_status == Status.cancelled
    assert transition.subscription.grace_period_ends_at == NOW + timedelta(days=30)


def test_unsubscribed_from_grace_period_keeps_grace_end():
    grace_end = NOW + timedelta(days=2)
    sub = make_subscription(status=Status.grace_period, grace_period_ends_at=grace_end)

    transition = apply_event(sub, make_event(EventType.unsubscribed), NOW)

    assert transition.to_status == Status.cancelled
    assert transition.subscription.grace_period_ends_at == grace_end


def test_renewed_after_trial_expiry_restores_access():
    """Works from the effective status: expired trial is GracePeriod"""
    sub = make_subscription(
        status=Status.trialing,
        trial_ends_at=NOW - timedelta(days=1),
        grace_period_ends_at=NOW + timedelta(days=6),
    )

    transition = apply_event(sub, make_event(EventType.renewed), NOW)

    assert transition.from_status == Status.grace_period
    assert transition.to_status == Status.active
    assert transition.subscription.grace_period_ends_at is None


def test_cancelled_subscribed_reactivates_on_new_reference():
    sub = make_subscription(status=Status.cancelled, grace_period_ends_at=NOW - timedelta(days=1))
    event = make_event(
        EventType.subscribed, subscription_reference="sub-ref-2", plan_tier=PlanTier.enterprise
    )

    transition = apply_event(sub, event, NOW)

    assert transition.to_status == Status.active
    assert transition.subscription.external_reference == "sub-ref-2"
    assert transition.subscription.plan_tier == PlanTier.enterprise
    assert transition.subscription.grace_period_ends_at is None
    assert transition.effects[0] == "reactivated"


def test_other_reference_rejected_unless_reactivation():
    sub = make_subscription()
    event = make_event(EventType.suspended, subscription_reference="sub-ref-other")
    with pytest.raises(InvalidTransitionError):
        apply_event(sub, event, NOW)


def test_change_plan_while_suspended_keeps_status():
    sub = make_subscription(status=Status.suspended)
    event = make_event(EventType.change_plan, plan_tier=PlanTier.enterprise)

    transition = apply_event(sub, event, NOW)

    assert transition.to_status == Status.suspended
    assert transition.subscription.plan_tier == PlanTier.enterprise
    assert transition.effects == ("plan_changed",)


def test_change_quantity():
    transition = apply_event(make_subscription(), make_event(EventType.change_quantity, quantity=12), NOW)
    assert transition.subscription.quantity == 12
    assert transition.to_status == Status.active


@pytest.mark.parametrize(
    "status,event_type",
    [
        (Status.suspended, EventType.unsubscribed),
        (Status.suspended, EventType.renewed),
        (Status.cancelled, EventType.renewed),
        (Status.cancelled, EventType.reinstated),
        (Status.cancelled, EventType.change_plan),
        (Status.trialing, EventType.suspended),
        (Status.grace_period, EventType.reinstated),
    ],
)
def test_invalid_transitions(status, event_type):
    sub = make_subscription(
        status=status,
        trial_ends_at=NOW + timedelta(days=3) if status == Status.trialing else None,
        grace_period_ends_at=NOW + timedelta(days=3),
    )
    with pytest.raises(InvalidTransitionError) as exc_info:
        apply_event(sub, make_event(event_type), NOW)
    assert exc_info.value.from_status == status
    assert exc_info.value.event_type == event_type


# ============================================================================
# materialize_expiry
# ============================================================================


def test_materialize_expiry_persists_trial_end():
    sub = make_subscription(
        status=Status.trialing,
        trial_ends_at=NOW - timedelta(hours=1),
        grace_period_ends_at=NOW + timedelta(days=6),
        version=3,
        last_event_id="evt-x",
    )

    transition = materialize_expiry(sub, NOW)

    assert transition.from_status == Status.trialing
    assert transition.to_status == Status.grace_period
    assert transition.subscription.trial_ends_at is None
    assert transition.subscription.version == 4
    assert transition.subscription.last_event_id == "evt-x"


def test_materialize_expiry_nothing_pending():
    assert materialize_expiry(make_subscription(), NOW) is None


# ============================================================================
# LifecycleEvent validation
# ============================================================================


def test_event_payload_validation():
    with pytest.raises(ValidationError):
        make_event(EventType.change_plan, plan_tier=None)
    with pytest.raises(ValidationError):
        make_event(EventType.change_quantity, quantity=None)
    with pytest.raises(ValidationError):
        make_event(EventType.change_quantity, quantity=-1)


def test_payload_hash_is_stable():
    a = make_event(EventType.renewed, event_id="evt-h")
    b = make_event(EventType.renewed, event_id="evt-h")
    c = make_event(EventType.suspended, event_id="evt-h")
    assert a.payload_hash() == b.payload_hash()
    assert a.payload_hash() != c.payload_hash()
