"""
Use Case: Ingest Lifecycle Event

Applies a billing provider notification to the tenant's subscription.
Delivery is at-least-once and unordered, so ingestion is idempotent and trusts
the persisted state rather than provider timestamps.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from libs.result import Error, Result, Return
from src.app.repositories.subscription_repository import CasOutcome
from src.app.services.retry import RetryPolicy
from src.app.services.subscription_locks import SubscriptionLockRegistry
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now
from src.domain.entities import (
    AuditEvent,
    LifecycleEvent,
    LifecycleEventType,
    ProcessedEvent,
    Subscription,
)
from src.domain.lifecycle import (
    InvalidTransitionError,
    LifecyclePolicy,
    Transition,
    apply_event,
)

from .dtos import APPLIED, DUPLICATE_IGNORED, IngestLifecycleEventResponse

logger = logging.getLogger(__name__)


class IngestLifecycleEventUseCase:
    """
    Ingest one lifecycle event.

    Business Logic:
    1. Event already in the dedup table -> duplicate_ignored, store untouched
    2. Resolve tenant from the subscription reference (a Subscribed event for an
       unknown reference may name its tenant)
    3. Read the current subscription and its version
    4. Compute the transition with the state machine
    5. Create or compare-and-swap against the version read in 3
    6. On version conflict roll back, back off and go back to 3
    7. Record the event in the dedup table, emit the audit event, commit

    Steps 1-7 hold the per-subscription lock, so two events for the same
    subscription never interleave in this process.

    Errors:
        - UNKNOWN_SUBSCRIPTION: Reference does not resolve to a tenant
        - TENANT_MISMATCH: Event names a different tenant than the reference
        - INVALID_TRANSITION: Event not allowed from the current status
        - RETRY_EXHAUSTED: Version conflicts on every attempt (retryable)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        locks: SubscriptionLockRegistry,
        policy: LifecyclePolicy = LifecyclePolicy(),
        retry_policy: RetryPolicy = RetryPolicy(),
        clock: Callable[[], datetime] = utc_now,
    ):
        self.uow = uow
        self.locks = locks
        self.policy = policy
        self.retry_policy = retry_policy
        self.clock = clock

    async def execute(self, event: LifecycleEvent) -> Result[IngestLifecycleEventResponse]:
        """
        Execute ingest lifecycle event use case.

        Args:
            event: Validated lifecycle event

        Returns:
            Result[IngestLifecycleEventResponse] with outcome applied or
            duplicate_ignored
        """
        async with self.locks.hold(event.subscription_reference):
            async with self.uow:
                # 1. Dedup check
                if await self.uow.processed_events.exists(
                    event.subscription_reference, event.event_id
                ):
                    logger.info(
                        f"Duplicate lifecycle event {event.event_id} "
                        f"for {event.subscription_reference} ignored"
                    )
                    return Return.ok(self._duplicate(event))

                for attempt in range(self.retry_policy.max_attempts):
                    result = await self._attempt(event)
                    if result is not None:
                        return result

                    # 6. Version conflict
                    await self.uow.rollback()
                    logger.warning(
                        f"Version conflict applying {event.event_type.value} "
                        f"{event.event_id} to {event.subscription_reference} "
                        f"(attempt {attempt + 1}/{self.retry_policy.max_attempts})"
                    )
                    if attempt + 1 < self.retry_policy.max_attempts:
                        await self.retry_policy.backoff(attempt)

        logger.warning(
            f"Giving up on lifecycle event {event.event_id} for "
            f"{event.subscription_reference}, provider must redeliver"
        )
        return Return.err(
            Error(
                "RETRY_EXHAUSTED",
                "Subscription is under contention, event not applied",
                reason=f"{self.retry_policy.max_attempts} version conflicts",
            )
        )

    async def _resolve(self, event: LifecycleEvent) -> Optional[Subscription]:
        current = await self.uow.subscriptions.get_by_reference(event.subscription_reference)
        if current is None and event.event_type == LifecycleEventType.subscribed and event.tenant_id:
            current = await self.uow.subscriptions.get_by_tenant(event.tenant_id)
        return current

    async def _attempt(self, event: LifecycleEvent) -> Optional[Result[IngestLifecycleEventResponse]]:
        """One read-compute-write pass. None means version conflict."""
        now = self.clock()

        # 2-3. Resolve tenant and read current state
        current = await self._resolve(event)
        if current is None and not (
            event.event_type == LifecycleEventType.subscribed and event.tenant_id
        ):
            logger.error(
                f"Lifecycle event {event.event_id} ({event.event_type.value}) references "
                f"unknown subscription {event.subscription_reference}"
            )
            return Return.err(
                Error(
                    "UNKNOWN_SUBSCRIPTION",
                    "Subscription reference is not known",
                    reason=event.subscription_reference,
                )
            )

        if current is not None and event.tenant_id and event.tenant_id != current.tenant_id:
            logger.error(
                f"Lifecycle event {event.event_id} names tenant {event.tenant_id} but "
                f"{event.subscription_reference} belongs to {current.tenant_id}"
            )
            return Return.err(
                Error("TENANT_MISMATCH", "Event tenant does not own the subscription")
            )

        # 4. Compute transition
        try:
            transition = apply_event(current, event, now, self.policy)
        except InvalidTransitionError as exc:
            logger.error(
                f"Rejected lifecycle event {event.event_id} for "
                f"{event.subscription_reference}: {exc}"
            )
            return Return.err(Error("INVALID_TRANSITION", str(exc)))

        # 5. Write
        if transition.created:
            if not await self.uow.subscriptions.create(transition.subscription):
                return None
        elif not transition.is_noop:
            outcome = await self.uow.subscriptions.compare_and_swap(
                current.tenant_id, current.version, transition.subscription
            )
            if outcome == CasOutcome.version_conflict:
                return None
            if outcome == CasOutcome.not_found:
                logger.error(f"Subscription of tenant {current.tenant_id} disappeared")
                return Return.err(
                    Error("UNKNOWN_SUBSCRIPTION", "Subscription no longer exists")
                )

        record = transition.subscription or current
        tenant_id = record.tenant_id

        # 7. Dedup record, atomic with the write above
        recorded = await self.uow.processed_events.insert_if_absent(
            ProcessedEvent(
                subscription_reference=event.subscription_reference,
                event_id=event.event_id,
                tenant_id=tenant_id,
                event_type=event.event_type,
                payload_hash=event.payload_hash(),
                processed_at=now,
            )
        )
        if not recorded:
            # A concurrent delivery of the same event committed first
            await self.uow.rollback()
            logger.info(f"Lifecycle event {event.event_id} applied concurrently, ignored")
            return Return.ok(self._duplicate(event))

        if not transition.is_noop:
            await self.uow.audit_events.create(self._audit(event, transition, now))

        await self.uow.commit()

        if transition.is_noop:
            logger.info(
                f"Lifecycle event {event.event_type.value} {event.event_id} is a no-op "
                f"for tenant {tenant_id} in {transition.to_status.value}"
            )
        else:
            logger.info(
                f"Tenant {tenant_id} subscription "
                f"{transition.from_status.value if transition.from_status else '(none)'} -> "
                f"{transition.to_status.value} on {event.event_type.value} {event.event_id}"
            )

        return Return.ok(
            IngestLifecycleEventResponse(
                outcome=APPLIED,
                event_id=event.event_id,
                subscription_reference=event.subscription_reference,
                tenant_id=tenant_id,
                transitioned=not transition.is_noop,
                previous_status=transition.from_status.value if transition.from_status else None,
                status=transition.to_status.value,
                plan_tier=record.plan_tier.value,
                version=record.version,
                effects=list(transition.effects),
            )
        )

    @staticmethod
    def _duplicate(event: LifecycleEvent) -> IngestLifecycleEventResponse:
        return IngestLifecycleEventResponse(
            outcome=DUPLICATE_IGNORED,
            event_id=event.event_id,
            subscription_reference=event.subscription_reference,
        )

    @staticmethod
    def _audit(event: LifecycleEvent, transition: Transition, now: datetime) -> AuditEvent:
        subscription = transition.subscription
        return AuditEvent(
            tenant_id=subscription.tenant_id,
            action="subscription_transition",
            event_id=event.event_id,
            old_status=transition.from_status.value if transition.from_status else None,
            new_status=transition.to_status.value,
            event_metadata={
                "event_type": event.event_type.value,
                "subscription_reference": event.subscription_reference,
                "plan_tier": subscription.plan_tier.value,
                "quantity": subscription.quantity,
                "version": subscription.version,
                "effects": list(transition.effects),
                "occurred_at": event.occurred_at.isoformat(),
            },
            created_at=now,
        )
