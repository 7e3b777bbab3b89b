"""
Use Case: Sweep Expired Subscriptions

Persists pending lazy transitions (Trialing -> GracePeriod, GracePeriod ->
Cancelled) so stored status stays fresh for list views. Entitlement checks do
not depend on it: they derive the effective status on every read.
"""

import logging
from datetime import datetime
from typing import Optional

from libs.result import Result, Return
from src.app.repositories.subscription_repository import CasOutcome
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now
from src.domain.entities import AuditEvent
from src.domain.lifecycle import materialize_expiry

from .dtos import SweepExpiredSubscriptionsResponse, SweptSubscription

logger = logging.getLogger(__name__)


class SweepExpiredSubscriptionsUseCase:
    """
    Materialize expired trials and grace periods.

    Business Logic:
    1. List subscriptions whose stored status lags the effective status
    2. For each, compute the expiry transition and CAS it against the read version
    3. Skip rows that changed concurrently (the next sweep picks them up)
    4. Emit a subscription_transition audit event per updated row
    5. Commit once per row so one conflict does not undo the others
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self, now: Optional[datetime] = None, batch_size: int = 100
    ) -> Result[SweepExpiredSubscriptionsResponse]:
        now = now or utc_now()
        updated = []
        skipped = 0

        async with self.uow:
            candidates = await self.uow.subscriptions.list_expired(now, limit=batch_size)
            # Computed before any write, a rollback expires the loaded rows
            pending = [
                (subscription.version, materialize_expiry(subscription, now))
                for subscription in candidates
            ]

            for expected_version, transition in pending:
                if transition is None:
                    continue

                swept = transition.subscription
                outcome = await self.uow.subscriptions.compare_and_swap(
                    swept.tenant_id, expected_version, swept
                )
                if outcome != CasOutcome.success:
                    await self.uow.rollback()
                    skipped += 1
                    logger.warning(f"Skipped expiry of tenant {swept.tenant_id}: {outcome.value}")
                    continue

                await self.uow.audit_events.create(
                    AuditEvent(
                        tenant_id=swept.tenant_id,
                        action="subscription_transition",
                        event_id=None,
                        old_status=transition.from_status.value,
                        new_status=transition.to_status.value,
                        event_metadata={
                            "effects": list(transition.effects),
                            "version": swept.version,
                            "subscription_reference": swept.external_reference,
                        },
                        created_at=now,
                    )
                )
                await self.uow.commit()

                logger.info(
                    f"Tenant {swept.tenant_id} subscription "
                    f"{transition.from_status.value} -> {transition.to_status.value} (expiry)"
                )
                updated.append(
                    SweptSubscription(
                        tenant_id=swept.tenant_id,
                        previous_status=transition.from_status.value,
                        status=transition.to_status.value,
                        version=transition.subscription.version,
                    )
                )

        return Return.ok(
            SweepExpiredSubscriptionsResponse(
                examined=len(candidates),
                updated=updated,
                skipped_conflicts=skipped,
            )
        )
