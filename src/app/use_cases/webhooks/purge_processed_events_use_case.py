"""
Use Case: Purge Processed Events

Drops dedup records older than the dedup window. Called by an external
scheduler through the admin API.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utc_now

from .dtos import PurgeProcessedEventsResponse

logger = logging.getLogger(__name__)


class PurgeProcessedEventsUseCase:
    """
    Purge dedup records outside the retention window.

    A redelivery older than the window would be applied again, so the window
    must exceed the provider's redelivery horizon.
    """

    def __init__(self, uow: UnitOfWork, retention: timedelta):
        self.uow = uow
        self.retention = retention

    async def execute(self, now: Optional[datetime] = None) -> Result[PurgeProcessedEventsResponse]:
        cutoff = (now or utc_now()) - self.retention
        async with self.uow:
            purged = await self.uow.processed_events.delete_older_than(cutoff)
            await self.uow.commit()

        logger.info(f"Purged {purged} processed lifecycle events older than {cutoff.isoformat()}")
        return Return.ok(PurgeProcessedEventsResponse(purged=purged, cutoff=cutoff.isoformat()))
