"""
Admin API Routes - Maintenance Endpoints

These endpoints are for the external schedulers (expiry sweep, dedup purge).
Authentication is via Admin API Key, not user JWTs.
"""

from datetime import timedelta

from fastapi import APIRouter, Depends, Query, status

from config import ApplicationConfig
from src.api.error import ServerError
from src.api.utils.api_keys import verify_admin_api_key
from src.api.utils.timeouts import with_store_timeout
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.subscriptions import (
    SweepExpiredSubscriptionsResponse,
    SweepExpiredSubscriptionsUseCase,
)
from src.app.use_cases.webhooks import PurgeProcessedEventsResponse, PurgeProcessedEventsUseCase
from src.depends import get_unit_of_work

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(verify_admin_api_key)])


@router.post(
    "/subscriptions/sweep",
    status_code=status.HTTP_200_OK,
    response_model=SweepExpiredSubscriptionsResponse,
)
async def sweep_expired_subscriptions(
    batch_size: int = Query(default=100, ge=1, le=1000),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Sweep Expired Subscriptions

    Persists expired trials and grace periods. Rows changed concurrently are
    skipped and picked up by the next sweep.

    Requires: X-Admin-API-Key header

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
    """
    use_case = SweepExpiredSubscriptionsUseCase(uow)
    result = await with_store_timeout(
        use_case.execute(batch_size=batch_size), "sweep_expired_subscriptions"
    )

    if result.is_err():
        raise ServerError(result.error)

    return result.value


@router.post(
    "/processed-events/purge",
    status_code=status.HTTP_200_OK,
    response_model=PurgeProcessedEventsResponse,
)
async def purge_processed_events(
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Purge Processed Events

    Drops dedup records older than DEDUP_RETENTION_DAYS.

    Requires: X-Admin-API-Key header
    """
    use_case = PurgeProcessedEventsUseCase(
        uow, retention=timedelta(days=ApplicationConfig.DEDUP_RETENTION_DAYS)
    )
    result = await with_store_timeout(use_case.execute(), "purge_processed_events")

    if result.is_err():
        raise ServerError(result.error)

    return result.value
