"""
Webhook API Routes - Billing Provider Lifecycle Notifications

Authentication is via the shared X-Webhook-Secret header. A non-2xx answer
tells the provider to redeliver, so only retryable failures return 5xx.
"""

from fastapi import APIRouter, Depends, status

from src.api.error import ClientError, ServerError
from src.api.utils.api_keys import verify_webhook_secret
from src.api.utils.timeouts import with_store_timeout
from src.app.services.retry import RetryPolicy
from src.app.services.subscription_locks import SubscriptionLockRegistry
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.webhooks import IngestLifecycleEventResponse, IngestLifecycleEventUseCase
from src.depends import (
    get_lifecycle_policy,
    get_retry_policy,
    get_subscription_locks,
    get_unit_of_work,
)
from src.domain.entities import LifecycleEvent
from src.domain.lifecycle import LifecyclePolicy

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post(
    "/lifecycle",
    status_code=status.HTTP_200_OK,
    response_model=IngestLifecycleEventResponse,
    dependencies=[Depends(verify_webhook_secret)],
)
async def ingest_lifecycle_event(
    event: LifecycleEvent,
    uow: UnitOfWork = Depends(get_unit_of_work),
    locks: SubscriptionLockRegistry = Depends(get_subscription_locks),
    policy: LifecyclePolicy = Depends(get_lifecycle_policy),
    retry_policy: RetryPolicy = Depends(get_retry_policy),
):
    """
    Ingest Lifecycle Event

    Applies a Subscribed, ChangePlan, ChangeQuantity, Suspended, Reinstated,
    Renewed or Unsubscribed notification. Redeliveries of an already processed
    event answer 200 with outcome "duplicate_ignored".

    Requires: X-Webhook-Secret header

    Raises:
        - 401 Unauthorized: Missing or invalid webhook secret
        - 404 Not Found: UNKNOWN_SUBSCRIPTION
        - 409 Conflict: INVALID_TRANSITION, TENANT_MISMATCH
        - 422 Unprocessable Entity: Malformed payload
        - 503 Service Unavailable: RETRY_EXHAUSTED, STORE_TIMEOUT, STORE_UNAVAILABLE
    """
    use_case = IngestLifecycleEventUseCase(uow, locks, policy=policy, retry_policy=retry_policy)
    result = await with_store_timeout(use_case.execute(event), "ingest_lifecycle_event")

    if result.is_err():
        error = result.error
        if error.code == "UNKNOWN_SUBSCRIPTION":
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        elif error.code in ("INVALID_TRANSITION", "TENANT_MISMATCH"):
            raise ClientError(error, status_code=status.HTTP_409_CONFLICT)
        elif error.code == "RETRY_EXHAUSTED":
            raise ServerError(error, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
        raise ServerError(error)

    return result.value
