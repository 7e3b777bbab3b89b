from fastapi import APIRouter, Depends, status

from src.api.error import ClientError, ServerError
from src.api.utils.api_keys import verify_service_api_key
from src.api.utils.timeouts import with_store_timeout
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.subscriptions import GetSubscriptionUseCase, SubscriptionResponse
from src.depends import get_unit_of_work

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


@router.get(
    "/{tenant_id}",
    status_code=status.HTTP_200_OK,
    response_model=SubscriptionResponse,
    dependencies=[Depends(verify_service_api_key)],
)
async def get_subscription(
    tenant_id: str,
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Get Subscription

    Stored record plus the effective status as of now.

    Raises:
        - 401 Unauthorized: Missing or invalid service API key
        - 404 Not Found: SUBSCRIPTION_NOT_FOUND
    """
    use_case = GetSubscriptionUseCase(uow)
    result = await with_store_timeout(use_case.execute(tenant_id), "get_subscription")

    if result.is_err():
        error = result.error
        if error.code == "SUBSCRIPTION_NOT_FOUND":
            raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
        raise ServerError(error)

    return result.value
