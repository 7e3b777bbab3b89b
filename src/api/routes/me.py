from fastapi import APIRouter, Depends, status

from src.api.utils.errors import raise_for_error
from src.api.utils.timeouts import with_store_timeout
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.entitlements import EntitlementsSummaryResponse, GetEntitlementsUseCase
from src.depends import get_current_user, get_unit_of_work

router = APIRouter(tags=["Me"])


@router.get(
    "/me/entitlements",
    status_code=status.HTTP_200_OK,
    response_model=EntitlementsSummaryResponse,
)
async def get_my_entitlements(
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Load Entitlements for the Caller's Tenant

    Plan, effective status, feature flags and usage against limits, for the
    tenant named in the JWT.

    Raises:
        - 401 Unauthorized: Invalid or expired JWT
        - 404 Not Found: SUBSCRIPTION_NOT_FOUND
    """
    tenant_id = current_user["tenant_id"]

    use_case = GetEntitlementsUseCase(uow)
    result = await with_store_timeout(use_case.execute(tenant_id), "get_entitlements")

    if result.is_err():
        raise_for_error(result.error)

    return result.value
