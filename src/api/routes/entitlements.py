"""
Entitlement API Routes - Request-Time Checks

Called by product services before an operation. A denial is a normal 200
answer with allowed=false and a machine-readable reason.
"""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from src.api.utils.api_keys import verify_service_api_key
from src.api.utils.errors import raise_for_error
from src.api.utils.timeouts import with_store_timeout
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.entitlements import (
    CheckAccessUseCase,
    CheckFeatureUseCase,
    CheckQuotaUseCase,
    EntitlementDecisionResponse,
)
from src.depends import get_unit_of_work
from src.domain.entities import OperationKind

router = APIRouter(
    prefix="/entitlements",
    tags=["Entitlements"],
    dependencies=[Depends(verify_service_api_key)],
)


class QuotaCheckRequest(BaseModel):
    requested_delta: int = Field(default=1, ge=0)


class AccessCheckRequest(BaseModel):
    operation: OperationKind


@router.get(
    "/{tenant_id}/features/{feature}",
    status_code=status.HTTP_200_OK,
    response_model=EntitlementDecisionResponse,
)
async def check_feature(
    tenant_id: str,
    feature: str,
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Check Feature

    Denials carry required_tier, the cheapest plan with the feature.

    Raises:
        - 400 Bad Request: UNKNOWN_FEATURE
        - 401 Unauthorized: Missing or invalid service API key
        - 404 Not Found: SUBSCRIPTION_NOT_FOUND
    """
    use_case = CheckFeatureUseCase(uow)
    result = await with_store_timeout(use_case.execute(tenant_id, feature), "check_feature")

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/{tenant_id}/quotas/{metric}/check",
    status_code=status.HTTP_200_OK,
    response_model=EntitlementDecisionResponse,
)
async def check_quota(
    tenant_id: str,
    metric: str,
    request: QuotaCheckRequest = QuotaCheckRequest(),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Check Quota

    Read-only; does not reserve anything. Use /usage/.../consume to check and
    increment atomically.

    Raises:
        - 400 Bad Request: UNKNOWN_METRIC, INVALID_DELTA
        - 401 Unauthorized: Missing or invalid service API key
        - 404 Not Found: SUBSCRIPTION_NOT_FOUND
    """
    use_case = CheckQuotaUseCase(uow)
    result = await with_store_timeout(
        use_case.execute(tenant_id, metric, request.requested_delta), "check_quota"
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/{tenant_id}/access",
    status_code=status.HTTP_200_OK,
    response_model=EntitlementDecisionResponse,
)
async def check_access(
    tenant_id: str,
    request: AccessCheckRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Check Access

    Status gating for read, sensitive_read, write and create operations.

    Raises:
        - 401 Unauthorized: Missing or invalid service API key
        - 404 Not Found: SUBSCRIPTION_NOT_FOUND
    """
    use_case = CheckAccessUseCase(uow)
    result = await with_store_timeout(use_case.execute(tenant_id, request.operation), "check_access")

    if result.is_err():
        raise_for_error(result.error)

    return result.value
