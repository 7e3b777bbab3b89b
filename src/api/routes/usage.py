"""
Usage API Routes - Usage Counters

consume checks the tenant's plan limit and status; increment takes an explicit
limit from the caller; release is unconditional; reset is for the period
scheduler and needs the admin key.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from libs.result import Error
from src.api.error import ClientError
from src.api.utils.api_keys import verify_admin_api_key, verify_service_api_key
from src.api.utils.errors import raise_for_error
from src.api.utils.timeouts import with_store_timeout
from src.app.services.retry import RetryPolicy
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.entitlements import ConsumeQuotaUseCase, EntitlementDecisionResponse
from src.app.use_cases.usage import (
    DecrementUsageResponse,
    DecrementUsageUseCase,
    IncrementUsageResponse,
    ResetUsageResponse,
    ResetUsageUseCase,
    TryIncrementUsageUseCase,
)
from src.depends import get_retry_policy, get_unit_of_work

router = APIRouter(prefix="/usage", tags=["Usage"])


class ConsumeRequest(BaseModel):
    delta: int = Field(default=1, ge=1)


class IncrementRequest(BaseModel):
    delta: int = Field(default=1, ge=1)
    limit: int = Field(..., ge=-1, description="-1 for unlimited")


class ReleaseRequest(BaseModel):
    delta: int = Field(default=1, ge=1)


class ResetRequest(BaseModel):
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None


@router.post(
    "/{tenant_id}/{metric}/consume",
    status_code=status.HTTP_200_OK,
    response_model=EntitlementDecisionResponse,
    dependencies=[Depends(verify_service_api_key)],
)
async def consume_quota(
    tenant_id: str,
    metric: str,
    request: ConsumeRequest = ConsumeRequest(),
    uow: UnitOfWork = Depends(get_unit_of_work),
    retry_policy: RetryPolicy = Depends(get_retry_policy),
):
    """
    Consume Quota

    Status gate, plan limit and atomic increment in one call.

    Raises:
        - 400 Bad Request: UNKNOWN_METRIC
        - 402 Payment Required: denied, details carry the decision
        - 404 Not Found: SUBSCRIPTION_NOT_FOUND
        - 503 Service Unavailable: RETRY_EXHAUSTED
    """
    use_case = ConsumeQuotaUseCase(uow, retry_policy=retry_policy)
    result = await with_store_timeout(
        use_case.execute(tenant_id, metric, request.delta), "consume_quota"
    )

    if result.is_err():
        raise_for_error(result.error)

    decision = result.value
    if not decision.allowed:
        raise ClientError(
            Error("ENTITLEMENT_DENIED", f"Quota for {metric} not available", reason=decision.reason),
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            details=decision.model_dump(),
        )

    return decision


@router.post(
    "/{tenant_id}/{metric}/increment",
    status_code=status.HTTP_200_OK,
    response_model=IncrementUsageResponse,
    dependencies=[Depends(verify_service_api_key)],
)
async def try_increment(
    tenant_id: str,
    metric: str,
    request: IncrementRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    retry_policy: RetryPolicy = Depends(get_retry_policy),
):
    """
    Try Increment

    Raises:
        - 400 Bad Request: UNKNOWN_METRIC, INVALID_DELTA, INVALID_LIMIT
        - 409 Conflict: LIMIT_EXCEEDED, details carry current and limit
        - 503 Service Unavailable: RETRY_EXHAUSTED
    """
    use_case = TryIncrementUsageUseCase(uow, retry_policy=retry_policy)
    result = await with_store_timeout(
        use_case.execute(tenant_id, metric, request.delta, request.limit), "try_increment"
    )

    if result.is_err():
        error = result.error
        if error.code == "INVALID_LIMIT":
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        raise_for_error(error)

    outcome = result.value
    if not outcome.incremented:
        raise ClientError(
            Error("LIMIT_EXCEEDED", f"Limit for {metric} reached"),
            status_code=status.HTTP_409_CONFLICT,
            details={"metric": metric, "current": outcome.value, "limit": outcome.limit},
        )

    return outcome


@router.post(
    "/{tenant_id}/{metric}/release",
    status_code=status.HTTP_200_OK,
    response_model=DecrementUsageResponse,
    dependencies=[Depends(verify_service_api_key)],
)
async def release_usage(
    tenant_id: str,
    metric: str,
    request: ReleaseRequest = ReleaseRequest(),
    uow: UnitOfWork = Depends(get_unit_of_work),
    retry_policy: RetryPolicy = Depends(get_retry_policy),
):
    """Release usage after a resource is deleted, floored at zero"""
    use_case = DecrementUsageUseCase(uow, retry_policy=retry_policy)
    result = await with_store_timeout(
        use_case.execute(tenant_id, metric, request.delta), "release_usage"
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/{tenant_id}/{metric}/reset",
    status_code=status.HTTP_200_OK,
    response_model=ResetUsageResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def reset_usage(
    tenant_id: str,
    metric: str,
    request: ResetRequest = ResetRequest(),
    uow: UnitOfWork = Depends(get_unit_of_work),
    retry_policy: RetryPolicy = Depends(get_retry_policy),
):
    """
    Reset Usage

    Requires: X-Admin-API-Key header

    Raises:
        - 400 Bad Request: UNKNOWN_METRIC, INVALID_PERIOD
    """
    use_case = ResetUsageUseCase(uow, retry_policy=retry_policy)
    result = await with_store_timeout(
        use_case.execute(tenant_id, metric, request.period_start, request.period_end),
        "reset_usage",
    )

    if result.is_err():
        error = result.error
        if error.code == "INVALID_PERIOD":
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        raise_for_error(error)

    return result.value
