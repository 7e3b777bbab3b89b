"""
Entitlement Guards

FastAPI dependencies for routes of the product services that embed this
package. The tenant comes from the verified JWT.

Plan-related denials (feature_not_in_plan, quota_exceeded) answer 402 Payment
Required, status-related ones (suspended, cancelled, grace period, access
ended) answer 403 Forbidden. Both carry the structured decision in details.

Usage:
    @router.post("/exports", dependencies=[Depends(require_feature("auditExport"))])
    async def create_export(...):
        ...
"""

from fastapi import Depends, status

from libs.result import Error
from src.api.error import ClientError
from src.api.utils.errors import raise_for_error
from src.api.utils.timeouts import with_store_timeout
from src.app.services.retry import RetryPolicy
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.entitlements import (
    CheckAccessUseCase,
    CheckFeatureUseCase,
    ConsumeQuotaUseCase,
    EntitlementDecisionResponse,
)
from src.depends import get_current_user, get_retry_policy, get_unit_of_work
from src.domain.entities import OperationKind
from src.domain.entitlements import DenialReason

_PLAN_REASONS = (DenialReason.feature_not_in_plan.value, DenialReason.quota_exceeded.value)


def _raise_denied(decision: EntitlementDecisionResponse, message: str):
    status_code = (
        status.HTTP_402_PAYMENT_REQUIRED
        if decision.reason in _PLAN_REASONS
        else status.HTTP_403_FORBIDDEN
    )
    raise ClientError(
        Error("ENTITLEMENT_DENIED", message, reason=decision.reason),
        status_code=status_code,
        details=decision.model_dump(),
    )


def require_feature(feature: str):
    async def dependency(
        current_user: dict = Depends(get_current_user),
        uow: UnitOfWork = Depends(get_unit_of_work),
    ) -> EntitlementDecisionResponse:
        use_case = CheckFeatureUseCase(uow)
        result = await with_store_timeout(
            use_case.execute(current_user["tenant_id"], feature), "require_feature"
        )
        if result.is_err():
            raise_for_error(result.error)

        decision = result.value
        if not decision.allowed:
            _raise_denied(decision, f"Feature '{feature}' is not available")
        return decision

    return dependency


def require_quota(metric: str, delta: int = 1):
    """Consumes delta units on success; callers release them if the operation fails"""

    async def dependency(
        current_user: dict = Depends(get_current_user),
        uow: UnitOfWork = Depends(get_unit_of_work),
        retry_policy: RetryPolicy = Depends(get_retry_policy),
    ) -> EntitlementDecisionResponse:
        use_case = ConsumeQuotaUseCase(uow, retry_policy=retry_policy)
        result = await with_store_timeout(
            use_case.execute(current_user["tenant_id"], metric, delta), "require_quota"
        )
        if result.is_err():
            raise_for_error(result.error)

        decision = result.value
        if not decision.allowed:
            _raise_denied(decision, f"Quota for '{metric}' is not available")
        return decision

    return dependency


def require_access(operation: OperationKind):
    async def dependency(
        current_user: dict = Depends(get_current_user),
        uow: UnitOfWork = Depends(get_unit_of_work),
    ) -> EntitlementDecisionResponse:
        use_case = CheckAccessUseCase(uow)
        result = await with_store_timeout(
            use_case.execute(current_user["tenant_id"], operation), "require_access"
        )
        if result.is_err():
            raise_for_error(result.error)

        decision = result.value
        if not decision.allowed:
            _raise_denied(decision, f"Operation '{operation.value}' is not allowed")
        return decision

    return dependency
