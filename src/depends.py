from datetime import timedelta

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.utils.jwt import verify_jwt
from src.app.services.retry import RetryPolicy
from src.app.services.subscription_locks import SubscriptionLockRegistry
from src.domain.lifecycle import LifecyclePolicy

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer()

# Process-wide: serializes lifecycle events per subscription reference
subscription_locks = SubscriptionLockRegistry()


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_subscription_locks() -> SubscriptionLockRegistry:
    return subscription_locks


def get_lifecycle_policy() -> LifecyclePolicy:
    return LifecyclePolicy(
        trial_grace=timedelta(days=ApplicationConfig.TRIAL_GRACE_DAYS),
        cancellation_grace=timedelta(days=ApplicationConfig.CANCELLATION_GRACE_DAYS),
    )


def get_retry_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=ApplicationConfig.WEBHOOK_MAX_ATTEMPTS,
        base_delay_seconds=ApplicationConfig.RETRY_BASE_DELAY_SECONDS,
        max_delay_seconds=ApplicationConfig.RETRY_MAX_DELAY_SECONDS,
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """
    Dependency to extract and verify JWT token from Authorization header.

    Args:
        credentials: Bearer token from Authorization header

    Returns:
        Decoded JWT payload containing user_id, tenant_id, role

    Raises:
        HTTPException: 401 if token is invalid or expired
    """
    token = credentials.credentials
    payload = verify_jwt(token)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    return payload
