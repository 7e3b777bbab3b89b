"""
Request-level timeout for store-bound use cases.

A timed-out use case is cancelled, its unit of work rolls back, and the
caller gets a retryable 503. It is never reported as applied.
"""

import asyncio
import logging
from typing import Awaitable, TypeVar

from fastapi import status

from config import ApplicationConfig
from libs.result import Error
from src.api.error import ServerError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_store_timeout(awaitable: Awaitable[T], operation: str) -> T:
    timeout = ApplicationConfig.STORE_TIMEOUT_SECONDS
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"{operation} exceeded {timeout}s store timeout")
        raise ServerError(
            Error("STORE_TIMEOUT", "Store did not answer in time, retry later", reason=operation),
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
