"""
Shared-Secret Header Authentication

Service-to-service auth for the billing provider webhook, the product services
calling the entitlement checks, and the schedulers calling admin endpoints.
Different from user JWT authentication.
"""

import hmac
from typing import Optional

from fastapi import Header, status
from libs.result import Error
from src.api.error import ClientError
from config import ApplicationConfig


def _verify(provided: Optional[str], expected: str, header_name: str) -> bool:
    if not provided:
        raise ClientError(
            Error("UNAUTHORIZED", f"{header_name} header required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    if not hmac.compare_digest(provided.encode(), expected.encode()):
        raise ClientError(
            Error("INVALID_API_KEY", f"Invalid {header_name}"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    return True


async def verify_admin_api_key(x_admin_api_key: str = Header(None)):
    """
    Verify admin API key from X-Admin-API-Key header.

    Used by the schedulers driving sweep, purge and usage reset.

    Raises:
        ClientError: 401 if key is missing or invalid
    """
    return _verify(x_admin_api_key, ApplicationConfig.ADMIN_API_KEY, "X-Admin-API-Key")


async def verify_service_api_key(x_service_api_key: str = Header(None)):
    """Verify X-Service-API-Key for entitlement and usage calls"""
    return _verify(x_service_api_key, ApplicationConfig.SERVICE_API_KEY, "X-Service-API-Key")


async def verify_webhook_secret(x_webhook_secret: str = Header(None)):
    """Verify X-Webhook-Secret sent by the billing provider"""
    return _verify(x_webhook_secret, ApplicationConfig.WEBHOOK_SECRET, "X-Webhook-Secret")
