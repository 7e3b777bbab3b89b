from fastapi import status

from libs.result import Error
from src.api.error import ClientError, ServerError


def raise_for_error(error: Error):
    """Map the error codes shared by the entitlement and usage use cases"""
    if error.code in ("UNKNOWN_FEATURE", "UNKNOWN_METRIC", "INVALID_DELTA"):
        raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
    elif error.code == "SUBSCRIPTION_NOT_FOUND":
        raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
    elif error.code == "RETRY_EXHAUSTED":
        raise ServerError(error, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    raise ServerError(error)
