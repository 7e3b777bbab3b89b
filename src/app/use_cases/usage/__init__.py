"""Usage counter use cases."""

from .decrement_usage_use_case import DecrementUsageUseCase
from .dtos import DecrementUsageResponse, IncrementUsageResponse, ResetUsageResponse
from .reset_usage_use_case import ResetUsageUseCase
from .try_increment_usage_use_case import TryIncrementUsageUseCase

__all__ = [
    "TryIncrementUsageUseCase",
    "DecrementUsageUseCase",
    "ResetUsageUseCase",
    "IncrementUsageResponse",
    "DecrementUsageResponse",
    "ResetUsageResponse",
]
