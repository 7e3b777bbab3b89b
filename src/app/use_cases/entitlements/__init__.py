"""Entitlement use cases - feature, quota and access checks."""

from .check_access_use_case import CheckAccessUseCase
from .check_feature_use_case import CheckFeatureUseCase
from .check_quota_use_case import CheckQuotaUseCase
from .consume_quota_use_case import ConsumeQuotaUseCase
from .dtos import EntitlementDecisionResponse, EntitlementsSummaryResponse, QuotaUsage
from .get_entitlements_use_case import GetEntitlementsUseCase

__all__ = [
    "CheckAccessUseCase",
    "CheckFeatureUseCase",
    "CheckQuotaUseCase",
    "ConsumeQuotaUseCase",
    "GetEntitlementsUseCase",
    "EntitlementDecisionResponse",
    "EntitlementsSummaryResponse",
    "QuotaUsage",
]
