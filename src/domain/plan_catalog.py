"""
Plan Catalog

Static, versioned table of plan tiers with their limits and feature flags.
Read-only at runtime.
"""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict

from src.domain.entities.enums import PlanTier

CATALOG_VERSION = 3
UNLIMITED = -1

# Metrics
EXTERNAL_USERS = "externalUsers"
CLIENT_SPACES = "clientSpaces"
LIBRARIES = "libraries"
API_CALLS_THIS_PERIOD = "apiCallsThisPeriod"

METRICS = (EXTERNAL_USERS, CLIENT_SPACES, LIBRARIES, API_CALLS_THIS_PERIOD)

# Features
ADVANCED_POLICIES = "advancedPolicies"
AUDIT_EXPORT = "auditExport"
BULK_OPERATIONS = "bulkOperations"
API_ACCESS = "apiAccess"
SCHEDULED_REVIEWS = "scheduledReviews"
CUSTOM_REPORTS = "customReports"
SSO_INTEGRATION = "ssoIntegration"

FEATURES = (
    ADVANCED_POLICIES,
    AUDIT_EXPORT,
    BULK_OPERATIONS,
    API_ACCESS,
    SCHEDULED_REVIEWS,
    CUSTOM_REPORTS,
    SSO_INTEGRATION,
)

# Cheapest first, used to find the minimum tier for a feature
TIER_ORDER = (PlanTier.free, PlanTier.pro, PlanTier.enterprise)


class PlanDefinition(BaseModel):
    """Immutable definition of one plan tier"""

    model_config = ConfigDict(frozen=True)

    tier: PlanTier
    version: int
    display_name: str
    description: str
    limits: Dict[str, int]
    features: Dict[str, bool]
    audit_retention_days: int
    support_level: str

    def limit_for(self, metric: str) -> int:
        return self.limits[metric]

    def has_feature(self, feature: str) -> bool:
        return self.features.get(feature, False)


PLANS: Dict[PlanTier, PlanDefinition] = {
    PlanTier.free: PlanDefinition(
        tier=PlanTier.free,
        version=CATALOG_VERSION,
        display_name="Free",
        description="Basic external user management for small teams",
        limits={
            EXTERNAL_USERS: 10,
            CLIENT_SPACES: 5,
            LIBRARIES: 25,
            API_CALLS_THIS_PERIOD: 1000,
        },
        features={
            ADVANCED_POLICIES: False,
            AUDIT_EXPORT: False,
            BULK_OPERATIONS: False,
            API_ACCESS: False,
            SCHEDULED_REVIEWS: False,
            CUSTOM_REPORTS: False,
            SSO_INTEGRATION: False,
        },
        audit_retention_days=30,
        support_level="community",
    ),
    PlanTier.pro: PlanDefinition(
        tier=PlanTier.pro,
        version=CATALOG_VERSION,
        display_name="Pro",
        description="Advanced policies and audit export for growing businesses",
        limits={
            EXTERNAL_USERS: 50,
            CLIENT_SPACES: 20,
            LIBRARIES: 100,
            API_CALLS_THIS_PERIOD: 50000,
        },
        features={
            ADVANCED_POLICIES: True,
            AUDIT_EXPORT: True,
            BULK_OPERATIONS: True,
            API_ACCESS: True,
            SCHEDULED_REVIEWS: False,
            CUSTOM_REPORTS: False,
            SSO_INTEGRATION: False,
        },
        audit_retention_days=90,
        support_level="priority",
    ),
    PlanTier.enterprise: PlanDefinition(
        tier=PlanTier.enterprise,
        version=CATALOG_VERSION,
        display_name="Enterprise",
        description="Unlimited resources for large organisations",
        limits={
            EXTERNAL_USERS: UNLIMITED,
            CLIENT_SPACES: UNLIMITED,
            LIBRARIES: UNLIMITED,
            API_CALLS_THIS_PERIOD: UNLIMITED,
        },
        features={
            ADVANCED_POLICIES: True,
            AUDIT_EXPORT: True,
            BULK_OPERATIONS: True,
            API_ACCESS: True,
            SCHEDULED_REVIEWS: True,
            CUSTOM_REPORTS: True,
            SSO_INTEGRATION: True,
        },
        audit_retention_days=UNLIMITED,
        support_level="dedicated",
    ),
}


def get_plan(tier: PlanTier) -> PlanDefinition:
    return PLANS[tier]


def is_known_metric(metric: str) -> bool:
    return metric in METRICS


def is_known_feature(feature: str) -> bool:
    return feature in FEATURES


def minimum_tier_for_feature(feature: str) -> Optional[PlanTier]:
    """Cheapest tier that has the feature enabled, None if no tier does"""
    for tier in TIER_ORDER:
        if PLANS[tier].has_feature(feature):
            return tier
    return None
