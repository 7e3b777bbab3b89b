"""
LifecycleEvent

Inbound notification from the billing provider. Received and validated, never
stored beyond its dedup record.
"""

import hashlib
import json
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from .enums import LifecycleEventType, PlanTier


class LifecycleEvent(BaseModel):
    """
    Lifecycle notification payload.

    Business Rules:
    - (subscription_reference, event_id) is globally unique per provider
    - Subscribed and ChangePlan carry the plan tier
    - ChangeQuantity carries the new quantity
    - tenant_id is only needed when a Subscribed event references a
      subscription this service has not seen yet
    """

    event_id: str = Field(..., min_length=1, max_length=255)
    subscription_reference: str = Field(..., min_length=1, max_length=255)
    event_type: LifecycleEventType
    occurred_at: datetime = Field(..., description="Provider timestamp")

    plan_tier: Optional[PlanTier] = None
    quantity: Optional[int] = Field(default=None, ge=0)
    trial_ends_at: Optional[datetime] = None
    tenant_id: Optional[str] = Field(default=None, min_length=1, max_length=64)

    @model_validator(mode="after")
    def check_payload(self) -> "LifecycleEvent":
        if (
            self.event_type
            in (LifecycleEventType.subscribed, LifecycleEventType.change_plan)
            and self.plan_tier is None
        ):
            raise ValueError(f"{self.event_type.value} requires plan_tier")
        if self.event_type == LifecycleEventType.change_quantity and self.quantity is None:
            raise ValueError("ChangeQuantity requires quantity")
        return self

    def payload_hash(self) -> str:
        """sha256 of the canonical JSON payload, kept on the dedup record"""
        payload = json.dumps(self.model_dump(mode="json"), sort_keys=True)
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()
