"""Host profile model."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


# -1 means unlimited
SUBSCRIPTION_LISTING_LIMITS = {
    "basic": 5,
    "pro": 20,
    "premium": -1,
}


class HostProfile(BaseModel):
    """Host account fields relevant to listing limits and rewards."""
    host_id: str = Field(..., description="Host ID (auth user ID)")
    email: Optional[str] = Field(None, description="Email address")
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    points: int = Field(default=0, ge=0, description="Current reward balance")
    subscription_status: str = Field(default="inactive", description="Status: active, inactive, cancelled")
    subscription_plan: str = Field(default="basic", description="Plan: basic, pro, premium")
    subscription_end_date: Optional[datetime] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def listing_limit(self) -> int:
        return SUBSCRIPTION_LISTING_LIMITS.get(self.subscription_plan, 0)
