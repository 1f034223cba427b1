"""Host reward models: ledger entries, tiers and the redemption catalogue."""

from typing import Optional
from pydantic import BaseModel, Field, field_validator


class PointsTransaction(BaseModel):
    """Append-only ledger entry. ``balance`` is the host balance right after this entry."""
    transaction_id: Optional[str] = Field(None, description="Ledger row ID")
    host_id: str = Field(..., description="Host ID")
    points: int = Field(..., description="Signed point delta")
    reason: str = Field(..., description="Why the points moved")
    balance: int = Field(..., ge=0, description="Balance snapshot after this entry")
    created_at: Optional[str] = None

    @field_validator("points")
    @classmethod
    def _non_zero(cls, value: int) -> int:
        if value == 0:
            raise ValueError("Point delta must be non-zero")
        return value


class RewardTier(BaseModel):
    """Host tier derived from the current balance."""
    name: str
    min_points: int
    next_tier: Optional[str] = None
    next_tier_points: Optional[int] = None


class RewardOption(BaseModel):
    """Redeemable e-wallet credit."""
    points: int = Field(..., gt=0, description="Points cost")
    reward: str = Field(..., description="Reward label, unique per host claim")
    credit_value: int = Field(default=0, ge=0, description="Credit value in PHP")


class RedeemedReward(BaseModel):
    """Code issued for a redeemed reward."""
    code: str = Field(..., min_length=8, max_length=8)
    reward: str
    credit_value: int = 0
    transaction: PointsTransaction
