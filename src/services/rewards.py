"""Host rewards - append-only points ledger, tiers and redemptions."""

import secrets
import string
from typing import Optional

from src.models.host import HostProfile
from src.models.rewards import (
    PointsTransaction,
    RedeemedReward,
    RewardOption,
    RewardTier,
)
from src.services import supabase_client
from src.utils.errors import InsufficientPointsError, RewardAlreadyClaimedError, SupabaseError
from src.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)

FIRST_COMPLETED_BOOKING_POINTS = 100
PUBLISHED_LISTING_POINTS = 50

REWARD_OPTIONS = (
    RewardOption(points=30, reward="E-wallet Credit (₱200)", credit_value=200),
    RewardOption(points=500, reward="E-wallet Credit (₱500)", credit_value=500),
    RewardOption(points=1000, reward="E-wallet Credit (₱1,000)", credit_value=1000),
    RewardOption(points=2000, reward="E-wallet Credit (₱2,000)", credit_value=2000),
    RewardOption(points=2500, reward="E-wallet Credit (₱2,500)", credit_value=2500),
    RewardOption(points=5000, reward="E-wallet Credit (₱5,000)", credit_value=5000),
    RewardOption(points=7500, reward="E-wallet Credit (₱7,500)", credit_value=7500),
    RewardOption(points=10000, reward="E-wallet Credit (₱10,000)", credit_value=10000),
)

# Highest threshold first
TIERS = (
    RewardTier(name="Platinum", min_points=10000),
    RewardTier(name="Gold", min_points=5000, next_tier="Platinum", next_tier_points=10000),
    RewardTier(name="Silver", min_points=2000, next_tier="Gold", next_tier_points=5000),
    RewardTier(name="Bronze", min_points=0, next_tier="Silver", next_tier_points=2000),
)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 8


def get_tier(points: int) -> RewardTier:
    """Tier for a points balance."""
    for tier in TIERS:
        if points >= tier.min_points:
            return tier
    return TIERS[-1]


def build_ledger_entry(
    host_id: str,
    previous_balance: int,
    points: int,
    reason: str,
    created_at: Optional[str] = None,
) -> PointsTransaction:
    """
    Next ledger entry for a host, with its balance snapshot.

    Raises:
        InsufficientPointsError: the delta would take the balance below zero.
    """
    balance = previous_balance + points
    if balance < 0:
        raise InsufficientPointsError(
            f"You need {-balance} more points (balance {previous_balance}, delta {points})"
        )
    return PointsTransaction(
        host_id=host_id,
        points=points,
        reason=reason,
        balance=balance,
        created_at=created_at,
    )


def generate_reward_code() -> str:
    """Random 8-character uppercase alphanumeric code."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


async def award_points(host_id: str, points: int, reason: str) -> PointsTransaction:
    """
    Append a ledger entry and update the host balance atomically.

    Existing entries are never modified; corrections are new entries.

    Raises:
        InsufficientPointsError: the store refused a delta that would take
            the balance below zero.
    """
    if points == 0:
        raise ValueError("Point delta must be non-zero")

    row = await supabase_client.award_host_points(host_id, points, reason)
    if row.get("balance", 0) < 0:
        raise InsufficientPointsError(
            f"Points transaction left a negative balance ({row['balance']})"
        )
    transaction = PointsTransaction.model_validate(row)

    logger.info(
        "Host points awarded",
        host_id=mask_user_id(host_id),
        points=points,
        reason=reason,
        balance=transaction.balance,
    )
    return transaction


async def get_points_history(host_id: str, limit: int = 50) -> list[PointsTransaction]:
    """Most recent ledger entries for a host, newest first."""
    rows = await supabase_client.get_points_history(host_id, limit=limit)
    return [PointsTransaction.model_validate(row) for row in rows]


async def get_points_balance(host_id: str) -> int:
    """Stored balance for a host, 0 when the host has no profile."""
    record = await supabase_client.get_host_profile(host_id)
    if record is None:
        return 0
    return HostProfile.model_validate(record).points


async def redeem_reward(host_id: str, option: RewardOption) -> RedeemedReward:
    """
    Redeem a reward option for an e-wallet code.

    Each reward label can be claimed once per host, and the stored balance
    must cover the cost. Points are deducted before the code is stored; if
    the code cannot be stored the cost is refunded with a new ledger entry.

    Raises:
        RewardAlreadyClaimedError: the host already claimed this reward.
        InsufficientPointsError: the balance does not cover the cost.
    """
    claimed = await supabase_client.get_claimed_rewards(host_id)
    if option.reward in claimed:
        raise RewardAlreadyClaimedError(
            "This reward has already been claimed. Each reward can only be claimed once."
        )

    reason = f"Redeemed: {option.reward}"
    balance = await get_points_balance(host_id)
    build_ledger_entry(host_id, balance, -option.points, reason)

    # The store re-checks the balance under lock
    transaction = await award_points(host_id, -option.points, reason)

    code = generate_reward_code()
    try:
        await supabase_client.insert_reward_code({
            "host_id": host_id,
            "code": code,
            "reward": option.reward,
            "points_cost": option.points,
            "credit_value": option.credit_value,
            "status": "active",
            "redeemed": False,
        })
    except SupabaseError as e:
        logger.error(
            "Failed to store reward code, refunding points",
            host_id=mask_user_id(host_id),
            reward=option.reward,
            error=str(e),
        )
        await award_points(host_id, option.points, f"Refund: {option.reward}")
        raise

    logger.info(
        "Reward redeemed",
        host_id=mask_user_id(host_id),
        reward=option.reward,
        points_cost=option.points,
        balance=transaction.balance,
    )
    return RedeemedReward(
        code=code,
        reward=option.reward,
        credit_value=option.credit_value,
        transaction=transaction,
    )
