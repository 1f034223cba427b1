"""Supabase client wrapper with async context manager support."""

import os
from typing import Optional
from supabase import create_client, Client
from supabase.client import ClientOptions
from src.models.booking import ACTIVE_BOOKING_STATUSES, BookingStatus
from src.utils.errors import InsufficientPointsError, SupabaseError
import logging

logger = logging.getLogger(__name__)

_ACTIVE_STATUS_VALUES = [status.value for status in BookingStatus if status in ACTIVE_BOOKING_STATUSES]

# Global client instance (singleton pattern)
_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """Get or create Supabase client singleton."""
    global _client

    if _client is None:
        url = os.environ.get("SUPABASE_URL")
        key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")

        if not url or not key:
            raise SupabaseError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
        )

        _client = create_client(url, key, options)
        logger.info("Supabase client initialized", extra={"url": url})

    return _client


class SupabaseClient:
    """Async context manager for Supabase client."""

    def __init__(self):
        self.client: Optional[Client] = None

    async def __aenter__(self) -> Client:
        self.client = get_supabase_client()
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase operation error",
                extra={"error": str(exc_val), "type": exc_type.__name__}
            )
        return False


def _first_row(data) -> Optional[dict]:
    if isinstance(data, list):
        return data[0] if data else None
    return data or None


# Listings table operations
async def get_published_listings(category: Optional[str] = None) -> list[dict]:
    """Get published listings, newest first, optionally for one category."""
    async with SupabaseClient() as client:
        try:
            query = client.table("listings").select("*").eq("status", "published")
            if category:
                query = query.eq("category", category)
            result = query.order("created_at", desc=True).execute()
            return result.data if result.data else []
        except Exception as e:
            raise SupabaseError(f"Failed to get published listings: {e}")


async def get_all_listings() -> list[dict]:
    """Get every listing record regardless of status."""
    async with SupabaseClient() as client:
        try:
            result = client.table("listings").select("*").execute()
            return result.data if result.data else []
        except Exception as e:
            raise SupabaseError(f"Failed to get listings: {e}")


async def get_host_listings(host_id: str) -> list[dict]:
    """Get all listings owned by a host, newest first."""
    async with SupabaseClient() as client:
        try:
            result = client.table("listings").select("*").eq("host_id", host_id).order("created_at", desc=True).execute()
            return result.data if result.data else []
        except Exception as e:
            raise SupabaseError(f"Failed to get host listings: {e}")


async def get_listing_by_id(listing_id: str) -> Optional[dict]:
    """Get listing by ID."""
    async with SupabaseClient() as client:
        try:
            result = client.table("listings").select("*").eq("listing_id", listing_id).execute()
            return _first_row(result.data)
        except Exception as e:
            raise SupabaseError(f"Failed to get listing: {e}")


async def create_listing(listing_data: dict) -> dict:
    """Create a new listing."""
    async with SupabaseClient() as client:
        try:
            result = client.table("listings").insert(listing_data).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to create listing: {e}")
        row = _first_row(result.data)
        if row is None:
            raise SupabaseError("Failed to create listing: no data returned")
        return row


async def update_listing(listing_id: str, updates: dict) -> dict:
    """Update a listing."""
    async with SupabaseClient() as client:
        try:
            result = client.table("listings").update(updates).eq("listing_id", listing_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to update listing: {e}")
        row = _first_row(result.data)
        if row is None:
            raise SupabaseError(f"Failed to update listing: {listing_id}")
        return row


async def increment_completed_bookings(listing_id: str) -> None:
    """Atomically bump a listing's completed_bookings_count."""
    async with SupabaseClient() as client:
        try:
            client.rpc("increment_completed_bookings", {"p_listing_id": listing_id}).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to increment completed bookings: {e}")


# Hosts table operations
async def get_host_profile(host_id: str) -> Optional[dict]:
    """Get host profile by host ID."""
    async with SupabaseClient() as client:
        try:
            result = client.table("hosts").select("*").eq("host_id", host_id).execute()
            return _first_row(result.data)
        except Exception as e:
            raise SupabaseError(f"Failed to get host profile: {e}")


# Bookings table operations
async def get_booking(booking_id: str) -> Optional[dict]:
    """Get booking by ID."""
    async with SupabaseClient() as client:
        try:
            result = client.table("bookings").select("*").eq("booking_id", booking_id).execute()
            return _first_row(result.data)
        except Exception as e:
            raise SupabaseError(f"Failed to get booking: {e}")


async def get_active_bookings(listing_id: str) -> list[dict]:
    """Get bookings that currently hold dates on a listing."""
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("bookings")
                .select("*")
                .eq("listing_id", listing_id)
                .in_("status", _ACTIVE_STATUS_VALUES)
                .execute()
            )
            return result.data if result.data else []
        except Exception as e:
            raise SupabaseError(f"Failed to get active bookings: {e}")


async def update_booking(booking_id: str, updates: dict) -> dict:
    """Update a booking."""
    async with SupabaseClient() as client:
        try:
            result = client.table("bookings").update(updates).eq("booking_id", booking_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to update booking: {e}")
        row = _first_row(result.data)
        if row is None:
            raise SupabaseError(f"Failed to update booking: {booking_id}")
        return row


async def count_completed_bookings(host_id: str) -> int:
    """Number of completed bookings across a host's listings."""
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("bookings")
                .select("booking_id")
                .eq("host_id", host_id)
                .eq("status", BookingStatus.COMPLETED.value)
                .execute()
            )
            return len(result.data) if result.data else 0
        except Exception as e:
            raise SupabaseError(f"Failed to count completed bookings: {e}")


# Points ledger operations
async def award_host_points(host_id: str, points: int, reason: str) -> dict:
    """
    Apply a point delta and append the ledger row in one transaction.

    The award_host_points database function locks the host row, updates its
    balance and inserts into points_transactions with the new balance, so
    concurrent awards for the same host cannot lose updates. It raises
    insufficient_points instead of writing a negative balance.

    Raises:
        InsufficientPointsError: the delta would overdraw the balance.
        SupabaseError: any other store failure.
    """
    async with SupabaseClient() as client:
        try:
            result = client.rpc("award_host_points", {
                "p_host_id": host_id,
                "p_points": points,
                "p_reason": reason,
            }).execute()
        except Exception as e:
            if "insufficient_points" in str(e):
                raise InsufficientPointsError(f"Not enough points for this transaction: {e}")
            raise SupabaseError(f"Failed to award host points: {e}")
        row = _first_row(result.data)
        if row is None:
            raise SupabaseError("Failed to award host points: no ledger row returned")
        return row


async def get_points_history(host_id: str, limit: int = 50) -> list[dict]:
    """Get a host's most recent ledger entries."""
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("points_transactions")
                .select("*")
                .eq("host_id", host_id)
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
            return result.data if result.data else []
        except Exception as e:
            raise SupabaseError(f"Failed to get points history: {e}")


async def get_claimed_rewards(host_id: str) -> list[str]:
    """Reward labels the host has already redeemed."""
    async with SupabaseClient() as client:
        try:
            result = client.table("valid_codes").select("reward").eq("host_id", host_id).execute()
            return [row["reward"] for row in (result.data or []) if row.get("reward")]
        except Exception as e:
            raise SupabaseError(f"Failed to get claimed rewards: {e}")


async def insert_reward_code(code_data: dict) -> dict:
    """Store an issued reward code."""
    async with SupabaseClient() as client:
        try:
            result = client.table("valid_codes").insert(code_data).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to store reward code: {e}")
        row = _first_row(result.data)
        if row is None:
            raise SupabaseError("Failed to store reward code: no data returned")
        return row
