"""Host-side listing lifecycle: create, edit, publish and soft-archive."""

from datetime import datetime, timezone
from typing import Optional

from ulid import ULID

from src.models.host import HostProfile
from src.models.listing import Listing, ListingCategory, ListingStatus
from src.services import supabase_client
from src.services.geocoding import geocode_location
from src.services.rewards import PUBLISHED_LISTING_POINTS, award_points
from src.utils.errors import ListingLimitError, ListingValidationError
from src.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def generate_listing_id() -> str:
    """Generate a text-based listing ID (ULID format)."""
    return str(ULID())


def publish_errors(listing: Listing) -> list[str]:
    """Reasons a listing cannot be published yet. Drafts may be saved regardless."""
    errors = []
    if not listing.title.strip():
        errors.append("Please enter a title for your listing")
    if not listing.location.strip():
        errors.append("Please enter a location for your listing")
    if listing.rate <= 0:
        rate_label = {
            ListingCategory.HOME: "rate per night",
            ListingCategory.SERVICE: "price",
        }.get(listing.category, "price per person")
        errors.append(f"Please enter a valid {rate_label}")
    if not listing.description.strip():
        errors.append("Please enter a description for your listing")

    if listing.category == ListingCategory.SERVICE and not (listing.service_category or "").strip():
        errors.append("Please select a service type")

    if listing.category == ListingCategory.HOME:
        if listing.bedrooms <= 0:
            errors.append("Please enter the number of bedrooms")
        if listing.bathrooms <= 0:
            errors.append("Please enter the number of bathrooms")
        if listing.guests <= 0:
            errors.append("Please enter the maximum number of guests")
    elif listing.guests <= 0:
        noun = "participants" if listing.category == ListingCategory.EXPERIENCE else "capacity"
        errors.append(f"Please enter the maximum {noun}")

    return errors


async def can_create_listing(host_id: str, now: Optional[datetime] = None) -> HostProfile:
    """
    Check the host's subscription allows another listing.

    Raises:
        ListingLimitError: no profile, inactive or expired subscription, or
            plan limit reached. ``reason`` carries a machine-readable code.
    """
    record = await supabase_client.get_host_profile(host_id)
    if record is None:
        raise ListingLimitError("Host profile not found", reason="host_not_found")
    host = HostProfile.model_validate(record)

    if host.subscription_status != "active":
        raise ListingLimitError(
            "Subscription is not active. Please renew your subscription to create listings.",
            reason="inactive_subscription",
        )

    now = now or datetime.now(timezone.utc)
    end = host.subscription_end_date
    if end is not None:
        if end.tzinfo is None:
            end = end.replace(tzinfo=timezone.utc)
        if now > end:
            raise ListingLimitError(
                "Subscription has expired. Please renew your subscription to create listings.",
                reason="expired_subscription",
            )

    limit = host.listing_limit
    if limit == -1:
        return host

    current = len(await supabase_client.get_host_listings(host_id))
    if current >= limit:
        raise ListingLimitError(
            f"You have reached your listing limit of {limit}. "
            "Please upgrade your subscription to create more listings.",
            reason="limit_reached",
        )
    return host


async def _enrich_location(listing: Listing) -> Listing:
    """Fill province and coordinates from the geocoder when missing. Never fails."""
    if listing.coords is not None and listing.province:
        return listing
    result = await geocode_location(listing.location)
    if result is None:
        return listing
    return listing.model_copy(update={
        "coords": listing.coords or result.coords,
        "province": listing.province or result.province,
    })


async def create_listing(host_id: str, data: dict, publish: bool = False) -> Listing:
    """
    Create a listing as a draft, or published when ``publish`` is set.

    Raises:
        ListingLimitError: the host's plan does not allow another listing.
        ListingValidationError: blank title, or publishing with required fields
            missing.
    """
    if not str(data.get("title") or "").strip():
        raise ListingValidationError("Please enter a title for your listing")

    await can_create_listing(host_id)

    status = ListingStatus.PUBLISHED if publish else ListingStatus.DRAFT
    listing = Listing.model_validate({
        **data,
        "host_id": host_id,
        "status": status,
        "archived": False,
        "completed_bookings_count": 0,
    })

    if publish:
        errors = publish_errors(listing)
        if errors:
            raise ListingValidationError("; ".join(errors))

    listing = await _enrich_location(listing)

    record = await supabase_client.create_listing({
        **listing.to_record(),
        "listing_id": generate_listing_id(),
        "created_at": _now(),
        "updated_at": _now(),
    })
    created = Listing.from_record(record)

    logger.info(
        "Listing created",
        listing_id=created.listing_id,
        host_id=mask_user_id(host_id),
        category=created.category.value,
        status=created.status.value,
    )

    if publish:
        await _award_publish_points(host_id, created.listing_id)

    return created


async def update_listing(listing_id: str, updates: dict, publish: Optional[bool] = None) -> Listing:
    """
    Edit a listing. ``publish`` True publishes, False reverts to draft, None keeps status.

    Points are awarded only on a draft to published transition.

    Raises:
        ListingValidationError: listing missing, or publishing with required
            fields missing.
    """
    record = await supabase_client.get_listing_by_id(listing_id)
    if record is None:
        raise ListingValidationError(f"Listing not found: {listing_id}")
    current = Listing.from_record(record)

    merged = {**current.model_dump(), **updates}
    # Ownership and ranking fields are not editable here
    for field in ("listing_id", "host_id", "completed_bookings_count", "archived"):
        merged[field] = getattr(current, field)
    if publish is not None:
        merged["status"] = ListingStatus.PUBLISHED if publish else ListingStatus.DRAFT
    listing = Listing.model_validate(merged)

    if listing.status == ListingStatus.PUBLISHED:
        errors = publish_errors(listing)
        if errors:
            raise ListingValidationError("; ".join(errors))

    location_moved = listing.location != current.location
    if location_moved and "coords" not in updates and "province" not in updates:
        listing = await _enrich_location(listing.model_copy(update={"coords": None, "province": ""}))

    saved = Listing.from_record(await supabase_client.update_listing(listing_id, {
        **listing.to_record(),
        "updated_at": _now(),
    }))

    newly_published = (
        current.status == ListingStatus.DRAFT and saved.status == ListingStatus.PUBLISHED
    )
    logger.info(
        "Listing updated",
        listing_id=listing_id,
        status=saved.status.value,
        newly_published=newly_published,
    )

    if newly_published and saved.host_id:
        await _award_publish_points(saved.host_id, listing_id)

    return saved


async def archive_listing(listing_id: str) -> Listing:
    """Soft-delete: hide from guests, keep the record, status and data."""
    record = await supabase_client.update_listing(listing_id, {
        "archived": True,
        "updated_at": _now(),
    })
    archived = Listing.from_record(record)
    logger.info("Listing archived", listing_id=listing_id, status=archived.status.value)
    return archived


async def _award_publish_points(host_id: str, listing_id: Optional[str]) -> None:
    try:
        await award_points(host_id, PUBLISHED_LISTING_POINTS, "Published a listing")
    except Exception as e:
        # Listing save stands even if points fail
        logger.error(
            "Failed to award points for published listing",
            host_id=mask_user_id(host_id),
            listing_id=listing_id,
            error=str(e),
        )
