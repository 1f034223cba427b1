"""Listing catalog - guest-facing search over published listings in the store."""

from typing import Iterable, Optional

from pydantic import ValidationError

from src.models.listing import Listing, ListingCategory
from src.models.query import ListingSearchResult, QueryParams
from src.services import supabase_client
from src.services.availability import validate_date_range
from src.services.listing_query import (
    ALL,
    default_price_buckets,
    listings_near_province,
    query_listings,
    resolve_price_bucket,
    suggested_listings,
)
from src.utils.config import AppConfig
from src.utils.errors import SupabaseError
from src.utils.logging import get_structured_logger, sanitize_query_text, timed

logger = get_structured_logger(__name__)

# Home-stays cap the near-me strip; experiences and services page through all matches
_NEAR_ME_LIMITS = {
    ListingCategory.HOME: AppConfig.NEAR_ME_LISTINGS_LIMIT,
    ListingCategory.EXPERIENCE: None,
    ListingCategory.SERVICE: None,
}


def parse_listing_records(records: Iterable[dict]) -> list[Listing]:
    """Validate store records, skipping (and logging) any that cannot be read."""
    listings = []
    for record in records:
        try:
            listings.append(Listing.from_record(record))
        except ValidationError as e:
            logger.warning(
                "Skipping invalid listing record",
                listing_id=record.get("listing_id"),
                error_count=e.error_count(),
                error=str(e),
            )
    return listings


@timed("fetch_published_listings", logger=logger)
async def fetch_published_listings(category: ListingCategory) -> list[Listing]:
    """Published listings of one kind, validated. Store errors propagate."""
    records = await supabase_client.get_published_listings(category.value)
    return parse_listing_records(records)


async def search_listings(
    category: ListingCategory,
    params: QueryParams,
    user_province: Optional[str] = None,
) -> ListingSearchResult:
    """
    Search published listings of one kind.

    Store failures produce a result with status ``unavailable`` so callers can
    offer a retry instead of an empty state. Invalid query parameters raise
    before the store is read, so they are reported even while it is down.
    """
    category = ListingCategory(category)
    log = logger.bind(category=category.value)

    validate_date_range(params.check_in, params.check_out)
    price_buckets = default_price_buckets(category)
    if params.price_bucket != ALL:
        resolve_price_bucket(params.price_bucket, price_buckets)

    try:
        listings = await fetch_published_listings(category)
    except SupabaseError as e:
        log.error("Listing store unavailable", error=str(e))
        return ListingSearchResult(status="unavailable", error=str(e))

    page = query_listings(listings, params, price_buckets)
    suggested = suggested_listings(listings, limit=AppConfig.SUGGESTED_LISTINGS_LIMIT)
    near_me = listings_near_province(listings, user_province, limit=_NEAR_ME_LIMITS[category])

    log.info(
        "Listing search completed",
        location_query=sanitize_query_text(params.location),
        guests=params.guests,
        matched=page.total_count,
        page=page.page,
        suggested=len(suggested),
        near_me=len(near_me),
    )

    return ListingSearchResult(
        status="ok",
        page=page,
        suggested=suggested,
        near_me=near_me,
    )
