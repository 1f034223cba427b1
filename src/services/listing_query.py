"""Listing query pipeline - filter, sort and paginate a listing collection.

All functions here are pure: they read an immutable snapshot of listings and
return new lists, so concurrent searches need no coordination.
"""

import math
import unicodedata
from typing import Iterable, Optional, Sequence

from src.models.listing import Listing, ListingCategory
from src.models.query import ListingPage, PriceBucket, QueryParams, SortKey
from src.services.availability import is_range_bookable, validate_date_range
from src.services.categories import derive_category
from src.utils.errors import QueryValidationError
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

ALL = "all"

HOME_PRICE_BUCKETS = (
    PriceBucket(name="low", min_rate=0, max_rate=1000),
    PriceBucket(name="medium", min_rate=1000, max_rate=3000),
    PriceBucket(name="high", min_rate=3000),
)

EXPERIENCE_PRICE_BUCKETS = (
    PriceBucket(name="low", min_rate=0, max_rate=2000),
    PriceBucket(name="medium", min_rate=2000, max_rate=5000),
    PriceBucket(name="high", min_rate=5000),
)

SERVICE_PRICE_BUCKETS = HOME_PRICE_BUCKETS

_DEFAULT_PRICE_BUCKETS = {
    ListingCategory.HOME: HOME_PRICE_BUCKETS,
    ListingCategory.EXPERIENCE: EXPERIENCE_PRICE_BUCKETS,
    ListingCategory.SERVICE: SERVICE_PRICE_BUCKETS,
}


def default_price_buckets(category: ListingCategory) -> tuple[PriceBucket, ...]:
    """Price buckets shown for a listing kind."""
    return _DEFAULT_PRICE_BUCKETS[ListingCategory(category)]


def visible_listings(listings: Iterable[Listing]) -> list[Listing]:
    """Listings guests may see: published and not archived."""
    return [listing for listing in listings if listing.is_guest_visible]


def matches_text(listing: Listing, query: str) -> bool:
    """Case-insensitive substring match on title, province or location."""
    needle = query.lower()
    return any(
        needle in field.lower()
        for field in (listing.title, listing.province, listing.location)
    )


def resolve_price_bucket(name: str, buckets: Sequence[PriceBucket]) -> PriceBucket:
    for bucket in buckets:
        if bucket.name == name:
            return bucket
    known = ", ".join(bucket.name for bucket in buckets)
    raise QueryValidationError(f"Unknown price bucket {name!r} (expected one of: {known})")


def _title_collation_key(listing: Listing) -> str:
    # Accent- and case-insensitive ordering
    decomposed = unicodedata.normalize("NFKD", listing.title)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def sort_listings(listings: list[Listing], sort: SortKey) -> list[Listing]:
    """Apply one sort key. Ties keep their incoming order (stable sort)."""
    if sort == SortKey.PRICE_LOW:
        return sorted(listings, key=lambda listing: listing.effective_rate)
    if sort == SortKey.PRICE_HIGH:
        return sorted(listings, key=lambda listing: listing.effective_rate, reverse=True)
    if sort == SortKey.RATING:
        return sorted(listings, key=lambda listing: listing.rating, reverse=True)
    if sort == SortKey.NAME:
        return sorted(listings, key=_title_collation_key)
    return list(listings)


def total_pages(total_count: int, page_size: int) -> int:
    return math.ceil(total_count / page_size) if total_count else 0


def clamp_page(page: int, pages: int) -> int:
    """Clamp a requested page into [1, pages] (1 when there are no pages)."""
    return min(max(page, 1), max(pages, 1))


def paginate(listings: Sequence[Listing], page: int, page_size: int) -> ListingPage:
    """Slice one 1-indexed page out of an ordered result."""
    start = (page - 1) * page_size
    return ListingPage(
        items=list(listings[start:start + page_size]),
        total_count=len(listings),
        total_pages=total_pages(len(listings), page_size),
        page=page,
        page_size=page_size,
    )


def filter_listings(
    listings: Iterable[Listing],
    params: QueryParams,
    price_buckets: Optional[Sequence[PriceBucket]] = None,
) -> list[Listing]:
    """Run the filter stages (visibility, text, capacity, category, price, dates)."""
    validate_date_range(params.check_in, params.check_out)

    bucket = None
    if params.price_bucket != ALL:
        if price_buckets is None:
            price_buckets = HOME_PRICE_BUCKETS
        bucket = resolve_price_bucket(params.price_bucket, price_buckets)

    results = visible_listings(listings)

    if params.location:
        results = [listing for listing in results if matches_text(listing, params.location)]

    if params.guests > 0:
        results = [listing for listing in results if listing.guests >= params.guests]

    if params.category != ALL:
        results = [listing for listing in results if derive_category(listing) == params.category]

    if bucket is not None:
        results = [listing for listing in results if bucket.contains(listing.effective_rate)]

    if params.has_date_range:
        results = [
            listing for listing in results
            if is_range_bookable(listing.unavailable_dates, params.check_in, params.check_out)
        ]

    return results


def query_listings(
    listings: Iterable[Listing],
    params: QueryParams,
    price_buckets: Optional[Sequence[PriceBucket]] = None,
) -> ListingPage:
    """
    Filter, sort and paginate a listing collection.

    ``price_buckets`` defaults to the home-stay buckets; pass the bucket set
    for the listing kind being searched.

    Raises:
        InvalidDateRangeError: check_in is after check_out.
        QueryValidationError: price_bucket names no bucket.
    """
    filtered = filter_listings(listings, params, price_buckets)
    ordered = sort_listings(filtered, params.sort)
    page = paginate(ordered, params.page, params.page_size)

    logger.debug(
        "Listing query evaluated",
        matched=page.total_count,
        page=page.page,
        total_pages=page.total_pages,
        sort=params.sort.value,
    )
    return page


def suggested_listings(listings: Iterable[Listing], limit: int = 3) -> list[Listing]:
    """Visible listings with the most completed bookings (ties keep input order)."""
    ranked = sorted(
        visible_listings(listings),
        key=lambda listing: listing.completed_bookings_count,
        reverse=True,
    )
    return ranked[:limit]


def is_near_province(listing: Listing, province: str) -> bool:
    """Province equals the user's (trimmed, case-insensitive) or location mentions it."""
    wanted = (province or "").strip().lower()
    if not wanted:
        return False
    if listing.province.strip().lower() == wanted:
        return True
    return wanted in listing.location.lower()


def listings_near_province(
    listings: Iterable[Listing],
    province: Optional[str],
    limit: Optional[int] = None,
) -> list[Listing]:
    """Visible listings near the user's province, capped at ``limit`` when given."""
    if not province or not province.strip():
        return []
    near = [listing for listing in visible_listings(listings) if is_near_province(listing, province)]
    return near if limit is None else near[:limit]
