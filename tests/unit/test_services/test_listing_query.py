"""Tests for the listing query pipeline."""

import pytest
from datetime import date
from src.models.listing import Listing, ListingCategory
from src.models.query import QueryParams, SortKey
from src.services.listing_query import (
    EXPERIENCE_PRICE_BUCKETS,
    HOME_PRICE_BUCKETS,
    clamp_page,
    default_price_buckets,
    filter_listings,
    is_near_province,
    listings_near_province,
    matches_text,
    paginate,
    query_listings,
    sort_listings,
    suggested_listings,
    total_pages,
    visible_listings,
)
from src.utils.errors import InvalidDateRangeError, QueryValidationError
from tests.fixtures.listings import VISIBLE_IDS
from tests.utils.assertions import assert_guest_visible


def _ids(listings):
    return [listing.listing_id for listing in listings]


def _query(listings, **params):
    return query_listings(listings, QueryParams(**params))


@pytest.mark.unit
def test_no_filters_returns_only_visible(sample_catalog):
    """Test a query with no filters returns the five published, non-archived listings."""
    page = _query(sample_catalog)

    assert _ids(page.items) == VISIBLE_IDS
    assert page.total_count == 5
    assert page.total_pages == 1
    assert_guest_visible(page.items)


@pytest.mark.unit
def test_filters_never_surface_hidden_listings(sample_catalog):
    """Test draft and archived listings stay hidden under any filter."""
    for params in (
        {"location": "cavite"},
        {"category": "apartment"},
        {"category": "house"},
        {"price_bucket": "low"},
        {"guests": 6},
        {"sort": "price-low"},
    ):
        page = _query(sample_catalog, **params)
        assert "L6" not in _ids(page.items)
        assert "L7" not in _ids(page.items)


@pytest.mark.unit
def test_location_matches_title_province_and_location(sample_catalog):
    """Test the text filter is case-insensitive over title, province and location."""
    assert _ids(_query(sample_catalog, location="CAVITE").items) == ["L1", "L4"]
    assert _ids(_query(sample_catalog, location="seaside").items) == ["L2"]
    assert _ids(_query(sample_catalog, location="makati").items) == ["L3"]


@pytest.mark.unit
def test_guest_capacity_filter(sample_catalog):
    """Test listings below the requested capacity are removed."""
    assert _ids(_query(sample_catalog, guests=4).items) == ["L2", "L5"]


@pytest.mark.unit
def test_category_filter(sample_catalog):
    """Test filtering by derived category."""
    assert _ids(_query(sample_catalog, category="villa").items) == ["L2"]
    assert _ids(_query(sample_catalog, category="apartment").items) == ["L1"]
    assert _ids(_query(sample_catalog, category="other").items) == ["L5"]


@pytest.mark.unit
def test_price_bucket_upper_bound_exclusive(sample_catalog):
    """Test a rate exactly at 1000 falls into medium, not low."""
    assert _ids(_query(sample_catalog, price_bucket="low").items) == ["L1"]
    assert _ids(_query(sample_catalog, price_bucket="medium").items) == ["L3", "L4", "L5"]


@pytest.mark.unit
def test_price_bucket_uses_discounted_rate(sample_catalog):
    """Test a 4000 rate with 25% discount is priced at 3000 (high)."""
    assert _ids(_query(sample_catalog, price_bucket="high").items) == ["L2"]


@pytest.mark.unit
def test_unknown_price_bucket_rejected(sample_catalog):
    """Test an unknown bucket name is a validation error, not an empty result."""
    with pytest.raises(QueryValidationError):
        _query(sample_catalog, price_bucket="luxury")


@pytest.mark.unit
def test_date_range_filter(sample_catalog):
    """Test listings with blocked days in the range are removed."""
    page = _query(sample_catalog, check_in=date(2024, 6, 9), check_out=date(2024, 6, 11))
    assert _ids(page.items) == ["L2", "L3", "L4", "L5"]

    page = _query(sample_catalog, check_in=date(2024, 6, 13), check_out=date(2024, 6, 15))
    assert _ids(page.items) == VISIBLE_IDS


@pytest.mark.unit
def test_reversed_date_range_raises(sample_catalog):
    """Test a check-in after check-out is rejected."""
    with pytest.raises(InvalidDateRangeError):
        _query(sample_catalog, check_in=date(2024, 6, 15), check_out=date(2024, 6, 13))


@pytest.mark.unit
def test_half_open_date_range_ignored(sample_catalog):
    """Test a range with only check-in applies no date constraint."""
    page = _query(sample_catalog, check_in=date(2024, 6, 10))
    assert _ids(page.items) == VISIBLE_IDS


@pytest.mark.unit
def test_filters_combine(sample_catalog):
    """Test filters narrow the result together."""
    page = _query(sample_catalog, location="cavite", guests=2, price_bucket="medium")
    assert _ids(page.items) == ["L4"]


@pytest.mark.unit
@pytest.mark.parametrize("sort,expected", [
    (SortKey.FEATURED, ["L1", "L2", "L3", "L4", "L5"]),
    (SortKey.PRICE_LOW, ["L1", "L3", "L4", "L5", "L2"]),
    (SortKey.PRICE_HIGH, ["L2", "L5", "L4", "L3", "L1"]),
    (SortKey.RATING, ["L2", "L5", "L1", "L3", "L4"]),
    (SortKey.NAME, ["L5", "L1", "L3", "L4", "L2"]),
])
def test_sort_orders(sample_catalog, sort, expected):
    """Test each sort key (rating ties keep filter order, names ignore case and accents)."""
    assert _ids(_query(sample_catalog, sort=sort).items) == expected


@pytest.mark.unit
def test_sort_is_stable_for_equal_keys():
    """Test equal sort keys keep their incoming order."""
    listings = [Listing(listing_id=str(i), rate=1000, rating=4.0, status="published") for i in range(5)]

    for sort in SortKey:
        assert _ids(sort_listings(listings, sort)) == ["0", "1", "2", "3", "4"]


@pytest.mark.unit
def test_query_is_idempotent(sample_catalog):
    """Test identical inputs give identical results."""
    params = QueryParams(location="a", sort="rating", page_size=2, page=2)
    first = query_listings(sample_catalog, params)
    second = query_listings(sample_catalog, params)

    assert first == second


@pytest.mark.unit
def test_query_does_not_mutate_input(sample_catalog):
    """Test the input collection is left untouched."""
    before = list(sample_catalog)
    _query(sample_catalog, sort="price-high")
    assert sample_catalog == before


@pytest.mark.unit
def test_pagination(sample_catalog):
    """Test pages slice the sorted result and report totals."""
    page = _query(sample_catalog, page_size=2, page=3)

    assert _ids(page.items) == ["L5"]
    assert page.total_count == 5
    assert page.total_pages == 3
    assert page.page == 3


@pytest.mark.unit
def test_page_beyond_range_is_empty(sample_catalog):
    """Test pagination does not clamp the page number."""
    page = _query(sample_catalog, page_size=2, page=4)

    assert page.items == []
    assert page.total_pages == 3


@pytest.mark.unit
def test_total_pages_and_clamp():
    """Test page count and caller-side clamping helpers."""
    assert total_pages(0, 6) == 0
    assert total_pages(6, 6) == 1
    assert total_pages(7, 6) == 2
    assert clamp_page(0, 3) == 1
    assert clamp_page(5, 3) == 3
    assert clamp_page(2, 0) == 1


@pytest.mark.unit
def test_paginate_empty():
    """Test an empty result has zero pages."""
    page = paginate([], 1, 6)
    assert page.items == []
    assert page.total_count == 0
    assert page.total_pages == 0


@pytest.mark.unit
def test_experience_price_buckets():
    """Test experiences use their own bucket boundaries."""
    listings = [
        Listing(listing_id="E1", category="experience", rate=1999, status="published"),
        Listing(listing_id="E2", category="experience", rate=2000, status="published"),
        Listing(listing_id="E3", category="experience", rate=5000, status="published"),
    ]
    params = QueryParams(price_bucket="medium")

    assert _ids(filter_listings(listings, params, EXPERIENCE_PRICE_BUCKETS)) == ["E2"]
    assert default_price_buckets(ListingCategory.EXPERIENCE) == EXPERIENCE_PRICE_BUCKETS
    assert default_price_buckets(ListingCategory.HOME) == HOME_PRICE_BUCKETS


@pytest.mark.unit
def test_visible_listings_and_text_match(sample_listing):
    """Test visibility and text helpers on a single listing."""
    assert visible_listings([sample_listing]) == [sample_listing]
    assert matches_text(sample_listing, "tagaytay") is True
    assert matches_text(sample_listing, "batangas") is False


@pytest.mark.unit
def test_suggested_listings(sample_catalog):
    """Test the top three visible listings by completed bookings, ties in input order."""
    assert _ids(suggested_listings(sample_catalog)) == ["L2", "L1", "L3"]


@pytest.mark.unit
def test_suggested_listings_missing_counts_rank_last():
    """Test listings without a completed count are treated as zero."""
    listings = [
        Listing.from_record({"listing_id": "A", "status": "published"}),
        Listing.from_record({"listing_id": "B", "status": "published", "completed_bookings_count": 1}),
    ]
    assert _ids(suggested_listings(listings, limit=3)) == ["B", "A"]


@pytest.mark.unit
def test_near_province_trims_and_ignores_case(sample_catalog):
    """Test user province 'Cavite' matches listing province 'cavite '."""
    assert _ids(listings_near_province(sample_catalog, "Cavite")) == ["L1", "L4"]
    assert _ids(listings_near_province(sample_catalog, " cavite", limit=1)) == ["L1"]


@pytest.mark.unit
def test_near_province_matches_location_text():
    """Test a listing without a province matches when its location names it."""
    listing = Listing(location="Antipolo, Rizal", status="published")
    assert is_near_province(listing, "rizal") is True
    assert is_near_province(listing, "Cavite") is False


@pytest.mark.unit
def test_near_province_without_user_province(sample_catalog):
    """Test no user province yields no near-me listings."""
    assert listings_near_province(sample_catalog, None) == []
    assert listings_near_province(sample_catalog, "   ") == []
