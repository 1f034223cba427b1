"""Integration tests: store records through the search endpoint."""

import json
import pytest
from unittest.mock import AsyncMock, patch
from api.listings.search import handler
from tests.fixtures.listings import catalog_records
from tests.utils.helpers import build_handler


def _search(path, records):
    h = build_handler(handler, path, headers={"X-Correlation-ID": "req_integration"})
    with patch("src.services.supabase_client.get_published_listings", new_callable=AsyncMock, return_value=records):
        h.do_GET()
    h.wfile.seek(0)
    return h.send_response.call_args[0][0], json.loads(h.wfile.read().decode("utf-8"))


@pytest.mark.integration
def test_search_pipeline_filters_sorts_and_pages():
    """Test a full search through parsing, catalog, query pipeline and serialization."""
    status, body = _search(
        "/api/listings/search?category=home&location=cavite&sort=price-high&province=Cavite",
        catalog_records(),
    )

    assert status == 200
    assert [item["listing_id"] for item in body["page"]["items"]] == ["L4", "L1"]
    assert body["page"]["total_count"] == 2
    assert [item["listing_id"] for item in body["suggested"]] == ["L2", "L1", "L3"]
    assert [item["listing_id"] for item in body["near_me"]] == ["L1", "L4"]
    assert body["page"]["items"][1]["unavailable_dates"] == ["2024-06-10", "2024-06-12"]


@pytest.mark.integration
def test_search_pipeline_date_range():
    """Test blocked days remove a listing from the page."""
    status, body = _search(
        "/api/listings/search?checkIn=2024-06-09&checkOut=2024-06-11",
        catalog_records(),
    )

    assert status == 200
    assert "L1" not in [item["listing_id"] for item in body["page"]["items"]]


@pytest.mark.integration
def test_search_pipeline_reversed_range():
    """Test reversed dates are rejected by the full pipeline."""
    status, body = _search(
        "/api/listings/search?checkIn=2024-06-15&checkOut=2024-06-13",
        catalog_records(),
    )

    assert status == 400


@pytest.mark.integration
def test_search_pipeline_store_failure():
    """Test store failures surface as 503 through the endpoint."""
    from src.utils.errors import SupabaseError

    h = build_handler(handler, "/api/listings/search")
    with patch(
        "src.services.supabase_client.get_published_listings",
        new_callable=AsyncMock,
        side_effect=SupabaseError("connection refused"),
    ):
        h.do_GET()

    assert h.send_response.call_args[0][0] == 503
