"""Shared pytest fixtures and configuration."""

import os
import pytest
from datetime import date
from unittest.mock import MagicMock
from freezegun import freeze_time

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("LISTINGS_PAGE_SIZE", "6")
os.environ.setdefault("LOG_FORMAT", "text")

from src.models.listing import Listing  # noqa: E402
from tests.fixtures.listings import catalog_records  # noqa: E402


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client whose query builder chains back to itself."""
    client = MagicMock()
    query = MagicMock()
    for method in ("select", "insert", "update", "eq", "in_", "order", "limit"):
        getattr(query, method).return_value = query
    query.execute.return_value = MagicMock(data=[])
    client.table.return_value = query
    client.rpc.return_value = query
    client.query = query
    return client


@pytest.fixture
def patch_supabase(mock_supabase_client, monkeypatch):
    """Route SupabaseClient() in the store helpers to the mock client."""
    monkeypatch.setattr(
        "src.services.supabase_client.get_supabase_client",
        lambda: mock_supabase_client,
    )
    return mock_supabase_client


@pytest.fixture
def sample_listing():
    """Published home listing in Cavite."""
    return Listing(
        listing_id="L-sample",
        host_id="host-123",
        title="Cozy Apartment in Tagaytay",
        description="Two-bedroom apartment with a view of Taal",
        category="home",
        location="Tagaytay, Cavite",
        province="Cavite",
        rate=2500,
        discount=0,
        rating=4.6,
        bedrooms=2,
        bathrooms=1,
        guests=4,
        status="published",
        unavailable_dates=[date(2025, 1, 15)],
    )


@pytest.fixture
def sample_catalog():
    """Seven-listing catalog: five visible, one draft, one archived."""
    return [Listing.from_record(record) for record in catalog_records()]


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2025-01-10 12:00:00") as frozen_time:
        yield frozen_time


@pytest.fixture
def mock_vercel_request():
    """Mock Vercel serverless function request."""
    return {
        "method": "POST",
        "path": "/api/listings/backfill",
        "headers": {"content-type": "application/json"},
        "body": "",
        "query": {},
    }


@pytest.fixture(scope="function")
def reset_environment(monkeypatch):
    """Reset environment variables for each test."""
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)
