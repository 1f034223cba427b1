"""Custom assertion helpers."""

from typing import Any, Dict, Iterable
import json


def assert_guest_visible(listings: Iterable[Any]) -> None:
    """Assert every listing is published and not archived."""
    for listing in listings:
        assert listing.status.value == "published", listing.listing_id
        assert listing.archived is False, listing.listing_id


def assert_valid_ledger_entry(entry: Any, previous_balance: int) -> None:
    """Assert a ledger entry's balance snapshot follows from the prior balance."""
    assert entry.points != 0
    assert entry.balance >= 0
    assert entry.balance == previous_balance + entry.points


def assert_valid_response(response: Dict[str, Any], expected_status: int = 200) -> None:
    """Assert that a Vercel function response is valid."""
    assert 'statusCode' in response
    assert response['statusCode'] == expected_status
    assert 'headers' in response
    assert 'body' in response

    # Try to parse body as JSON if content-type is JSON
    if 'application/json' in response.get('headers', {}).get('Content-Type', ''):
        try:
            json.loads(response['body'])
        except json.JSONDecodeError:
            assert False, "Response body is not valid JSON"
