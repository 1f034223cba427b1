"""Listing search endpoint for Vercel."""

from http.server import BaseHTTPRequestHandler
from urllib.parse import urlparse, parse_qs
import asyncio
import json
from typing import Optional

from pydantic import ValidationError

from src.models.listing import ListingCategory
from src.models.query import QueryParams
from src.services.listing_catalog import search_listings
from src.utils.errors import InvalidDateRangeError, QueryValidationError
from src.utils.logging import (
    correlation_context,
    get_structured_logger,
    setup_logging,
)
from src.utils.logging_config import LoggingConfig

setup_logging()
logger = get_structured_logger(__name__)

# Query string name -> QueryParams field
_PARAM_NAMES = {
    "location": "location",
    "guests": "guests",
    "checkIn": "check_in",
    "checkOut": "check_out",
    "filter": "category",
    "priceRange": "price_bucket",
    "sort": "sort",
    "page": "page",
    "pageSize": "page_size",
}


def _first(query: dict, name: str) -> Optional[str]:
    values = query.get(name)
    if not values:
        return None
    value = values[0].strip()
    return value or None


def parse_search_request(query: dict) -> tuple[ListingCategory, QueryParams, Optional[str]]:
    """
    Build search inputs from a parsed query string.

    Raises:
        ValueError: unknown listing category.
        ValidationError: malformed query parameters.
    """
    category = ListingCategory(_first(query, "category") or ListingCategory.HOME.value)
    fields = {
        field: value
        for name, field in _PARAM_NAMES.items()
        if (value := _first(query, name)) is not None
    }
    params = QueryParams(**fields)
    return category, params, _first(query, "province")


def _run(coro):
    try:
        loop = asyncio.get_event_loop()
    except RuntimeError:
        loop = None
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for listing search."""

    def _send_json(self, status: int, payload: dict) -> None:
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps(payload).encode('utf-8'))

    def do_GET(self):
        """Handle GET /api/listings/search."""
        correlation_id = self.headers.get(LoggingConfig.LOG_CORRELATION_ID_HEADER) if self.headers else None
        with correlation_context(correlation_id):
            try:
                query = parse_qs(urlparse(self.path).query)
                try:
                    category, params, province = parse_search_request(query)
                except ValidationError as e:
                    logger.info("Rejected search request", error_count=e.error_count())
                    self._send_json(400, {"error": "invalid query parameters", "details": e.errors(include_url=False, include_context=False)})
                    return
                except ValueError as e:
                    self._send_json(400, {"error": str(e)})
                    return

                try:
                    result = _run(search_listings(category, params, user_province=province))
                except (InvalidDateRangeError, QueryValidationError) as e:
                    self._send_json(400, {"error": str(e)})
                    return

                status = 503 if result.is_unavailable else 200
                self._send_json(status, result.model_dump(mode="json"))

            except Exception as e:
                logger.error("Error processing listing search", exc_info=True, error=str(e))
                self._send_json(500, {"error": "internal server error"})
