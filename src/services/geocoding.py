"""Best-effort geocoding of listing locations.

Lookups never raise: a failed or empty lookup returns None and the listing is
saved without coordinates or province.
"""

import json
from typing import Optional

import httpx
from pydantic import ValidationError

from src.models.geocode import GeocodeResult
from src.models.listing import Coordinates
from src.utils.config import AppConfig
from src.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)

# Checked in order, first match wins
PROVINCE_PATTERNS = (
    "Metro Manila", "Bulacan", "Cavite", "Laguna", "Rizal", "Pampanga",
    "Batangas", "Quezon", "Nueva Ecija", "Tarlac", "Zambales", "Bataan",
    "Aurora", "Albay", "Cebu", "Davao del Sur", "Iloilo", "Negros Occidental",
    "Pangasinan",
)


def infer_province(text: Optional[str]) -> str:
    """Province named in free text, or '' if none is recognised."""
    if not text or not isinstance(text, str):
        return ""
    lowered = text.lower()
    for province in PROVINCE_PATTERNS:
        if province.lower() in lowered:
            return province
    return ""


def parse_geocoder_response(payload) -> Optional[GeocodeResult]:
    """Build a result from the first hit of a Nominatim search response."""
    if not isinstance(payload, list) or not payload:
        return None

    hit = payload[0]
    if not isinstance(hit, dict):
        return None
    try:
        coords = Coordinates(lat=float(hit["lat"]), lng=float(hit["lon"]))
    except (KeyError, TypeError, ValueError, ValidationError):
        return None

    return GeocodeResult(
        coords=coords,
        province=infer_province(json.dumps(hit)),
        display_name=hit.get("display_name") or "",
    )


async def geocode_location(address: str) -> Optional[GeocodeResult]:
    """Look up coordinates and province for an address. Returns None on any failure."""
    if not address or not address.strip():
        return None

    params = {"format": "json", "q": address.strip(), "limit": 1, "addressdetails": 1}
    headers = {"User-Agent": AppConfig.GEOCODER_USER_AGENT}

    try:
        with log_timing("geocode_location", logger=logger):
            async with httpx.AsyncClient(timeout=AppConfig.GEOCODER_TIMEOUT_SECONDS, headers=headers) as client:
                response = await client.get(AppConfig.GEOCODER_URL, params=params)
                response.raise_for_status()
                payload = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("Geocoding failed", error=str(e), error_type=type(e).__name__)
        return None

    result = parse_geocoder_response(payload)
    if result is None:
        logger.info("Geocoder returned no usable match")
    return result
