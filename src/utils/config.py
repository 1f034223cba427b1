"""Application configuration with environment variable support."""

import os


class AppConfig:
    """Centralized application configuration."""

    # Listing pages
    LISTINGS_PAGE_SIZE = int(os.environ.get("LISTINGS_PAGE_SIZE", "6"))
    SUGGESTED_LISTINGS_LIMIT = int(os.environ.get("SUGGESTED_LISTINGS_LIMIT", "3"))
    NEAR_ME_LISTINGS_LIMIT = int(os.environ.get("NEAR_ME_LISTINGS_LIMIT", "3"))

    # Geocoding (Nominatim-compatible search endpoint)
    GEOCODER_URL = os.environ.get("GEOCODER_URL", "https://nominatim.openstreetmap.org/search")
    GEOCODER_TIMEOUT_SECONDS = float(os.environ.get("GEOCODER_TIMEOUT_SECONDS", "10"))
    GEOCODER_USER_AGENT = os.environ.get("GEOCODER_USER_AGENT", "zennest-backend/0.1")
