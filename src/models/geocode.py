"""Geocoding result model."""

from pydantic import BaseModel, Field

from src.models.listing import Coordinates


class GeocodeResult(BaseModel):
    """Best-effort lookup result for a free-text address."""
    coords: Coordinates
    province: str = Field(default="", description="Province inferred from the geocoder response")
    display_name: str = Field(default="", description="Geocoder's formatted address")
