"""Listing models."""

from datetime import date
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from src.utils.dates import parse_date


class ListingCategory(str, Enum):
    """Kind of bookable unit."""
    HOME = "home"
    EXPERIENCE = "experience"
    SERVICE = "service"


class ListingStatus(str, Enum):
    """Publication status (archiving is tracked separately)."""
    DRAFT = "draft"
    PUBLISHED = "published"


class Coordinates(BaseModel):
    """Geocoordinate pair."""
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class Listing(BaseModel):
    """
    Bookable home, experience or service.

    Every field has a safe default so that sparse documents from the store
    validate into a usable listing. Province and coordinates are enrichment
    only and never affect guest visibility.
    """
    model_config = ConfigDict(frozen=True)

    listing_id: Optional[str] = Field(None, description="Listing ID (owned by the store)")
    host_id: Optional[str] = Field(None, description="Owning host ID")
    title: str = Field(default="", description="Listing title")
    description: str = Field(default="", description="Listing description")
    category: ListingCategory = Field(default=ListingCategory.HOME, description="home, experience or service")
    service_category: Optional[str] = Field(None, description="Service type (service listings only)")
    location: str = Field(default="", description="Free-text location")
    province: str = Field(default="", description="Administrative province, empty if unknown")
    coords: Optional[Coordinates] = Field(None, description="Geocoordinates, null if unknown")
    rate: float = Field(default=0, ge=0, description="Base rate per night / person / service")
    discount: float = Field(default=0, ge=0, le=100, description="Discount percentage")
    rating: float = Field(default=0, ge=0, le=5, description="Average rating (0-5)")
    bedrooms: int = Field(default=0, ge=0)
    bathrooms: float = Field(default=0, ge=0)
    guests: int = Field(default=0, ge=0, description="Maximum guest capacity")
    images: list[str] = Field(default_factory=list)
    amenities: list[str] = Field(default_factory=list)
    promo: str = Field(default="")
    unavailable_dates: frozenset[date] = Field(default_factory=frozenset, description="Blocked calendar days")
    completed_bookings_count: int = Field(default=0, ge=0, description="Completed bookings (ranking only)")
    status: ListingStatus = Field(default=ListingStatus.DRAFT)
    archived: bool = Field(default=False, description="Soft-delete flag")
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("title", "description", "location", "promo", mode="before")
    @classmethod
    def _text_default(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("province", mode="before")
    @classmethod
    def _normalize_province(cls, value: Any) -> Any:
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else value

    @field_validator(
        "rate", "discount", "rating", "bedrooms", "bathrooms", "guests",
        "completed_bookings_count",
        mode="before",
    )
    @classmethod
    def _number_default(cls, value: Any) -> Any:
        return 0 if value is None or value == "" else value

    @field_validator("images", "amenities", mode="before")
    @classmethod
    def _list_default(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("category", mode="before")
    @classmethod
    def _category_default(cls, value: Any) -> Any:
        return ListingCategory.HOME if not value else value

    @field_validator("status", mode="before")
    @classmethod
    def _status_default(cls, value: Any) -> Any:
        return ListingStatus.DRAFT if not value else value

    @field_validator("archived", mode="before")
    @classmethod
    def _archived_default(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("coords", mode="before")
    @classmethod
    def _coords_or_none(cls, value: Any) -> Any:
        if isinstance(value, dict) and (value.get("lat") is None or value.get("lng") is None):
            return None
        return value

    @field_validator("unavailable_dates", mode="before")
    @classmethod
    def _parse_unavailable_dates(cls, value: Any) -> Any:
        if not value:
            return frozenset()
        parsed = (parse_date(item) for item in value)
        return frozenset(day for day in parsed if day is not None)

    @field_serializer("unavailable_dates")
    def _serialize_unavailable_dates(self, value: frozenset[date]) -> list[str]:
        return [day.isoformat() for day in sorted(value)]

    @property
    def effective_rate(self) -> float:
        """Rate after the percentage discount."""
        return self.rate * (1 - self.discount / 100)

    @property
    def is_guest_visible(self) -> bool:
        """Published and not archived."""
        return self.status == ListingStatus.PUBLISHED and not self.archived

    @classmethod
    def from_record(cls, record: dict) -> "Listing":
        """Validate a raw store document into a Listing."""
        return cls.model_validate(record)

    def to_record(self) -> dict:
        """Serialize for the store (JSON-safe, listing_id omitted)."""
        return self.model_dump(mode="json", exclude={"listing_id", "created_at", "updated_at"})
