"""Listing search models: query parameters, price buckets and result pages."""

from datetime import date
from enum import Enum
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.models.listing import Listing
from src.utils.config import AppConfig


class SortKey(str, Enum):
    """Single active sort order for listing results."""
    FEATURED = "featured"
    PRICE_LOW = "price-low"
    PRICE_HIGH = "price-high"
    RATING = "rating"
    NAME = "name"


class PriceBucket(BaseModel):
    """Half-open price interval [min_rate, max_rate); max_rate None is open-ended."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Bucket key, e.g. low, medium, high")
    min_rate: float = Field(default=0, ge=0)
    max_rate: Optional[float] = Field(None, description="Exclusive upper bound, null for the top bucket")

    @model_validator(mode="after")
    def _check_bounds(self) -> "PriceBucket":
        if self.max_rate is not None and self.max_rate <= self.min_rate:
            raise ValueError(f"Price bucket {self.name!r} upper bound must exceed its lower bound")
        return self

    def contains(self, rate: float) -> bool:
        if rate < self.min_rate:
            return False
        return self.max_rate is None or rate < self.max_rate


class QueryParams(BaseModel):
    """Search parameters for one listing query. Rebuilt per search, never stored."""
    model_config = ConfigDict(frozen=True)

    location: str = Field(default="", description="Free-text location/title/province query")
    guests: int = Field(default=0, ge=0, description="Minimum guest capacity, 0 for any")
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    category: str = Field(default="all", description="Derived category or 'all'")
    price_bucket: str = Field(default="all", description="Price bucket name or 'all'")
    sort: SortKey = Field(default=SortKey.FEATURED)
    page: int = Field(default=1, ge=1, description="1-indexed page number")
    page_size: int = Field(default_factory=lambda: AppConfig.LISTINGS_PAGE_SIZE, ge=1)

    @field_validator("location", mode="before")
    @classmethod
    def _strip_location(cls, value):
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else value

    @field_validator("category", "price_bucket", mode="before")
    @classmethod
    def _all_default(cls, value):
        if value is None or value == "":
            return "all"
        return value.strip().lower() if isinstance(value, str) else value

    @property
    def has_date_range(self) -> bool:
        return self.check_in is not None and self.check_out is not None


class ListingPage(BaseModel):
    """One page of query results plus the counts needed for display."""
    items: list[Listing] = Field(default_factory=list)
    total_count: int = Field(default=0, ge=0, description="Listings matched before pagination")
    total_pages: int = Field(default=0, ge=0)
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=1, ge=1)


class ListingSearchResult(BaseModel):
    """
    Outcome of a catalog search.

    ``unavailable`` means the store could not be reached; it is distinct from
    an ``ok`` result that matched nothing.
    """
    status: Literal["ok", "unavailable"] = "ok"
    page: ListingPage = Field(default_factory=ListingPage)
    suggested: list[Listing] = Field(default_factory=list)
    near_me: list[Listing] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def is_unavailable(self) -> bool:
        return self.status == "unavailable"
