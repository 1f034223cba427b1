"""Booking model."""

from datetime import date
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class BookingStatus(str, Enum):
    """Booking lifecycle states."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    RESERVED = "reserved"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


# Statuses whose dates are held against the listing calendar
ACTIVE_BOOKING_STATUSES = frozenset({
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
    BookingStatus.RESERVED,
})


class Booking(BaseModel):
    """Guest booking for a listing."""
    booking_id: Optional[str] = Field(None, description="Booking ID")
    listing_id: str = Field(..., description="Booked listing ID")
    host_id: Optional[str] = Field(None, description="Listing host ID")
    guest_id: Optional[str] = Field(None, description="Guest user ID")
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    guests: int = Field(default=1, ge=0)
    total: float = Field(default=0, ge=0)
    status: BookingStatus = Field(default=BookingStatus.PENDING)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def holds_dates(self) -> bool:
        return self.status in ACTIVE_BOOKING_STATUSES
