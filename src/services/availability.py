"""Listing availability - decide whether a date range can be booked."""

from datetime import date, datetime, timedelta
from typing import AbstractSet, Iterable, Iterator, Optional, Union

from src.models.booking import Booking
from src.models.listing import Listing
from src.utils.errors import InvalidDateRangeError

DateLike = Union[date, datetime]

_ONE_DAY = timedelta(days=1)


def _as_day(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


def validate_date_range(start: Optional[DateLike], end: Optional[DateLike]) -> None:
    """Raise InvalidDateRangeError when both ends are given and start is after end."""
    if start is None or end is None:
        return
    if _as_day(start) > _as_day(end):
        raise InvalidDateRangeError(_as_day(start), _as_day(end))


def iter_days(start: DateLike, end: DateLike) -> Iterator[date]:
    """Yield every calendar day from start to end, both inclusive."""
    validate_date_range(start, end)
    current = _as_day(start)
    last = _as_day(end)
    while current <= last:
        yield current
        current += _ONE_DAY


def is_range_bookable(
    blocked_dates: AbstractSet[date],
    start: Optional[DateLike],
    end: Optional[DateLike],
) -> bool:
    """
    Return True when no day of the inclusive range [start, end] is blocked.

    A missing start or end means no date constraint was requested, so the
    range is trivially bookable. start == end checks a single day.

    Raises:
        InvalidDateRangeError: start is after end.
    """
    if start is None or end is None:
        return True

    for day in iter_days(start, end):
        if day in blocked_dates:
            return False
    return True


def find_blocked_dates(
    blocked_dates: AbstractSet[date],
    start: DateLike,
    end: DateLike,
) -> list[date]:
    """Blocked days inside the inclusive range, in calendar order."""
    return [day for day in iter_days(start, end) if day in blocked_dates]


def booked_dates(bookings: Iterable[Booking]) -> frozenset[date]:
    """Every day held by an active booking (check-in through check-out inclusive)."""
    days: set[date] = set()
    for booking in bookings:
        if not booking.holds_dates or not booking.check_in or not booking.check_out:
            continue
        if booking.check_in > booking.check_out:
            # Corrupt booking; nothing sensible to hold
            continue
        days.update(iter_days(booking.check_in, booking.check_out))
    return frozenset(days)


def blocked_dates_for(listing: Listing, bookings: Iterable[Booking] = ()) -> frozenset[date]:
    """Host-blocked days for the listing plus days held by its active bookings."""
    listing_bookings = [b for b in bookings if b.listing_id == listing.listing_id]
    return listing.unavailable_dates | booked_dates(listing_bookings)
