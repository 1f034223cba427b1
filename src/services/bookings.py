"""Booking status transitions and their side effects on listings and rewards."""

from datetime import date, datetime, timezone

from src.models.booking import Booking, BookingStatus
from src.models.listing import Listing
from src.services import supabase_client
from src.services.availability import blocked_dates_for, find_blocked_dates
from src.services.rewards import FIRST_COMPLETED_BOOKING_POINTS, award_points
from src.utils.errors import BookingNotFoundError
from src.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)


async def get_booking(booking_id: str) -> Booking:
    record = await supabase_client.get_booking(booking_id)
    if record is None:
        raise BookingNotFoundError(f"Booking not found: {booking_id}")
    return Booking.model_validate(record)


async def conflicting_dates(listing: Listing, booking: Booking) -> list[date]:
    """Days of the requested stay already blocked on the listing calendar."""
    if booking.check_in is None or booking.check_out is None:
        return []
    records = await supabase_client.get_active_bookings(listing.listing_id)
    others = [
        Booking.model_validate(record) for record in records
        if record.get("booking_id") != booking.booking_id
    ]
    blocked = blocked_dates_for(listing, others)
    return find_blocked_dates(blocked, booking.check_in, booking.check_out)


async def _on_booking_completed(booking: Booking) -> None:
    """Bump the listing ranking counter and award first-completion points."""
    try:
        await supabase_client.increment_completed_bookings(booking.listing_id)
    except Exception as e:
        logger.error(
            "Failed to increment completed bookings",
            booking_id=booking.booking_id,
            listing_id=booking.listing_id,
            error=str(e),
        )

    if not booking.host_id:
        return

    try:
        completed = await supabase_client.count_completed_bookings(booking.host_id)
        if completed == 1:
            await award_points(booking.host_id, FIRST_COMPLETED_BOOKING_POINTS, "Completed first booking")
    except Exception as e:
        logger.error(
            "Failed to award points for completed booking",
            booking_id=booking.booking_id,
            host_id=mask_user_id(booking.host_id),
            error=str(e),
        )


async def update_booking_status(booking_id: str, status: BookingStatus) -> Booking:
    """
    Move a booking to a new status.

    Entering ``completed`` increments the listing's completed_bookings_count
    and, for the host's first completed booking, awards points. Failures in
    those side effects are logged and do not undo the status change.

    Raises:
        BookingNotFoundError: no booking with this ID.
    """
    status = BookingStatus(status)
    booking = await get_booking(booking_id)
    previous_status = booking.status

    record = await supabase_client.update_booking(booking_id, {
        "status": status.value,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    })
    updated = Booking.model_validate(record)

    logger.info(
        "Booking status updated",
        booking_id=booking_id,
        previous_status=previous_status.value,
        status=status.value,
    )

    if status == BookingStatus.COMPLETED and previous_status != BookingStatus.COMPLETED:
        await _on_booking_completed(updated)

    return updated
