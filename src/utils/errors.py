"""Error handling utilities."""


class ZennestError(Exception):
    """Base exception for Zennest backend."""
    pass


class SupabaseError(ZennestError):
    """Supabase operation error."""
    pass


class InvalidDateRangeError(ZennestError, ValueError):
    """Requested date range starts after it ends."""

    def __init__(self, start, end):
        self.start = start
        self.end = end
        super().__init__(f"Invalid date range: start {start} is after end {end}")


class QueryValidationError(ZennestError, ValueError):
    """Listing query parameters are invalid."""
    pass


class ListingValidationError(ZennestError):
    """Listing cannot be saved in the requested state."""
    pass


class ListingLimitError(ZennestError):
    """Host cannot create more listings under the current subscription."""

    def __init__(self, message: str, reason: str):
        self.reason = reason
        super().__init__(message)


class InsufficientPointsError(ZennestError):
    """Points transaction would leave a negative balance."""
    pass


class RewardAlreadyClaimedError(ZennestError):
    """Reward has already been claimed by this host."""
    pass


class BookingNotFoundError(ZennestError):
    """Booking does not exist."""
    pass
