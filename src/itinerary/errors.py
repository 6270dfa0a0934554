"""
Custom exceptions for the itinerary engine.

Scheduling errors (validation, missing records, failed writes) propagate to
the caller. Provider errors are raised by the routing clients and converted
into fallback routes by the route resolver, so they never reach end users.

Usage:
    from itinerary.errors import NotFoundError, ErrorCode

    raise NotFoundError("Schedule item 'abc' not found", code=ErrorCode.ITEM_NOT_FOUND)
"""

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Error codes for client-facing error messages."""

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REORDER = "INVALID_REORDER"

    # Lookup errors
    ITEM_NOT_FOUND = "ITEM_NOT_FOUND"
    LOCATION_NOT_FOUND = "LOCATION_NOT_FOUND"

    # Routing provider errors
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
    PROVIDER_BAD_RESPONSE = "PROVIDER_BAD_RESPONSE"

    # Persistence errors
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


USER_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.VALIDATION_ERROR: "Your request contains invalid information. Please check and try again.",
    ErrorCode.INVALID_REORDER: "These activities cannot be reordered right now.",
    ErrorCode.ITEM_NOT_FOUND: "That activity no longer exists. Refresh the day and try again.",
    ErrorCode.LOCATION_NOT_FOUND: "That place no longer exists on this trip.",
    ErrorCode.PROVIDER_UNAVAILABLE: "Road routing is unavailable. Showing straight lines instead.",
    ErrorCode.PROVIDER_BAD_RESPONSE: "Road routing returned no route. Showing straight lines instead.",
    ErrorCode.PERSISTENCE_FAILED: "Your new order could not be saved. The previous order was restored.",
    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred. Please try again.",
}


class ItineraryError(Exception):
    """Base exception for all itinerary engine errors."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INTERNAL_ERROR):
        self.message = message
        self.code = code
        super().__init__(message)

    @property
    def user_message(self) -> str:
        return USER_MESSAGES.get(self.code, USER_MESSAGES[ErrorCode.INTERNAL_ERROR])


class ValidationError(ItineraryError):
    """Required plan, day or items are missing or inconsistent."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.VALIDATION_ERROR):
        super().__init__(message, code=code)


class NotFoundError(ItineraryError):
    """A schedule item or location is absent."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.ITEM_NOT_FOUND):
        super().__init__(message, code=code)


class ProviderError(ItineraryError):
    """The external routing provider failed or returned an unusable route."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: ErrorCode = ErrorCode.PROVIDER_UNAVAILABLE,
    ):
        self.status_code = status_code
        super().__init__(message, code=code)


class PersistenceError(ItineraryError):
    """Writing the new order to the schedule store failed."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.PERSISTENCE_FAILED):
        super().__init__(message, code=code)
