# backend/tutorhub/core/exceptions.py
"""
Domain-specific exceptions for the tutorhub scheduling engine.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when rule data is malformed (e.g. start >= end)."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class ForbiddenException(DomainException):
    """Raised when the acting user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific booking exceptions


class SlotTakenException(ConflictException):
    """Another active booking already holds this exact slot."""

    def __init__(self, message: Optional[str] = None, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message or "This time slot has already been booked",
            code="SLOT_TAKEN",
            details=details or {},
        )


class SlotNoLongerAvailableException(ConflictException):
    """The requested window is not among the teacher's resolved slots any more."""

    def __init__(self, message: Optional[str] = None, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message or "This time slot is no longer available",
            code="SLOT_NO_LONGER_AVAILABLE",
            details=details or {},
        )


class InvalidTransitionException(BusinessRuleException):
    """Raised when a booking status change is not an edge of the lifecycle."""

    def __init__(self, current: str, requested: str, booking_id: Optional[str] = None):
        super().__init__(
            message=f"Cannot change booking status from {current} to {requested}",
            code="INVALID_TRANSITION",
            details={"booking_id": booking_id, "current": current, "requested": requested},
        )


class UnauthorizedActorException(ForbiddenException):
    """Raised when the actor may not perform a booking or availability change."""

    def __init__(self, message: Optional[str] = None, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message or "You are not allowed to perform this action",
            code="UNAUTHORIZED_ACTOR",
            details=details or {},
        )


class AmbiguousLocalTimeException(BusinessRuleException):
    """Wall-clock time occurs twice in the zone (DST fall back)."""

    def __init__(self, local_date: str, wall_time: str, zone_id: str):
        super().__init__(
            message=(
                f"The time {wall_time} on {local_date} occurs twice in {zone_id} due to "
                "Daylight Saving Time. Please select a different time."
            ),
            code="AMBIGUOUS_LOCAL_TIME",
            details={"date": local_date, "time": wall_time, "zone": zone_id},
        )


class NonexistentLocalTimeException(BusinessRuleException):
    """Wall-clock time is skipped in the zone (DST spring forward)."""

    def __init__(self, local_date: str, wall_time: str, zone_id: str):
        super().__init__(
            message=(
                f"The time {wall_time} does not exist on {local_date} in {zone_id} due to "
                "Daylight Saving Time. Please select a different time."
            ),
            code="NONEXISTENT_LOCAL_TIME",
            details={"date": local_date, "time": wall_time, "zone": zone_id},
        )


class BookingTimeoutException(ServiceException):
    """Persistence did not answer within the caller-supplied bound."""

    status_code = status.HTTP_504_GATEWAY_TIMEOUT

    def __init__(self, operation: str, timeout_s: float):
        super().__init__(
            message=f"{operation} did not complete within {timeout_s:g}s",
            code="BOOKING_TIMEOUT",
            details={"operation": operation, "timeout_s": timeout_s},
        )


# Union of failures book_slot can surface to its caller
BookingError = (
    SlotTakenException,
    SlotNoLongerAvailableException,
    BookingTimeoutException,
    AmbiguousLocalTimeException,
    NonexistentLocalTimeException,
)


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """


def is_timeout_error(exc: Exception) -> bool:
    """Check if a driver error means the database gave up waiting (lock or statement timeout)."""
    error_str = str(exc).lower()
    return (
        "database is locked" in error_str
        or "statement timeout" in error_str
        or "canceling statement due to" in error_str
        or "lock timeout" in error_str
        or ("timeout" in error_str and ("connection" in error_str or "pool" in error_str))
    )
