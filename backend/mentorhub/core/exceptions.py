# backend/mentorhub/core/exceptions.py
"""
Domain-specific exceptions for the MentorHub availability service.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

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
        """Default conversion to HTTPException (override in subclasses)."""
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=HTTP_422_UNPROCESSABLE,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


class PersistenceException(ServiceException):
    """
    Raised when the persistence layer fails mid-operation.

    The whole aggregate is left unchanged (the transaction is rolled back),
    so clients may retry the complete request.
    """

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(
            message=message or "Failed to persist availability changes",
            code="PERSISTENCE_ERROR",
        )

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
            headers={"Retry-After": "2"},
        )


# Specific business exceptions


class ScheduleValidationException(ValidationException):
    """
    Raised when time blocks, exceptions or settings fail validation.

    Carries every violation found so the caller can display all of them
    at once. No state is mutated when this is raised.
    """

    def __init__(
        self,
        errors: List[str],
        message: Optional[str] = None,
        *,
        code: str = "SCHEDULE_VALIDATION_FAILED",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.errors = list(errors)
        payload: Dict[str, Any] = {"errors": self.errors}
        if details:
            payload.update(details)
        super().__init__(
            message=message or (self.errors[0] if len(self.errors) == 1 else "Invalid schedule"),
            code=code,
            details=payload,
        )


class BookingWindowViolation(BusinessRuleException):
    """Raised when a requested slot falls outside the mentor's booking window."""

    def __init__(
        self,
        message: str,
        *,
        earliest: Optional[datetime] = None,
        latest: Optional[datetime] = None,
        reason: str = "outside_window",
    ) -> None:
        details: Dict[str, Any] = {"reason": reason}
        if earliest is not None:
            details["earliest"] = earliest.isoformat()
        if latest is not None:
            details["latest"] = latest.isoformat()
        super().__init__(message=message, code="BOOKING_WINDOW_VIOLATION", details=details)


class SlotNotAvailable(ConflictException):
    """Raised when the effective schedule has no bookable coverage for a slot."""

    def __init__(self, message: Optional[str] = None, *, reason: str = "no_coverage") -> None:
        super().__init__(
            message=message or "The requested time is not available",
            code="SLOT_NOT_AVAILABLE",
            details={"reason": reason},
        )


class MentorUnavailable(BusinessRuleException):
    """Raised when the mentor's schedule is deactivated."""

    def __init__(self, mentor_id: str) -> None:
        super().__init__(
            message="This mentor is not accepting bookings right now",
            code="MENTOR_UNAVAILABLE",
            details={"mentor_id": mentor_id},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
