# backend/app/core/exceptions.py
"""
Domain-specific exceptions for the training scheduler.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
Every domain error carries a stable ``code`` that clients can switch on.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException carrying the standard error body."""
        return HTTPException(status_code=self.status_code, detail=self.to_dict())


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "VALIDATION_ERROR"


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT
    default_code = "CONFLICT"


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    default_code = "INTERNAL_ERROR"


# Specific business exceptions


class ResourceUnavailableException(ConflictException):
    """Raised when a requested resource is already committed to an overlapping booking."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "Some resources are already assigned in the selected dates.",
            code="RESOURCE_UNAVAILABLE",
            details=details or {},
        )


class InvalidStatusTransitionException(ValidationException):
    """Raised when a manual status change is not allowed from the current state."""

    def __init__(self, message: str, *, current: str, requested: str, automatic: str):
        super().__init__(
            message=message,
            details={
                "current_status": current,
                "requested_status": requested,
                "automatic_status": automatic,
            },
        )


class InvalidTimeException(ValidationException):
    """Raised when an externally supplied time of day is malformed."""

    def __init__(self, value: object, field: Optional[str] = None):
        details: Dict[str, Any] = {"reason": "INVALID_TIME", "value": str(value)}
        if field:
            details["field"] = field
        super().__init__(message="Time of day must use the HH:MM format", details=details)


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
