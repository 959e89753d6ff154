"""
Custom exception classes for the application.

Every error raised by the analytics core derives from AppError so the
API layer can turn it into the standard error payload.
"""

from typing import Optional, Any
from datetime import date, datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "SOURCE_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# ANALYTICS ERRORS
# ===================

class InvalidRangeError(ValidationError):
    """Date range ends before it starts."""

    def __init__(self, start: date, end: date):
        super().__init__(
            code="INVALID_DATE_RANGE",
            message="End date must be on or after start date",
            details={"from": start.isoformat(), "to": end.isoformat()}
        )


class InvalidDateError(ValidationError):
    """Date input could not be parsed as a calendar day."""

    def __init__(self, value: Any):
        super().__init__(
            code="INVALID_DATE",
            message=f"Invalid date: {value}",
            details={"provided": str(value)}
        )


class SourcesRequiredError(ValidationError):
    """Income source filter is mandatory for this metric."""

    def __init__(self):
        super().__init__(
            code="SOURCES_REQUIRED",
            message="At least one income source must be selected"
        )


class InvalidYearError(ValidationError):
    """Year outside the supported range."""

    def __init__(self, year: int):
        super().__init__(
            code="INVALID_YEAR",
            message="Year must be between 2000 and 2100",
            details={"provided": year}
        )


class GigNotFoundError(NotFoundError):
    """Gig not found in any income source."""

    def __init__(self, gig_id: str):
        super().__init__(
            resource="Gig",
            identifier=gig_id,
            code="GIG_NOT_FOUND"
        )


class SourceNotFoundError(NotFoundError):
    """Income source not found."""

    def __init__(self, source_id: str):
        super().__init__(
            resource="Income source",
            identifier=source_id,
            code="SOURCE_NOT_FOUND"
        )
