"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    DatabaseError,

    # Analytics
    InvalidRangeError,
    InvalidDateError,
    SourcesRequiredError,
    InvalidYearError,
    GigNotFoundError,
    SourceNotFoundError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "DatabaseError",

    # Analytics
    "InvalidRangeError",
    "InvalidDateError",
    "SourcesRequiredError",
    "InvalidYearError",
    "GigNotFoundError",
    "SourceNotFoundError",
]
