"""
Base schemas shared by all models.
"""

from datetime import date, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict


def _to_calendar_day(value: Any) -> Any:
    """Drop any time-of-day component; the store mixes dates and timestamps."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and len(value) > 10:
        return value[:10]
    return value


# Calendar day without time-of-day
CalendarDate = Annotated[date, BeforeValidator(_to_calendar_day)]


class BaseSchema(BaseModel):
    """
    Base for all schemas.

    Features:
        - Auto-trim whitespace from strings
        - Validate on attribute assignment
        - Allow ORM objects (from_attributes)
        - Ignore store columns the model does not declare
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True,
        extra="ignore"
    )
