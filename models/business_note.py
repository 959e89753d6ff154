"""
Business note records from the `business_notes` table.
"""

from typing import Optional

from models.base import BaseSchema, CalendarDate


class BusinessNote(BaseSchema):
    """Free-text annotation shown next to time-series points of its date."""

    id: Optional[str] = None
    date: CalendarDate
    title: str
    content: str = ""
