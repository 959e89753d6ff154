"""
Comparison periods.

A Period is a closed calendar-day interval. A PeriodSet holds the requested
period and the two equal-length periods immediately before it.
"""

from datetime import date

from pydantic import Field

from models.base import BaseSchema


class Period(BaseSchema):
    """Closed date interval [start, end]."""

    start: date = Field(..., description="First day of the period")
    end: date = Field(..., description="Last day of the period")

    @property
    def duration_days(self) -> int:
        """Raw day difference end - start (not calendar-inclusive)."""
        return (self.end - self.start).days

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"


class PeriodSet(BaseSchema):
    """P2 (current), P1 (previous) and P0 (prior)."""

    current: Period
    previous: Period
    prior: Period
