"""
Income source records from the `income_sources` table.

Gigs, gig analytics and message data points are embedded in the source row.
"""

from typing import List, Optional

from pydantic import Field

from models.base import BaseSchema, CalendarDate


class GigAnalyticsPoint(BaseSchema):
    """Daily impressions/clicks for a gig."""

    date: CalendarDate
    impressions: int = Field(default=0, ge=0)
    clicks: int = Field(default=0, ge=0)


class Gig(BaseSchema):
    """A gig (listing) offered under an income source."""

    id: str = Field(..., description="Gig ID, unique within the source")
    name: str = Field(..., description="Gig name, matched against order.gig")
    date: Optional[CalendarDate] = Field(None, description="Date the gig was created")
    messages: Optional[int] = Field(None, description="Lifetime message count")
    analytics: List[GigAnalyticsPoint] = Field(default_factory=list)


class SourceDataPoint(BaseSchema):
    """Daily inbound message count for a source."""

    date: CalendarDate
    messages: int = Field(default=0, ge=0)


class IncomeSource(BaseSchema):
    """An income source (marketplace, channel) with its gigs."""

    id: str = Field(..., description="Source ID")
    name: str = Field(..., description="Unique source name, matched against order.source")
    gigs: List[Gig] = Field(default_factory=list)
    data_points: List[SourceDataPoint] = Field(default_factory=list)

    def find_gig(self, gig_id: str) -> Optional[Gig]:
        return next((g for g in self.gigs if g.id == gig_id), None)
