"""
Gig and income-source analytics schemas.

Per-day series where each day of the requested window sits next to the
matching day of the previous window of the same length.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from models.base import BaseSchema


class DailyAnalyticsPoint(BaseSchema):
    """One day of the current window aligned with one day of the previous window."""

    date: str = Field(..., description="YYYY-MM-DD")
    impressions: int = 0
    clicks: int = 0
    orders: int = 0
    revenue: Decimal = Decimal("0")
    messages: int = 0
    ctr: Decimal = Field(default=Decimal("0"), description="clicks / impressions * 100")
    prev_impressions: int = 0
    prev_clicks: int = 0
    prev_orders: int = 0
    prev_revenue: Decimal = Decimal("0")
    prev_messages: int = 0
    prev_ctr: Decimal = Decimal("0")


class AnalyticsTotals(BaseSchema):
    """Window totals."""

    impressions: int = 0
    clicks: int = 0
    orders: int = 0
    revenue: Decimal = Decimal("0")
    messages: int = 0
    ctr: Decimal = Decimal("0")
    conversion_rate: Decimal = Field(default=Decimal("0"), description="orders / impressions * 100")


class GigAnalyticsData(BaseSchema):
    """Analytics for a single gig."""

    gig_id: str
    gig_name: str
    source_name: str
    source_total_orders: int = Field(..., description="All non-cancelled orders of the source")
    period_start: date
    period_end: date
    time_series: List[DailyAnalyticsPoint]
    totals: AnalyticsTotals
    previous_totals: AnalyticsTotals


class GigSummary(BaseSchema):
    """Gig listing inside source analytics."""

    id: str
    name: str
    date: Optional[str] = None
    messages: Optional[int] = None


class SourceAnalyticsData(BaseSchema):
    """Analytics for an income source across all of its gigs."""

    source_id: str
    source_name: str
    gigs: List[GigSummary]
    period_start: date
    period_end: date
    time_series: List[DailyAnalyticsPoint]
    totals: AnalyticsTotals
    previous_totals: AnalyticsTotals
