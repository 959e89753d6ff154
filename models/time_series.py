"""
Time-series bucketing schemas.
"""

from datetime import date as Date
from decimal import Decimal
from enum import Enum
from typing import Dict, List

from pydantic import Field

from models.base import BaseSchema
from models.business_note import BusinessNote


class Granularity(str, Enum):
    """Calendar-aligned bucket size."""

    DAILY = "daily"
    WEEKLY = "weekly"        # ISO week, Monday start
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class DailyPoint(BaseSchema):
    """Metric values for one calendar day."""

    date: Date
    metrics: Dict[str, Decimal] = Field(default_factory=dict)


class TimeSeriesBucket(BaseSchema):
    """Summed metrics for one calendar bucket."""

    key: str = Field(..., description="2024-03-05, 2024-W10, 2024-03, 2024-Q1 or 2024")
    start: Date
    end: Date
    metrics: Dict[str, Decimal] = Field(default_factory=dict)
    growth: Dict[str, Decimal] = Field(
        default_factory=dict, description="% change vs the preceding bucket"
    )
    notes: List[BusinessNote] = Field(default_factory=list)


class PerformanceSeries(BaseSchema):
    """Revenue/expense/profit/order series for a date range."""

    granularity: Granularity
    period_start: Date
    period_end: Date
    buckets: List[TimeSeriesBucket]
