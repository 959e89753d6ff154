"""
Competitor records from the `competitors` table.
"""

from typing import List

from pydantic import Field

from models.base import BaseSchema


class CompetitorMonthlyData(BaseSchema):
    """Orders and reviews a competitor logged for one calendar month."""

    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
    orders: int = Field(default=0, ge=0)
    reviews: int = Field(default=0, ge=0)


class Competitor(BaseSchema):
    """A tracked competitor."""

    id: str
    name: str
    monthly_data: List[CompetitorMonthlyData] = Field(default_factory=list)
