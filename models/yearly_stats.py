"""
Yearly statistics schemas: own monthly performance vs competitors and targets.
"""

from decimal import Decimal
from typing import List

from pydantic import Field

from models.base import BaseSchema


class MonthlyTarget(BaseSchema):
    """Revenue target row from the `monthly_targets` table."""

    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
    target: Decimal = Field(default=Decimal("0"), ge=0)


class CompetitorYearlyData(BaseSchema):
    """A competitor's orders for each month of the year."""

    id: str
    name: str
    monthly_orders: List[int] = Field(..., description="12 values, January first")
    total_orders: int


class MonthlyFinancials(BaseSchema):
    """Revenue, expenses and profit for one month."""

    month: str = Field(..., description="Short month name")
    revenue: Decimal
    expenses: Decimal
    profit: Decimal


class YearlyStatsData(BaseSchema):
    """Everything the yearly stats page plots."""

    year: int
    my_total_yearly_orders: int
    monthly_orders: List[int]
    competitors: List[CompetitorYearlyData]
    monthly_financials: List[MonthlyFinancials]
    monthly_target_revenue: List[Decimal]
