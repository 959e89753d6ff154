"""
Yearly statistics: own monthly orders and financials vs competitors and targets.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

import structlog

from exceptions import InvalidYearError
from models.order import OrderStatus
from models.period import Period
from models.yearly_stats import CompetitorYearlyData, MonthlyFinancials, YearlyStatsData
from services.aggregation_service import AggregationService

logger = structlog.get_logger(__name__)

MIN_YEAR = 2000
MAX_YEAR = 2100


class YearlyStatsService:
    """Yearly stats business logic."""

    def __init__(self):
        self.store = AggregationService()

    def _monthly_orders_and_revenue(self, year: int):
        orders = [0] * 12
        revenue = [Decimal("0")] * 12
        year_period = Period(start=date(year, 1, 1), end=date(year, 12, 31))
        for order in self.store.get_orders(year_period, status=OrderStatus.COMPLETED):
            orders[order.date.month - 1] += 1
            revenue[order.date.month - 1] += order.amount
        return orders, revenue

    def _monthly_expenses(self, year: int) -> List[Decimal]:
        expenses = [Decimal("0")] * 12
        year_period = Period(start=date(year, 1, 1), end=date(year, 12, 31))
        for expense in self.store.get_expenses(year_period):
            expenses[expense.date.month - 1] += expense.amount
        return expenses

    def _competitors(self, year: int) -> List[CompetitorYearlyData]:
        competitors = []
        for competitor in self.store.get_competitors():
            monthly = [0] * 12
            for entry in competitor.monthly_data:
                if entry.year == year:
                    monthly[entry.month - 1] += entry.orders
            competitors.append(CompetitorYearlyData(
                id=competitor.id,
                name=competitor.name,
                monthly_orders=monthly,
                total_orders=sum(monthly),
            ))
        return competitors

    def get_yearly_stats(self, year: int) -> YearlyStatsData:
        """
        Get the yearly overview.

        Args:
            year: Calendar year (2000-2100)

        Returns:
            YearlyStatsData with 12 monthly values per series, January first

        Raises:
            InvalidYearError: If year is outside 2000-2100
            DatabaseError: If a store read fails
        """
        if not MIN_YEAR <= year <= MAX_YEAR:
            raise InvalidYearError(year)

        logger.info("getting_yearly_stats", year=year)

        orders, revenue = self._monthly_orders_and_revenue(year)
        expenses = self._monthly_expenses(year)

        targets = [Decimal("0")] * 12
        for target in self.store.get_monthly_targets(year):
            targets[target.month - 1] = target.target

        financials = [
            MonthlyFinancials(
                month=date(year, m + 1, 1).strftime("%b"),
                revenue=round(revenue[m], 2),
                expenses=round(expenses[m], 2),
                profit=round(revenue[m] - expenses[m], 2),
            )
            for m in range(12)
        ]

        competitors = self._competitors(year)

        logger.info(
            "yearly_stats_calculated",
            year=year,
            total_orders=sum(orders),
            competitors=len(competitors)
        )

        return YearlyStatsData(
            year=year,
            my_total_yearly_orders=sum(orders),
            monthly_orders=orders,
            competitors=competitors,
            monthly_financials=financials,
            monthly_target_revenue=targets,
        )


# Singleton instance
_yearly_stats_service: Optional[YearlyStatsService] = None


def get_yearly_stats_service() -> YearlyStatsService:
    """Get or create YearlyStatsService instance."""
    global _yearly_stats_service
    if _yearly_stats_service is None:
        _yearly_stats_service = YearlyStatsService()
    return _yearly_stats_service
