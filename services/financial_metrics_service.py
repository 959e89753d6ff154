"""
Financial metrics engine.

Computes revenue, expenses, profit, margins and unit economics
(CAC, AOV, CLTV) for the requested period, the previous period and the
one before it.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

import structlog

from config import settings
from models.metrics import ChangeKind, FinancialMetricData
from models.order import OrderStatus
from models.period import Period
from services.aggregation_service import AggregationService, calculate_mean
from services.period_service import (
    DateInput,
    compare_periods,
    derive_periods,
    safe_divide,
    snapshot_metric,
)

logger = structlog.get_logger(__name__)

HUNDRED = Decimal("100")


@dataclass
class FinancialSnapshot:
    """Financial figures for one period."""
    revenue: Decimal
    expenses: Decimal
    net_profit: Decimal
    profit_margin: Decimal
    gross_margin: Decimal
    cac: Decimal
    aov: Decimal
    cltv: Decimal


def calculate_cltv(aov: Decimal, repeat_rate_fraction: Decimal, avg_lifespan_months: Decimal) -> Decimal:
    """CLTV = AOV x repeat purchase rate (0-1) x average lifespan in months."""
    return aov * repeat_rate_fraction * avg_lifespan_months


class FinancialMetricsService:
    """
    Financial metrics business logic.

    Composes aggregation primitives over P2, P1 and P0.
    """

    def __init__(self):
        self.store = AggregationService()

    def _repeat_rate_fraction(self, period: Period, sources: Optional[Sequence[str]]) -> Decimal:
        """Share (0-1) of ordering clients with more than one order in the period."""
        orders_by_client = self.store.orders_by_client(period, sources)
        repeat_clients = sum(1 for orders in orders_by_client.values() if len(orders) > 1)
        return safe_divide(repeat_clients, len(orders_by_client))

    def calculate_period(self, period: Period, sources: Optional[Sequence[str]] = None) -> FinancialSnapshot:
        """
        Compute every financial figure for one period.

        Zero revenue makes every revenue-based ratio 0. Net profit may be
        negative and is reported as-is.
        """
        completed = self.store.get_orders(period, sources, status=OrderStatus.COMPLETED)
        revenue = sum((o.amount for o in completed), Decimal("0"))
        order_count = len(completed)

        expenses = self.store.sum_expenses(period)
        salary = self.store.sum_expenses(period, settings.salary_expense_category)
        marketing = self.store.sum_expenses(period, settings.marketing_expense_category)
        new_clients = self.store.count_new_clients(period, sources)

        net_profit = revenue - expenses
        profit_margin = safe_divide(net_profit, revenue) * HUNDRED
        gross_margin = safe_divide(revenue - salary, revenue) * HUNDRED
        cac = safe_divide(marketing, new_clients)
        aov = safe_divide(revenue, order_count)

        lifespans = self.store.client_lifespans(period, sources)
        avg_lifespan_months = safe_divide(
            calculate_mean(lifespans), Decimal(str(settings.days_per_month))
        )
        cltv = calculate_cltv(aov, self._repeat_rate_fraction(period, sources), avg_lifespan_months)

        return FinancialSnapshot(
            revenue=revenue,
            expenses=expenses,
            net_profit=net_profit,
            profit_margin=profit_margin,
            gross_margin=gross_margin,
            cac=cac,
            aov=aov,
            cltv=cltv,
        )

    def get_financial_metrics(
        self,
        from_date: DateInput,
        to_date: DateInput,
        sources: Optional[Sequence[str]] = None
    ) -> FinancialMetricData:
        """
        Get financial metrics with three-period comparison.

        Args:
            from_date: First day of the requested period
            to_date: Last day of the requested period
            sources: Income source names to restrict revenue/clients to

        Returns:
            FinancialMetricData; margins report change in points,
            everything else in percent

        Raises:
            InvalidRangeError: If to_date is before from_date
            DatabaseError: If a store read fails
        """
        periods = derive_periods(from_date, to_date)

        logger.info(
            "getting_financial_metrics",
            period=str(periods.current),
            sources=sources
        )

        snapshots = compare_periods(lambda p: self.calculate_period(p, sources), periods)
        top_category = self.store.top_spending_category(periods.current)

        logger.info(
            "financial_metrics_calculated",
            revenue=float(snapshots.current.revenue),
            expenses=float(snapshots.current.expenses),
            net_profit=float(snapshots.current.net_profit)
        )

        return FinancialMetricData(
            periods=periods,
            total_revenue=snapshot_metric(snapshots, "revenue"),
            total_expenses=snapshot_metric(snapshots, "expenses"),
            net_profit=snapshot_metric(snapshots, "net_profit"),
            profit_margin=snapshot_metric(snapshots, "profit_margin", ChangeKind.ABSOLUTE),
            gross_margin=snapshot_metric(snapshots, "gross_margin", ChangeKind.ABSOLUTE),
            cac=snapshot_metric(snapshots, "cac"),
            aov=snapshot_metric(snapshots, "aov"),
            cltv=snapshot_metric(snapshots, "cltv"),
            top_expense_category=top_category,
        )


# Singleton instance
_financial_metrics_service: Optional[FinancialMetricsService] = None


def get_financial_metrics_service() -> FinancialMetricsService:
    """Get or create FinancialMetricsService instance."""
    global _financial_metrics_service
    if _financial_metrics_service is None:
        _financial_metrics_service = FinancialMetricsService()
    return _financial_metrics_service
