"""
Marketing metrics engine.

Cost per lead and return on marketing investment for a set of income
sources, current period vs previous period.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

import structlog

from config import settings
from exceptions import SourcesRequiredError
from models.metrics import MarketingMetricData
from models.period import Period
from services.aggregation_service import AggregationService
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
class MarketingSnapshot:
    marketing_spend: Decimal
    total_messages: int
    revenue: Decimal
    cpl: Decimal
    romi: Decimal


def calculate_romi(revenue: Decimal, spend: Decimal) -> Decimal:
    """(revenue - spend) / spend * 100, or 0 without spend."""
    if spend == 0:
        return Decimal("0")
    return (revenue - spend) / spend * HUNDRED


class MarketingMetricsService:
    """Marketing metrics business logic."""

    def __init__(self):
        self.store = AggregationService()

    def calculate_period(self, period: Period, sources: Sequence[str]) -> MarketingSnapshot:
        spend = self.store.sum_expenses(period, settings.marketing_expense_category)
        messages = self.store.total_messages(period, sources)
        revenue = self.store.sum_revenue(period, sources)

        return MarketingSnapshot(
            marketing_spend=spend,
            total_messages=messages,
            revenue=revenue,
            cpl=safe_divide(spend, messages),
            romi=calculate_romi(revenue, spend),
        )

    def get_marketing_metrics(
        self,
        from_date: DateInput,
        to_date: DateInput,
        sources: Optional[Sequence[str]]
    ) -> MarketingMetricData:
        """
        Get marketing metrics for the selected income sources.

        Args:
            from_date: First day of the requested period
            to_date: Last day of the requested period
            sources: Income source names (at least one)

        Returns:
            MarketingMetricData, percent change vs the previous period

        Raises:
            SourcesRequiredError: If no source is given
            InvalidRangeError: If to_date is before from_date
            DatabaseError: If a store read fails
        """
        if not sources:
            raise SourcesRequiredError()

        periods = derive_periods(from_date, to_date)

        logger.info(
            "getting_marketing_metrics",
            period=str(periods.current),
            sources=list(sources)
        )

        snapshots = compare_periods(
            lambda p: self.calculate_period(p, sources),
            periods,
            include_prior=False
        )

        logger.info(
            "marketing_metrics_calculated",
            spend=float(snapshots.current.marketing_spend),
            messages=snapshots.current.total_messages,
            romi=float(snapshots.current.romi)
        )

        return MarketingMetricData(
            current_period=periods.current,
            previous_period=periods.previous,
            sources=list(sources),
            marketing_spend=snapshot_metric(snapshots, "marketing_spend"),
            total_messages=snapshot_metric(snapshots, "total_messages"),
            revenue=snapshot_metric(snapshots, "revenue"),
            cpl=snapshot_metric(snapshots, "cpl"),
            romi=snapshot_metric(snapshots, "romi"),
        )


# Singleton instance
_marketing_metrics_service: Optional[MarketingMetricsService] = None


def get_marketing_metrics_service() -> MarketingMetricsService:
    """Get or create MarketingMetricsService instance."""
    global _marketing_metrics_service
    if _marketing_metrics_service is None:
        _marketing_metrics_service = MarketingMetricsService()
    return _marketing_metrics_service
