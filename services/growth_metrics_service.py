"""
Growth metrics engine.

Growth rates are themselves period-over-period changes, so each headline
figure compares two rates: P2 vs P1 (the current growth) against P1 vs P0
(the growth one period earlier).
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

import structlog

from models.business_note import BusinessNote
from models.metrics import ChangeKind, GrowthMetricData, GrowthTimeSeriesPoint, MetricValue
from models.order import OrderStatus
from models.period import Period
from services.aggregation_service import AggregationService
from services.period_service import (
    DateInput,
    absolute_change,
    compare_periods,
    derive_periods,
    month_periods,
    percent_change,
    previous_month,
    safe_divide,
)

logger = structlog.get_logger(__name__)

HUNDRED = Decimal("100")


@dataclass
class GrowthSnapshot:
    """Raw figures growth is measured on, for one period."""
    revenue: Decimal
    net_profit: Decimal
    aov: Decimal
    new_clients: int
    clients_at_start: int
    vip_clients: int


def client_growth_rate(new_clients: int, clients_at_start: int) -> Decimal:
    """
    New clients as a percentage of the client base at period start.

    An empty starting base follows the same cap as percent_change:
    100 when any client was acquired, otherwise 0.
    """
    if clients_at_start == 0:
        return HUNDRED if new_clients > 0 else Decimal("0")
    return safe_divide(new_clients, clients_at_start) * HUNDRED


def growth_value(current_rate: Decimal, previous_rate: Decimal) -> MetricValue:
    """MetricValue for a growth rate; change is the acceleration in points."""
    return MetricValue(
        value=round(current_rate, 2),
        change=round(absolute_change(current_rate, previous_rate), 2),
        previous_value=round(previous_rate, 2),
        previous_period_change=None,
        change_kind=ChangeKind.ABSOLUTE
    )


class GrowthMetricsService:
    """
    Growth metrics business logic.

    Headline rates over P2/P1/P0 plus a month-by-month series.
    """

    def __init__(self):
        self.store = AggregationService()

    def calculate_period(self, period: Period, sources: Optional[Sequence[str]] = None) -> GrowthSnapshot:
        """Compute the figures growth is measured on for one period."""
        completed = self.store.get_orders(period, sources, status=OrderStatus.COMPLETED)
        revenue = sum((o.amount for o in completed), Decimal("0"))
        expenses = self.store.sum_expenses(period)

        return GrowthSnapshot(
            revenue=revenue,
            net_profit=revenue - expenses,
            aov=safe_divide(revenue, len(completed)),
            new_clients=self.store.count_new_clients(period, sources),
            clients_at_start=self.store.count_clients_before(period.start, sources),
            vip_clients=self.store.count_vip_clients(period.end, sources),
        )

    def _rate(self, snapshots, field: str) -> MetricValue:
        current = percent_change(getattr(snapshots.current, field), getattr(snapshots.previous, field))
        previous = percent_change(getattr(snapshots.previous, field), getattr(snapshots.prior, field))
        return growth_value(current, previous)

    def _top_source_growth(self, periods, sources: Optional[Sequence[str]]):
        """
        Revenue growth of the current top revenue source.

        The same source is tracked through P1 and P0, so a source that
        only appeared this period shows as 100% growth.
        """
        top = self.store.top_revenue_source(periods.current, sources)
        if top is None:
            return "N/A", growth_value(Decimal("0"), Decimal("0"))

        current = top.amount
        previous = self.store.revenue_for_source(periods.previous, top.name)
        prior = self.store.revenue_for_source(periods.prior, top.name)
        return top.name, growth_value(
            percent_change(current, previous),
            percent_change(previous, prior)
        )

    def get_growth_metrics(
        self,
        from_date: DateInput,
        to_date: DateInput,
        sources: Optional[Sequence[str]] = None
    ) -> GrowthMetricData:
        """
        Get growth metrics for the period.

        Args:
            from_date: First day of the requested period
            to_date: Last day of the requested period
            sources: Income source names to restrict revenue/clients to

        Returns:
            GrowthMetricData with headline rates and the monthly series

        Raises:
            InvalidRangeError: If to_date is before from_date
            DatabaseError: If a store read fails
        """
        periods = derive_periods(from_date, to_date)

        logger.info(
            "getting_growth_metrics",
            period=str(periods.current),
            sources=sources
        )

        snapshots = compare_periods(lambda p: self.calculate_period(p, sources), periods)

        client_growth = growth_value(
            client_growth_rate(snapshots.current.new_clients, snapshots.current.clients_at_start),
            client_growth_rate(snapshots.previous.new_clients, snapshots.previous.clients_at_start)
        )
        top_source, top_source_growth = self._top_source_growth(periods, sources)

        time_series = self.get_monthly_series(periods.current, sources)

        logger.info(
            "growth_metrics_calculated",
            revenue_growth=float(percent_change(snapshots.current.revenue, snapshots.previous.revenue)),
            months=len(time_series),
            top_source=top_source
        )

        return GrowthMetricData(
            periods=periods,
            revenue_growth=self._rate(snapshots, "revenue"),
            profit_growth=self._rate(snapshots, "net_profit"),
            client_growth=client_growth,
            aov_growth=self._rate(snapshots, "aov"),
            vip_client_growth=self._rate(snapshots, "vip_clients"),
            top_source_growth=top_source_growth,
            top_source=top_source,
            time_series=time_series,
        )

    # ===================
    # MONTHLY SERIES
    # ===================

    def get_monthly_series(
        self,
        period: Period,
        sources: Optional[Sequence[str]] = None
    ) -> List[GrowthTimeSeriesPoint]:
        """
        One point per calendar month the period touches.

        Each month is measured in full and compared with the calendar
        month before it. client_growth is the month's new-client count.
        """
        months = month_periods(period)
        if not months:
            return []

        notes_by_month: Dict[str, List[BusinessNote]] = {}
        series_span = Period(start=months[0].start, end=months[-1].end)
        for note in self.store.get_business_notes(series_span):
            notes_by_month.setdefault(note.date.strftime("%Y-%m"), []).append(note)

        # The month before the first one is only used as a baseline
        baseline = self.calculate_period(previous_month(months[0]), sources)

        points = []
        for month in months:
            snapshot = self.calculate_period(month, sources)
            key = month.start.strftime("%Y-%m")
            points.append(GrowthTimeSeriesPoint(
                month=key,
                label=month.start.strftime("%b"),
                revenue=round(snapshot.revenue, 2),
                net_profit=round(snapshot.net_profit, 2),
                revenue_growth=round(percent_change(snapshot.revenue, baseline.revenue), 2),
                profit_growth=round(percent_change(snapshot.net_profit, baseline.net_profit), 2),
                aov_growth=round(percent_change(snapshot.aov, baseline.aov), 2),
                client_growth=snapshot.new_clients,
                notes=notes_by_month.get(key, []),
            ))
            baseline = snapshot

        return points


# Singleton instance
_growth_metrics_service: Optional[GrowthMetricsService] = None


def get_growth_metrics_service() -> GrowthMetricsService:
    """Get or create GrowthMetricsService instance."""
    global _growth_metrics_service
    if _growth_metrics_service is None:
        _growth_metrics_service = GrowthMetricsService()
    return _growth_metrics_service
