"""
Gig and income-source analytics.

Builds a per-day series for a window where day i of the window sits next
to day i of the previous window of the same length, so the two can be
plotted on one axis.
"""

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Set

import structlog

from config import settings
from models.analytics import (
    AnalyticsTotals,
    DailyAnalyticsPoint,
    GigAnalyticsData,
    GigSummary,
    SourceAnalyticsData,
)
from models.income_source import Gig, IncomeSource
from models.period import Period
from services.aggregation_service import AggregationService
from services.period_service import (
    DateInput,
    each_day,
    make_period,
    normalize_date,
    preceding_period,
    safe_divide,
)

logger = structlog.get_logger(__name__)

HUNDRED = Decimal("100")


def resolve_window(
    from_date: Optional[DateInput],
    to_date: Optional[DateInput],
    today: Optional[date] = None
) -> Period:
    """
    Window for gig/source analytics.

    A missing end defaults to today; a missing start to the trailing
    `default_window_days` days ending at the end date.
    """
    end = normalize_date(to_date) if to_date else (today or date.today())
    if from_date:
        return make_period(from_date, end)
    return make_period(end - timedelta(days=settings.default_window_days - 1), end)


def _percent_of(part, whole) -> Decimal:
    return round(safe_divide(part, whole) * HUNDRED, 2)


def _totals(points: List[DailyAnalyticsPoint], prefix: str = "") -> AnalyticsTotals:
    """Sum the current (or prev_-prefixed) fields of a series."""
    impressions = sum(getattr(p, f"{prefix}impressions") for p in points)
    clicks = sum(getattr(p, f"{prefix}clicks") for p in points)
    orders = sum(getattr(p, f"{prefix}orders") for p in points)
    revenue = sum((getattr(p, f"{prefix}revenue") for p in points), Decimal("0"))
    messages = sum(getattr(p, f"{prefix}messages") for p in points)

    return AnalyticsTotals(
        impressions=impressions,
        clicks=clicks,
        orders=orders,
        revenue=round(revenue, 2),
        messages=messages,
        ctr=_percent_of(clicks, impressions),
        conversion_rate=_percent_of(orders, impressions),
    )


class SourceAnalyticsService:
    """Gig/source analytics business logic."""

    def __init__(self):
        self.store = AggregationService()

    def _daily_activity(
        self,
        source: IncomeSource,
        gigs: Sequence[Gig],
        gig_names: Optional[Set[str]],
        period: Period
    ) -> Dict[date, Dict[str, Decimal]]:
        """
        Per-day impressions, clicks, orders, revenue and messages.

        Impressions/clicks come from the given gigs' analytics, messages
        from the source's data points and orders from non-cancelled orders
        of the source (restricted to `gig_names` when given).
        """
        daily: Dict[date, Dict[str, Decimal]] = defaultdict(lambda: defaultdict(Decimal))

        for gig in gigs:
            for point in gig.analytics:
                if period.contains(point.date):
                    daily[point.date]["impressions"] += point.impressions
                    daily[point.date]["clicks"] += point.clicks

        for point in source.data_points:
            if period.contains(point.date):
                daily[point.date]["messages"] += point.messages

        for order in self.store.get_orders(period, [source.name], exclude_cancelled=True):
            if gig_names is not None and order.gig not in gig_names:
                continue
            daily[order.date]["orders"] += 1
            daily[order.date]["revenue"] += order.amount

        return daily

    def build_series(
        self,
        source: IncomeSource,
        period: Period,
        gig: Optional[Gig] = None
    ) -> List[DailyAnalyticsPoint]:
        """
        Aligned daily series for the window and its preceding window.

        Both windows have the same number of days, so days are paired by
        position.
        """
        gigs = [gig] if gig is not None else source.gigs
        gig_names = {gig.name} if gig is not None else None
        previous = preceding_period(period)

        current = self._daily_activity(source, gigs, gig_names, period)
        prior = self._daily_activity(source, gigs, gig_names, previous)

        series = []
        for day, prev_day in zip(each_day(period), each_day(previous)):
            now, then = current.get(day, {}), prior.get(prev_day, {})
            impressions = int(now.get("impressions", 0))
            clicks = int(now.get("clicks", 0))
            prev_impressions = int(then.get("impressions", 0))
            prev_clicks = int(then.get("clicks", 0))

            series.append(DailyAnalyticsPoint(
                date=day.isoformat(),
                impressions=impressions,
                clicks=clicks,
                orders=int(now.get("orders", 0)),
                revenue=round(now.get("revenue", Decimal("0")), 2),
                messages=int(now.get("messages", 0)),
                ctr=_percent_of(clicks, impressions),
                prev_impressions=prev_impressions,
                prev_clicks=prev_clicks,
                prev_orders=int(then.get("orders", 0)),
                prev_revenue=round(then.get("revenue", Decimal("0")), 2),
                prev_messages=int(then.get("messages", 0)),
                prev_ctr=_percent_of(prev_clicks, prev_impressions),
            ))

        return series

    def get_gig_analytics(
        self,
        gig_id: str,
        from_date: Optional[DateInput] = None,
        to_date: Optional[DateInput] = None
    ) -> Optional[GigAnalyticsData]:
        """
        Get daily analytics for one gig.

        Returns:
            GigAnalyticsData, or None if no income source has the gig

        Raises:
            InvalidRangeError: If to_date is before from_date
            DatabaseError: If a store read fails
        """
        period = resolve_window(from_date, to_date)

        logger.info("getting_gig_analytics", gig_id=gig_id, period=str(period))

        source = self.store.find_gig_source(gig_id)
        if source is None:
            logger.warning("gig_not_found", gig_id=gig_id)
            return None

        gig = source.find_gig(gig_id)
        series = self.build_series(source, period, gig)

        return GigAnalyticsData(
            gig_id=gig.id,
            gig_name=gig.name,
            source_name=source.name,
            source_total_orders=self.store.count_source_orders(source.name),
            period_start=period.start,
            period_end=period.end,
            time_series=series,
            totals=_totals(series),
            previous_totals=_totals(series, "prev_"),
        )

    def get_source_analytics(
        self,
        source_id: str,
        from_date: Optional[DateInput] = None,
        to_date: Optional[DateInput] = None
    ) -> Optional[SourceAnalyticsData]:
        """
        Get daily analytics for an income source across all of its gigs.

        Returns:
            SourceAnalyticsData, or None if the source does not exist

        Raises:
            InvalidRangeError: If to_date is before from_date
            DatabaseError: If a store read fails
        """
        period = resolve_window(from_date, to_date)

        logger.info("getting_source_analytics", source_id=source_id, period=str(period))

        source = self.store.get_income_source(source_id)
        if source is None:
            logger.warning("source_not_found", source_id=source_id)
            return None

        series = self.build_series(source, period)

        return SourceAnalyticsData(
            source_id=source.id,
            source_name=source.name,
            gigs=[
                GigSummary(
                    id=g.id,
                    name=g.name,
                    date=g.date.isoformat() if g.date else None,
                    messages=g.messages,
                )
                for g in source.gigs
            ],
            period_start=period.start,
            period_end=period.end,
            time_series=series,
            totals=_totals(series),
            previous_totals=_totals(series, "prev_"),
        )


# Singleton instance
_source_analytics_service: Optional[SourceAnalyticsService] = None


def get_source_analytics_service() -> SourceAnalyticsService:
    """Get or create SourceAnalyticsService instance."""
    global _source_analytics_service
    if _source_analytics_service is None:
        _source_analytics_service = SourceAnalyticsService()
    return _source_analytics_service
