"""
Time-series bucketing.

Groups daily metric points into calendar-aligned buckets (day, ISO week,
month, quarter, year), sums each metric per bucket and reports growth
against the preceding bucket.
"""

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Union

import structlog

from models.business_note import BusinessNote
from models.order import OrderStatus
from models.time_series import DailyPoint, Granularity, PerformanceSeries, TimeSeriesBucket
from services.aggregation_service import AggregationService
from services.period_service import DateInput, each_day, make_period, month_end, percent_change

logger = structlog.get_logger(__name__)

PERFORMANCE_METRICS = ("revenue", "expenses", "profit", "orders")


# ===================
# BUCKET BOUNDARIES
# ===================

def bucket_start(day: date, granularity: Granularity) -> date:
    """First day of the bucket containing `day`."""
    if granularity == Granularity.DAILY:
        return day
    if granularity == Granularity.WEEKLY:
        return day - timedelta(days=day.weekday())
    if granularity == Granularity.MONTHLY:
        return day.replace(day=1)
    if granularity == Granularity.QUARTERLY:
        return date(day.year, 3 * ((day.month - 1) // 3) + 1, 1)
    return date(day.year, 1, 1)


def bucket_end(day: date, granularity: Granularity) -> date:
    """Last day of the bucket containing `day`."""
    if granularity == Granularity.DAILY:
        return day
    if granularity == Granularity.WEEKLY:
        return bucket_start(day, granularity) + timedelta(days=6)
    if granularity == Granularity.MONTHLY:
        return month_end(day)
    if granularity == Granularity.QUARTERLY:
        return month_end(date(day.year, 3 * ((day.month - 1) // 3) + 3, 1))
    return date(day.year, 12, 31)


def bucket_key(day: date, granularity: Granularity) -> str:
    """
    Label of the bucket containing `day`.

    Weekly keys use the ISO week-numbering year, so 2024-12-30 is 2025-W01.
    """
    if granularity == Granularity.DAILY:
        return day.isoformat()
    if granularity == Granularity.WEEKLY:
        iso_year, iso_week, _ = day.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    if granularity == Granularity.MONTHLY:
        return f"{day.year}-{day.month:02d}"
    if granularity == Granularity.QUARTERLY:
        return f"{day.year}-Q{(day.month - 1) // 3 + 1}"
    return str(day.year)


# ===================
# AGGREGATION
# ===================

def aggregate(
    daily_points: Iterable[DailyPoint],
    granularity: Union[Granularity, str],
    notes: Iterable[BusinessNote] = ()
) -> List[TimeSeriesBucket]:
    """
    Sum daily points into calendar buckets.

    Days without a point count as zero, and buckets with no points between
    the first and last point are still emitted with zero sums. Growth is
    the percent change of each metric vs the preceding bucket; the first
    bucket's growth is 0.

    Args:
        daily_points: Points in any order; several points on one day are summed
        granularity: Bucket size
        notes: Business notes, attached to the bucket their date falls in

    Returns:
        Buckets in chronological order (empty when there are no points)
    """
    granularity = Granularity(granularity)
    points = sorted(daily_points, key=lambda p: p.date)
    if not points:
        return []

    metric_names = sorted({name for p in points for name in p.metrics})
    sums: Dict[date, Dict[str, Decimal]] = defaultdict(lambda: {m: Decimal("0") for m in metric_names})
    for point in points:
        bucket_sums = sums[bucket_start(point.date, granularity)]
        for name, value in point.metrics.items():
            bucket_sums[name] += value

    notes_by_bucket: Dict[date, List[BusinessNote]] = defaultdict(list)
    for note in sorted(notes, key=lambda n: n.date):
        notes_by_bucket[bucket_start(note.date, granularity)].append(note)

    buckets: List[TimeSeriesBucket] = []
    previous: Optional[Dict[str, Decimal]] = None
    cursor = bucket_start(points[0].date, granularity)
    last = bucket_start(points[-1].date, granularity)

    while cursor <= last:
        metrics = sums[cursor]
        if previous is None:
            growth = {m: Decimal("0") for m in metric_names}
        else:
            growth = {m: round(percent_change(metrics[m], previous[m]), 2) for m in metric_names}

        end = bucket_end(cursor, granularity)
        buckets.append(TimeSeriesBucket(
            key=bucket_key(cursor, granularity),
            start=cursor,
            end=end,
            metrics=metrics,
            growth=growth,
            notes=notes_by_bucket.get(cursor, []),
        ))
        previous = metrics
        cursor = end + timedelta(days=1)

    return buckets


class TimeSeriesService:
    """Revenue/expense/profit/order series over the store."""

    def __init__(self):
        self.store = AggregationService()

    def daily_points(self, period, sources: Optional[Sequence[str]] = None) -> List[DailyPoint]:
        """One point per day of the period, zeros on days without activity."""
        revenue: Dict[date, Decimal] = defaultdict(Decimal)
        orders: Dict[date, int] = defaultdict(int)
        for order in self.store.get_orders(period, sources, status=OrderStatus.COMPLETED):
            revenue[order.date] += order.amount
            orders[order.date] += 1

        expenses: Dict[date, Decimal] = defaultdict(Decimal)
        for expense in self.store.get_expenses(period):
            expenses[expense.date] += expense.amount

        return [
            DailyPoint(
                date=day,
                metrics={
                    "revenue": revenue[day],
                    "expenses": expenses[day],
                    "profit": revenue[day] - expenses[day],
                    "orders": Decimal(orders[day]),
                },
            )
            for day in each_day(period)
        ]

    def get_performance_series(
        self,
        from_date: DateInput,
        to_date: DateInput,
        granularity: Union[Granularity, str] = Granularity.MONTHLY,
        sources: Optional[Sequence[str]] = None
    ) -> PerformanceSeries:
        """
        Get the performance series for a date range.

        Buckets keep their calendar bounds, so the first and last bucket
        may extend past the requested range; only days inside the range
        contribute to their sums.

        Raises:
            InvalidRangeError: If to_date is before from_date
            DatabaseError: If a store read fails
        """
        period = make_period(from_date, to_date)
        granularity = Granularity(granularity)

        logger.info(
            "getting_performance_series",
            period=str(period),
            granularity=granularity.value,
            sources=sources
        )

        buckets = aggregate(
            self.daily_points(period, sources),
            granularity,
            self.store.get_business_notes(period)
        )

        logger.info("performance_series_calculated", buckets=len(buckets))

        return PerformanceSeries(
            granularity=granularity,
            period_start=period.start,
            period_end=period.end,
            buckets=buckets,
        )


# Singleton instance
_time_series_service: Optional[TimeSeriesService] = None


def get_time_series_service() -> TimeSeriesService:
    """Get or create TimeSeriesService instance."""
    global _time_series_service
    if _time_series_service is None:
        _time_series_service = TimeSeriesService()
    return _time_series_service
