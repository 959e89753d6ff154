"""
Order count engine: Completed orders split by new vs repeat buyers.
"""

from datetime import date
from typing import Dict, Optional, Sequence

import structlog

from models.metrics import OrderCountAnalytics, OrderCountStats
from models.order import OrderStatus
from models.period import Period
from services.aggregation_service import AggregationService
from services.period_service import (
    DateInput,
    compare_periods,
    derive_periods,
    snapshot_metric,
)

logger = structlog.get_logger(__name__)


class OrderCountService:
    """
    Order count business logic.

    A buyer is new in a period when their client_since falls on or after
    the period start, or when no client record exists for them. Everyone
    else is a repeat buyer.
    """

    def __init__(self):
        self.store = AggregationService()

    def calculate_period(
        self,
        period: Period,
        client_since: Dict[str, date],
        sources: Optional[Sequence[str]] = None
    ) -> OrderCountStats:
        orders = self.store.get_orders(period, sources, status=OrderStatus.COMPLETED)

        from_new = 0
        for order in orders:
            since = client_since.get(order.client_username)
            if since is None or since >= period.start:
                from_new += 1

        return OrderCountStats(
            period_start=period.start,
            period_end=period.end,
            total_orders=len(orders),
            from_new_buyers=from_new,
            from_repeat_buyers=len(orders) - from_new,
        )

    def get_order_count_analytics(
        self,
        from_date: DateInput,
        to_date: DateInput,
        sources: Optional[Sequence[str]] = None
    ) -> OrderCountAnalytics:
        """
        Get new vs repeat buyer order counts over P2, P1 and P0.

        Raises:
            InvalidRangeError: If to_date is before from_date
            DatabaseError: If a store read fails
        """
        periods = derive_periods(from_date, to_date)

        logger.info(
            "getting_order_count_analytics",
            period=str(periods.current),
            sources=sources
        )

        # Client lookup is not source-filtered: a client acquired through
        # one source can still buy through another
        client_since = {c.username: c.client_since for c in self.store.get_clients()}

        snapshots = compare_periods(
            lambda p: self.calculate_period(p, client_since, sources),
            periods
        )

        logger.info(
            "order_count_analytics_calculated",
            total_orders=snapshots.current.total_orders,
            from_new_buyers=snapshots.current.from_new_buyers
        )

        return OrderCountAnalytics(
            current=snapshots.current,
            previous=snapshots.previous,
            prior=snapshots.prior,
            total_orders=snapshot_metric(snapshots, "total_orders"),
            from_new_buyers=snapshot_metric(snapshots, "from_new_buyers"),
            from_repeat_buyers=snapshot_metric(snapshots, "from_repeat_buyers"),
        )


# Singleton instance
_order_count_service: Optional[OrderCountService] = None


def get_order_count_service() -> OrderCountService:
    """Get or create OrderCountService instance."""
    global _order_count_service
    if _order_count_service is None:
        _order_count_service = OrderCountService()
    return _order_count_service
