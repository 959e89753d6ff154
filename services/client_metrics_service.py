"""
Client metrics engine.

Client base health for the requested period against the period right
before it: acquisition, repeat purchasing, retention, lifespan and
satisfaction.
"""

from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Optional, Sequence

import structlog

from config import settings
from models.metrics import ChangeKind, ClientMetricData
from models.period import Period
from services.aggregation_service import (
    AggregationService,
    calculate_mean,
    calculate_median,
)
from services.period_service import (
    DateInput,
    compare_periods,
    derive_periods,
    safe_divide,
    snapshot_metric,
)

logger = structlog.get_logger(__name__)

HUNDRED = Decimal("100")

# Change kind per field: rates move in points, counts and lifespans in percent
RATE_FIELDS = ("repeat_purchase_rate", "retention_rate", "csat", "avg_rating")
COUNT_FIELDS = (
    "total_clients",
    "new_clients",
    "repeat_clients",
    "cancelled_orders",
    "avg_lifespan",
    "median_lifespan",
)


@dataclass
class ClientSnapshot:
    """Client figures for one period. Lifespans are in months."""
    total_clients: int
    new_clients: int
    repeat_clients: int
    repeat_purchase_rate: Decimal
    retention_rate: Decimal
    avg_lifespan: Decimal
    median_lifespan: Decimal
    csat: Decimal
    avg_rating: Decimal
    cancelled_orders: int
    cancellation_reasons: Dict[str, int] = field(default_factory=dict)


class ClientMetricsService:
    """
    Client metrics business logic.

    Two-period comparison (current vs previous), intentionally simpler
    than the three-period financial view.
    """

    def __init__(self):
        self.store = AggregationService()

    def calculate_period(self, period: Period, sources: Optional[Sequence[str]] = None) -> ClientSnapshot:
        """Compute every client figure for one period."""
        orders_by_client = self.store.orders_by_client(period, sources)
        orders = [o for client_orders in orders_by_client.values() for o in client_orders]

        total_clients = len(orders_by_client)
        repeat_clients = sum(1 for client_orders in orders_by_client.values() if len(client_orders) > 1)
        new_clients = self.store.count_new_clients(period, sources)

        # Retention: share of the pre-period cohort that ordered in the period
        cohort = {c.username for c in self.store.clients_before(period.start, sources)}
        retained = len(cohort.intersection(orders_by_client))

        days_per_month = Decimal(str(settings.days_per_month))
        lifespans = self.store.client_lifespans(period, sources)

        ratings = [o.rating for o in orders if o.rating is not None]
        threshold = Decimal(str(settings.positive_rating_threshold))
        positive = sum(1 for r in ratings if r >= threshold)

        cancelled = [o for o in orders if o.is_cancelled]
        reasons = Counter(reason for o in cancelled for reason in o.cancellation_reasons)

        return ClientSnapshot(
            total_clients=total_clients,
            new_clients=new_clients,
            repeat_clients=repeat_clients,
            repeat_purchase_rate=safe_divide(repeat_clients, total_clients) * HUNDRED,
            retention_rate=safe_divide(retained, len(cohort)) * HUNDRED,
            avg_lifespan=calculate_mean(lifespans) / days_per_month,
            median_lifespan=calculate_median(lifespans) / days_per_month,
            csat=safe_divide(positive, len(ratings)) * HUNDRED,
            avg_rating=calculate_mean(ratings),
            cancelled_orders=len(cancelled),
            cancellation_reasons=dict(reasons.most_common()),
        )

    def get_client_metrics(
        self,
        from_date: DateInput,
        to_date: DateInput,
        sources: Optional[Sequence[str]] = None
    ) -> ClientMetricData:
        """
        Get client metrics for the period vs the previous period.

        Args:
            from_date: First day of the requested period
            to_date: Last day of the requested period
            sources: Income source names to restrict orders/clients to

        Returns:
            ClientMetricData; rates report change in points, counts and
            lifespans in percent

        Raises:
            InvalidRangeError: If to_date is before from_date
            DatabaseError: If a store read fails
        """
        periods = derive_periods(from_date, to_date)

        logger.info(
            "getting_client_metrics",
            period=str(periods.current),
            sources=sources
        )

        snapshots = compare_periods(
            lambda p: self.calculate_period(p, sources),
            periods,
            include_prior=False
        )

        metrics = {name: snapshot_metric(snapshots, name, ChangeKind.ABSOLUTE) for name in RATE_FIELDS}
        metrics.update({name: snapshot_metric(snapshots, name) for name in COUNT_FIELDS})

        logger.info(
            "client_metrics_calculated",
            total_clients=snapshots.current.total_clients,
            new_clients=snapshots.current.new_clients,
            retention_rate=float(snapshots.current.retention_rate)
        )

        return ClientMetricData(
            current_period=periods.current,
            previous_period=periods.previous,
            top_cancellation_reasons=snapshots.current.cancellation_reasons,
            **metrics
        )


# Singleton instance
_client_metrics_service: Optional[ClientMetricsService] = None


def get_client_metrics_service() -> ClientMetricsService:
    """Get or create ClientMetricsService instance."""
    global _client_metrics_service
    if _client_metrics_service is None:
        _client_metrics_service = ClientMetricsService()
    return _client_metrics_service
