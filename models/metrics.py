"""
Metric result models returned by the analytics engines.

Every headline figure is a MetricValue: the current period value, the
previous period value, and the change between them. Three-period engines
also report previous_period_change (P1 vs P0) so a caller can tell whether
a trend is accelerating without re-querying.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from pydantic import Field

from models.base import BaseSchema
from models.business_note import BusinessNote
from models.period import Period, PeriodSet


class ChangeKind(str, Enum):
    """How change between two periods is expressed."""

    PERCENT = "percent"    # percent_change(current, previous)
    ABSOLUTE = "absolute"  # current - previous, for values already in percentage points


class MetricValue(BaseSchema):
    """Standard period-comparison shape."""

    value: Decimal = Field(..., description="Current period (P2) value")
    change: Decimal = Field(..., description="Change P2 vs P1")
    previous_value: Decimal = Field(..., description="Previous period (P1) value")
    previous_period_change: Optional[Decimal] = Field(
        None, description="Change P1 vs P0 (three-period metrics only)"
    )
    change_kind: ChangeKind = Field(default=ChangeKind.PERCENT)


class NamedAmount(BaseSchema):
    """A name with its summed amount (top category, top source)."""

    name: str
    amount: Decimal


# ===================
# FINANCIAL
# ===================

class FinancialMetricData(BaseSchema):
    """Revenue, costs and unit economics for P2 vs P1 vs P0."""

    periods: PeriodSet
    total_revenue: MetricValue
    total_expenses: MetricValue
    net_profit: MetricValue
    profit_margin: MetricValue
    gross_margin: MetricValue
    cac: MetricValue
    aov: MetricValue
    cltv: MetricValue
    top_expense_category: Optional[NamedAmount] = None


# ===================
# CLIENTS
# ===================

class ClientMetricData(BaseSchema):
    """Client base health for the current vs previous period."""

    current_period: Period
    previous_period: Period
    total_clients: MetricValue
    new_clients: MetricValue
    repeat_clients: MetricValue
    repeat_purchase_rate: MetricValue
    retention_rate: MetricValue
    avg_lifespan: MetricValue = Field(..., description="Months")
    median_lifespan: MetricValue = Field(..., description="Months")
    csat: MetricValue
    avg_rating: MetricValue
    cancelled_orders: MetricValue
    top_cancellation_reasons: Dict[str, int] = Field(default_factory=dict)


# ===================
# GROWTH
# ===================

class GrowthTimeSeriesPoint(BaseSchema):
    """Month-over-month growth for one calendar month."""

    month: str = Field(..., description="YYYY-MM")
    label: str = Field(..., description="Short month name, e.g. 'Mar'")
    revenue: Decimal
    net_profit: Decimal
    revenue_growth: Decimal
    profit_growth: Decimal
    aov_growth: Decimal
    client_growth: int = Field(..., description="Raw new-client count for the month, not a rate")
    notes: List[BusinessNote] = Field(default_factory=list)


class GrowthMetricData(BaseSchema):
    """Growth rates P2 vs P1, compared against P1 vs P0."""

    periods: PeriodSet
    revenue_growth: MetricValue
    profit_growth: MetricValue
    client_growth: MetricValue = Field(
        ..., description="New clients as % of clients existing at period start"
    )
    aov_growth: MetricValue
    vip_client_growth: MetricValue
    top_source_growth: MetricValue
    top_source: str = Field(default="N/A")
    time_series: List[GrowthTimeSeriesPoint] = Field(default_factory=list)


# ===================
# MARKETING
# ===================

class MarketingMetricData(BaseSchema):
    """Cost per lead and return on marketing spend."""

    current_period: Period
    previous_period: Period
    sources: List[str]
    marketing_spend: MetricValue
    total_messages: MetricValue
    revenue: MetricValue
    cpl: MetricValue
    romi: MetricValue


# ===================
# ORDER COUNTS
# ===================

class OrderCountStats(BaseSchema):
    """Completed orders in one period split by buyer type."""

    period_start: date
    period_end: date
    total_orders: int = 0
    from_new_buyers: int = 0
    from_repeat_buyers: int = 0


class OrderCountAnalytics(BaseSchema):
    """New vs repeat buyer order counts for P2, P1 and P0."""

    current: OrderCountStats
    previous: OrderCountStats
    prior: OrderCountStats
    total_orders: MetricValue
    from_new_buyers: MetricValue
    from_repeat_buyers: MetricValue
