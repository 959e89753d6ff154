"""
Pydantic models for store records and analytics results.
"""

from models.base import BaseSchema, CalendarDate
from models.order import Order, OrderStatus
from models.expense import Expense
from models.client import Client
from models.income_source import Gig, GigAnalyticsPoint, IncomeSource, SourceDataPoint
from models.competitor import Competitor, CompetitorMonthlyData
from models.business_note import BusinessNote
from models.period import Period, PeriodSet
from models.metrics import (
    ChangeKind,
    MetricValue,
    NamedAmount,
    FinancialMetricData,
    ClientMetricData,
    GrowthTimeSeriesPoint,
    GrowthMetricData,
    MarketingMetricData,
    OrderCountStats,
    OrderCountAnalytics,
)
from models.analytics import (
    DailyAnalyticsPoint,
    AnalyticsTotals,
    GigAnalyticsData,
    GigSummary,
    SourceAnalyticsData,
)
from models.time_series import (
    Granularity,
    DailyPoint,
    TimeSeriesBucket,
    PerformanceSeries,
)
from models.yearly_stats import (
    MonthlyTarget,
    CompetitorYearlyData,
    MonthlyFinancials,
    YearlyStatsData,
)

__all__ = [
    # Base
    "BaseSchema",
    "CalendarDate",
    # Records
    "Order",
    "OrderStatus",
    "Expense",
    "Client",
    "Gig",
    "GigAnalyticsPoint",
    "IncomeSource",
    "SourceDataPoint",
    "Competitor",
    "CompetitorMonthlyData",
    "BusinessNote",
    "MonthlyTarget",
    # Periods
    "Period",
    "PeriodSet",
    # Metrics
    "ChangeKind",
    "MetricValue",
    "NamedAmount",
    "FinancialMetricData",
    "ClientMetricData",
    "GrowthTimeSeriesPoint",
    "GrowthMetricData",
    "MarketingMetricData",
    "OrderCountStats",
    "OrderCountAnalytics",
    # Gig/source analytics
    "DailyAnalyticsPoint",
    "AnalyticsTotals",
    "GigAnalyticsData",
    "GigSummary",
    "SourceAnalyticsData",
    # Time series
    "Granularity",
    "DailyPoint",
    "TimeSeriesBucket",
    "PerformanceSeries",
    # Yearly
    "CompetitorYearlyData",
    "MonthlyFinancials",
    "YearlyStatsData",
]
