"""
Business logic services.

Each service handles one metrics area; all of them read the store through
AggregationService.
"""

from services.aggregation_service import AggregationService
from services.financial_metrics_service import FinancialMetricsService, get_financial_metrics_service
from services.client_metrics_service import ClientMetricsService, get_client_metrics_service
from services.growth_metrics_service import GrowthMetricsService, get_growth_metrics_service
from services.marketing_metrics_service import MarketingMetricsService, get_marketing_metrics_service
from services.order_count_service import OrderCountService, get_order_count_service
from services.time_series_service import TimeSeriesService, aggregate, get_time_series_service
from services.source_analytics_service import SourceAnalyticsService, get_source_analytics_service
from services.yearly_stats_service import YearlyStatsService, get_yearly_stats_service

__all__ = [
    "AggregationService",
    "FinancialMetricsService",
    "get_financial_metrics_service",
    "ClientMetricsService",
    "get_client_metrics_service",
    "GrowthMetricsService",
    "get_growth_metrics_service",
    "MarketingMetricsService",
    "get_marketing_metrics_service",
    "OrderCountService",
    "get_order_count_service",
    "TimeSeriesService",
    "aggregate",
    "get_time_series_service",
    "SourceAnalyticsService",
    "get_source_analytics_service",
    "YearlyStatsService",
    "get_yearly_stats_service",
]
