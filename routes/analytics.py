"""
Analytics API routes.

Period-comparison metrics, time series, gig/source analytics and yearly
stats for the dashboard.
"""

from datetime import date
from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from typing import List, Optional
import structlog

from models.analytics import GigAnalyticsData, SourceAnalyticsData
from models.metrics import (
    ClientMetricData,
    FinancialMetricData,
    GrowthMetricData,
    MarketingMetricData,
    OrderCountAnalytics,
)
from models.time_series import Granularity, PerformanceSeries
from models.yearly_stats import YearlyStatsData
from services.financial_metrics_service import get_financial_metrics_service
from services.client_metrics_service import get_client_metrics_service
from services.growth_metrics_service import get_growth_metrics_service
from services.marketing_metrics_service import get_marketing_metrics_service
from services.order_count_service import get_order_count_service
from services.time_series_service import get_time_series_service
from services.source_analytics_service import get_source_analytics_service
from services.yearly_stats_service import get_yearly_stats_service
from exceptions import AppError, GigNotFoundError, SourceNotFoundError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


def parse_sources(sources: Optional[str]) -> Optional[List[str]]:
    """Split a comma-separated source list; blank means no filter."""
    if not sources:
        return None
    names = [name.strip() for name in sources.split(",") if name.strip()]
    return names or None


SOURCES_DESCRIPTION = "Comma-separated income source names"


# ===================
# PERIOD COMPARISON
# ===================

@router.get("/financial-metrics", response_model=FinancialMetricData)
async def get_financial_metrics(
    from_date: date = Query(..., alias="from", description="First day of the period"),
    to_date: date = Query(..., alias="to", description="Last day of the period"),
    sources: Optional[str] = Query(None, description=SOURCES_DESCRIPTION)
):
    """
    Get revenue, expenses, profit, margins, CAC, AOV and CLTV.

    Each figure is compared with the previous period of equal length and
    carries the previous period's own change for trend context.
    """
    try:
        service = get_financial_metrics_service()
        return service.get_financial_metrics(from_date, to_date, parse_sources(sources))
    except Exception as e:
        return handle_error(e)


@router.get("/client-metrics", response_model=ClientMetricData)
async def get_client_metrics(
    from_date: date = Query(..., alias="from", description="First day of the period"),
    to_date: date = Query(..., alias="to", description="Last day of the period"),
    sources: Optional[str] = Query(None, description=SOURCES_DESCRIPTION)
):
    """Get client counts, retention, lifespan and satisfaction vs the previous period."""
    try:
        service = get_client_metrics_service()
        return service.get_client_metrics(from_date, to_date, parse_sources(sources))
    except Exception as e:
        return handle_error(e)


@router.get("/growth", response_model=GrowthMetricData)
async def get_growth_metrics(
    from_date: date = Query(..., alias="from", description="First day of the period"),
    to_date: date = Query(..., alias="to", description="Last day of the period"),
    sources: Optional[str] = Query(None, description=SOURCES_DESCRIPTION)
):
    """
    Get growth rates and the month-by-month growth series.

    Headline rates compare the current growth (this period vs the previous
    one) with the growth one period earlier.
    """
    try:
        service = get_growth_metrics_service()
        return service.get_growth_metrics(from_date, to_date, parse_sources(sources))
    except Exception as e:
        return handle_error(e)


@router.get("/marketing-metrics", response_model=MarketingMetricData)
async def get_marketing_metrics(
    from_date: date = Query(..., alias="from", description="First day of the period"),
    to_date: date = Query(..., alias="to", description="Last day of the period"),
    sources: Optional[str] = Query(None, description=SOURCES_DESCRIPTION)
):
    """
    Get cost per lead and ROMI for the selected sources.

    Returns 422 SOURCES_REQUIRED when no source is selected.
    """
    try:
        service = get_marketing_metrics_service()
        return service.get_marketing_metrics(from_date, to_date, parse_sources(sources))
    except Exception as e:
        return handle_error(e)


@router.get("/order-count", response_model=OrderCountAnalytics)
async def get_order_count(
    from_date: date = Query(..., alias="from", description="First day of the period"),
    to_date: date = Query(..., alias="to", description="Last day of the period"),
    sources: Optional[str] = Query(None, description=SOURCES_DESCRIPTION)
):
    """Get Completed order counts split by new and repeat buyers."""
    try:
        service = get_order_count_service()
        return service.get_order_count_analytics(from_date, to_date, parse_sources(sources))
    except Exception as e:
        return handle_error(e)


# ===================
# TIME SERIES
# ===================

@router.get("/performance", response_model=PerformanceSeries)
async def get_performance(
    from_date: date = Query(..., alias="from", description="First day of the range"),
    to_date: date = Query(..., alias="to", description="Last day of the range"),
    granularity: Granularity = Query(Granularity.MONTHLY, description="Bucket size"),
    sources: Optional[str] = Query(None, description=SOURCES_DESCRIPTION)
):
    """Get revenue, expenses, profit and orders bucketed by calendar period."""
    try:
        service = get_time_series_service()
        return service.get_performance_series(from_date, to_date, granularity, parse_sources(sources))
    except Exception as e:
        return handle_error(e)


# ===================
# GIG / SOURCE ANALYTICS
# ===================

@router.get("/gig/{gig_id}", response_model=GigAnalyticsData)
async def get_gig_analytics(
    gig_id: str,
    from_date: Optional[date] = Query(None, alias="from", description="Defaults to the 30 days ending at `to`"),
    to_date: Optional[date] = Query(None, alias="to", description="Defaults to today")
):
    """Get the daily series of one gig next to the preceding window."""
    try:
        service = get_source_analytics_service()
        result = service.get_gig_analytics(gig_id, from_date, to_date)
        if result is None:
            raise GigNotFoundError(gig_id)
        return result
    except Exception as e:
        return handle_error(e)


@router.get("/source/{source_id}", response_model=SourceAnalyticsData)
async def get_source_analytics(
    source_id: str,
    from_date: Optional[date] = Query(None, alias="from", description="Defaults to the 30 days ending at `to`"),
    to_date: Optional[date] = Query(None, alias="to", description="Defaults to today")
):
    """Get the daily series of an income source across all of its gigs."""
    try:
        service = get_source_analytics_service()
        result = service.get_source_analytics(source_id, from_date, to_date)
        if result is None:
            raise SourceNotFoundError(source_id)
        return result
    except Exception as e:
        return handle_error(e)


# ===================
# YEARLY STATS
# ===================

@router.get("/yearly-stats/{year}", response_model=YearlyStatsData)
async def get_yearly_stats(year: int):
    """Get monthly orders and financials for a year vs competitors and targets."""
    try:
        service = get_yearly_stats_service()
        return service.get_yearly_stats(year)
    except Exception as e:
        return handle_error(e)
