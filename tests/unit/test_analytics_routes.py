"""
Unit tests for the analytics API routes.

Services are built against the mock store and swapped in for the route
module's singleton getters.
"""

import pytest
from decimal import Decimal
from unittest.mock import MagicMock, patch

from exceptions import DatabaseError
from routes.analytics import parse_sources
from services.financial_metrics_service import FinancialMetricsService
from services.marketing_metrics_service import MarketingMetricsService
from services.source_analytics_service import SourceAnalyticsService
from services.time_series_service import TimeSeriesService
from services.yearly_stats_service import YearlyStatsService
from tests.factories import IncomeSourceFactory, OrderFactory


class TestParseSources:

    def test_comma_separated(self):
        assert parse_sources("Fiverr, Upwork") == ["Fiverr", "Upwork"]

    def test_blank_means_no_filter(self):
        assert parse_sources(None) is None
        assert parse_sources("") is None
        assert parse_sources(" , ") is None


class TestFinancialRoute:

    def test_returns_metrics(self, test_client, mock_db):
        mock_db.set_table_data("orders", [OrderFactory.create(date="2024-03-05", amount=100)])

        with patch("routes.analytics.get_financial_metrics_service", return_value=FinancialMetricsService()):
            response = test_client.get(
                "/api/analytics/financial-metrics",
                params={"from": "2024-03-01", "to": "2024-03-31"}
            )

        assert response.status_code == 200
        data = response.json()
        assert Decimal(str(data["total_revenue"]["value"])) == Decimal("100")
        assert data["periods"]["previous"]["start"] == "2024-01-30"

    def test_sources_passed_as_list(self, test_client):
        service = MagicMock()
        service.get_financial_metrics.side_effect = DatabaseError("select", "boom")

        with patch("routes.analytics.get_financial_metrics_service", return_value=service):
            test_client.get(
                "/api/analytics/financial-metrics",
                params={"from": "2024-03-01", "to": "2024-03-31", "sources": "Fiverr,Upwork"}
            )

        args = service.get_financial_metrics.call_args.args
        assert args[2] == ["Fiverr", "Upwork"]

    def test_invalid_range_is_422(self, test_client):
        with patch("routes.analytics.get_financial_metrics_service", return_value=FinancialMetricsService()):
            response = test_client.get(
                "/api/analytics/financial-metrics",
                params={"from": "2024-03-31", "to": "2024-03-01"}
            )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_DATE_RANGE"

    def test_store_failure_is_500(self, test_client, mock_db):
        mock_db.set_table_error("orders", RuntimeError("timeout"))

        with patch("routes.analytics.get_financial_metrics_service", return_value=FinancialMetricsService()):
            response = test_client.get(
                "/api/analytics/financial-metrics",
                params={"from": "2024-03-01", "to": "2024-03-31"}
            )

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "DATABASE_ERROR"

    def test_missing_dates_rejected(self, test_client):
        response = test_client.get("/api/analytics/financial-metrics")
        assert response.status_code == 422


class TestOtherRoutes:

    def test_marketing_requires_sources(self, test_client):
        with patch("routes.analytics.get_marketing_metrics_service", return_value=MarketingMetricsService()):
            response = test_client.get(
                "/api/analytics/marketing-metrics",
                params={"from": "2024-03-01", "to": "2024-03-31"}
            )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "SOURCES_REQUIRED"

    def test_performance_granularity(self, test_client, mock_db):
        mock_db.set_table_data("orders", [OrderFactory.create(date="2024-03-05", amount=100)])

        with patch("routes.analytics.get_time_series_service", return_value=TimeSeriesService()):
            response = test_client.get(
                "/api/analytics/performance",
                params={"from": "2024-03-04", "to": "2024-03-10", "granularity": "weekly"}
            )

        assert response.status_code == 200
        buckets = response.json()["buckets"]
        assert [b["key"] for b in buckets] == ["2024-W10"]

    def test_unknown_granularity_rejected(self, test_client):
        response = test_client.get(
            "/api/analytics/performance",
            params={"from": "2024-03-04", "to": "2024-03-10", "granularity": "hourly"}
        )
        assert response.status_code == 422

    def test_unknown_gig_is_404(self, test_client):
        with patch("routes.analytics.get_source_analytics_service", return_value=SourceAnalyticsService()):
            response = test_client.get("/api/analytics/gig/missing")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "GIG_NOT_FOUND"

    def test_source_analytics(self, test_client, mock_db):
        mock_db.set_table_data("income_sources", [IncomeSourceFactory.create(id="src-1", name="Fiverr")])

        with patch("routes.analytics.get_source_analytics_service", return_value=SourceAnalyticsService()):
            response = test_client.get(
                "/api/analytics/source/src-1",
                params={"from": "2024-03-01", "to": "2024-03-07"}
            )

        assert response.status_code == 200
        assert len(response.json()["time_series"]) == 7

    def test_unknown_source_is_404(self, test_client):
        with patch("routes.analytics.get_source_analytics_service", return_value=SourceAnalyticsService()):
            response = test_client.get("/api/analytics/source/missing")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "SOURCE_NOT_FOUND"

    @pytest.mark.parametrize("year,status", [(2024, 200), (1999, 422)])
    def test_yearly_stats(self, test_client, year, status):
        with patch("routes.analytics.get_yearly_stats_service", return_value=YearlyStatsService()):
            response = test_client.get(f"/api/analytics/yearly-stats/{year}")

        assert response.status_code == status
