"""
Unit tests for MarketingMetricsService.
"""

import pytest
from decimal import Decimal

from exceptions import SourcesRequiredError
from services.marketing_metrics_service import MarketingMetricsService, calculate_romi
from tests.factories import ExpenseFactory, IncomeSourceFactory, OrderFactory


class TestRomi:

    def test_formula(self):
        assert calculate_romi(Decimal("300"), Decimal("100")) == Decimal("200")

    def test_zero_spend(self):
        assert calculate_romi(Decimal("300"), Decimal("0")) == 0


class TestMarketingMetrics:

    def test_sources_required(self, mock_db):
        service = MarketingMetricsService()

        with pytest.raises(SourcesRequiredError):
            service.get_marketing_metrics("2024-03-01", "2024-03-31", [])
        with pytest.raises(SourcesRequiredError):
            service.get_marketing_metrics("2024-03-01", "2024-03-31", None)

    def test_zero_spend_gives_zero_cpl_and_romi(self, mock_db):
        mock_db.set_table_data("orders", [OrderFactory.create(date="2024-03-05", amount=100)])
        mock_db.set_table_data("income_sources", [
            IncomeSourceFactory.create(name="Fiverr", data_points=[{"date": "2024-03-05", "messages": 10}]),
        ])

        result = MarketingMetricsService().get_marketing_metrics("2024-03-01", "2024-03-31", ["Fiverr"])

        assert result.cpl.value == 0
        assert result.romi.value == 0
        assert result.revenue.value == Decimal("100")

    def test_cpl_and_romi(self, mock_db):
        mock_db.set_table_data("orders", [
            OrderFactory.create(date="2024-03-05", amount=300, source="Fiverr"),
            OrderFactory.create(date="2024-03-05", amount=999, source="Upwork"),
        ])
        mock_db.set_table_data("expenses", [
            ExpenseFactory.create(date="2024-03-02", amount=100, category="Marketing"),
            ExpenseFactory.create(date="2024-03-02", amount=40, category="Software"),
        ])
        mock_db.set_table_data("income_sources", [
            IncomeSourceFactory.create(id="s1", name="Fiverr", data_points=[
                {"date": "2024-03-05", "messages": 15},
                {"date": "2024-03-06", "messages": 5},
            ]),
            IncomeSourceFactory.create(id="s2", name="Upwork", data_points=[
                {"date": "2024-03-05", "messages": 50},
            ]),
        ])

        result = MarketingMetricsService().get_marketing_metrics("2024-03-01", "2024-03-31", ["Fiverr"])

        assert result.marketing_spend.value == Decimal("100")
        assert result.total_messages.value == 20
        assert result.cpl.value == Decimal("5")
        assert result.romi.value == Decimal("200")
        assert result.sources == ["Fiverr"]

    def test_two_period_percent_change(self, mock_db):
        mock_db.set_table_data("expenses", [
            ExpenseFactory.create(date="2024-03-02", amount=150, category="Marketing"),
            ExpenseFactory.create(date="2024-02-02", amount=100, category="Marketing"),
        ])

        result = MarketingMetricsService().get_marketing_metrics("2024-03-01", "2024-03-31", ["Fiverr"])

        assert result.marketing_spend.change == Decimal("50")
        assert result.marketing_spend.previous_period_change is None

    def test_idempotent(self, mock_db):
        mock_db.set_table_data("orders", [OrderFactory.create(date="2024-03-05", amount=300, source="Fiverr")])
        mock_db.set_table_data("expenses", [ExpenseFactory.create(date="2024-03-02", amount=100, category="Marketing")])
        service = MarketingMetricsService()

        first = service.get_marketing_metrics("2024-03-01", "2024-03-31", ["Fiverr"])
        second = service.get_marketing_metrics("2024-03-01", "2024-03-31", ["Fiverr"])

        assert first.model_dump() == second.model_dump()
