"""
Unit tests for AggregationService.

Tests store reads (paging, filters, failures) and the aggregation
primitives the metrics engines are built on.
"""

import pytest
from datetime import date
from decimal import Decimal

from exceptions import DatabaseError, InvalidRangeError
from models.order import OrderStatus
from models.period import Period
from services.aggregation_service import (
    AggregationService,
    calculate_mean,
    calculate_median,
    rank_by_amount,
)
from tests.factories import ClientFactory, ExpenseFactory, IncomeSourceFactory, OrderFactory

MARCH = Period(start=date(2024, 3, 1), end=date(2024, 3, 31))


# ===================
# STATISTICS
# ===================

class TestStatistics:

    def test_median_odd(self):
        assert calculate_median([30, 10, 20]) == 20

    def test_median_even(self):
        """Even count averages the two middle values."""
        assert calculate_median([10, 20]) == 15

    def test_median_empty(self):
        assert calculate_median([]) == 0

    def test_mean(self):
        assert calculate_mean([10, 20, 30]) == 20
        assert calculate_mean([]) == 0

    def test_rank_breaks_ties_by_name(self):
        ranked = rank_by_amount({"b": Decimal("5"), "a": Decimal("5"), "c": Decimal("9")})
        assert [r.name for r in ranked] == ["c", "a", "b"]


# ===================
# STORE READS
# ===================

class TestStoreReads:

    def test_reads_every_page(self, mock_db):
        """Rows beyond the first page are still returned."""
        mock_db.set_table_data("orders", [
            OrderFactory.create(id=f"o-{i}", date="2024-03-05") for i in range(5)
        ])
        service = AggregationService()
        service.page_size = 2

        orders = service.get_orders(MARCH)

        assert len(orders) == 5
        assert {o.id for o in orders} == {f"o-{i}" for i in range(5)}

    def test_server_row_cap_below_page_size(self, mock_db):
        """A page cut short by the server's max-rows is not taken as the last page."""
        mock_db.set_table_data("orders", [
            OrderFactory.create(id=f"o-{i:04d}", date="2024-03-05", amount=1) for i in range(2500)
        ])
        mock_db.set_max_rows(1000)
        service = AggregationService()
        service.page_size = 2000

        assert service.sum_revenue(MARCH) == Decimal("2500")
        assert service.count_orders(MARCH) == 2500

    def test_orders_filtered_by_date(self, mock_db):
        mock_db.set_table_data("orders", [
            OrderFactory.create(date="2024-02-29"),
            OrderFactory.create(date="2024-03-01"),
            OrderFactory.create(date="2024-03-31"),
            OrderFactory.create(date="2024-04-01"),
        ])

        orders = AggregationService().get_orders(MARCH)

        assert sorted(o.date for o in orders) == [date(2024, 3, 1), date(2024, 3, 31)]

    def test_timestamp_dates_normalized(self, mock_db):
        """Stored timestamps are read as calendar days."""
        mock_db.set_table_data("orders", [OrderFactory.create(date="2024-03-05")])
        mock_db.set_table_data("clients", [
            ClientFactory.create(client_since="2024-03-02T15:45:00Z")
        ])

        clients = AggregationService().get_clients()

        assert clients[0].client_since == date(2024, 3, 2)

    def test_source_filter(self, mock_db):
        mock_db.set_table_data("orders", [
            OrderFactory.create(source="Fiverr", amount=100),
            OrderFactory.create(source="Upwork", amount=40),
        ])
        service = AggregationService()

        assert service.sum_revenue(MARCH, ["Upwork"]) == Decimal("40")

    def test_empty_source_list_means_no_filter(self, mock_db):
        mock_db.set_table_data("orders", [
            OrderFactory.create(source="Fiverr", amount=100),
            OrderFactory.create(source="Upwork", amount=40),
        ])
        service = AggregationService()

        assert service.sum_revenue(MARCH, []) == Decimal("140")
        assert service.sum_revenue(MARCH, None) == Decimal("140")

    def test_store_failure_raises_database_error(self, mock_db):
        """A failed read propagates instead of turning into zeros."""
        mock_db.set_table_error("orders", RuntimeError("connection reset"))

        with pytest.raises(DatabaseError) as exc_info:
            AggregationService().sum_revenue(MARCH)

        assert exc_info.value.details == {"operation": "select", "table": "orders"}
        assert "connection reset" in exc_info.value.message

    def test_invalid_period_rejected(self, mock_db):
        with pytest.raises(InvalidRangeError):
            AggregationService().get_orders(Period(start=date(2024, 3, 31), end=date(2024, 3, 1)))


# ===================
# ORDER / EXPENSE PRIMITIVES
# ===================

class TestOrderPrimitives:

    def test_revenue_counts_completed_only(self, mock_db):
        mock_db.set_table_data("orders", [
            OrderFactory.create(amount=100, status="Completed"),
            OrderFactory.create(amount=50, status="Cancelled"),
            OrderFactory.create(amount=25, status="In Progress"),
        ])
        service = AggregationService()

        assert service.sum_revenue(MARCH) == Decimal("100")
        assert service.count_orders(MARCH) == 1

    def test_orders_by_client_any_status(self, mock_db):
        mock_db.set_table_data("orders", [
            OrderFactory.create(client_username="alice"),
            OrderFactory.create(client_username="alice", status="Cancelled"),
            OrderFactory.create(client_username="bob"),
        ])

        grouped = AggregationService().orders_by_client(MARCH)

        assert len(grouped["alice"]) == 2
        assert len(grouped["bob"]) == 1

    def test_orders_by_client_status_filter(self, mock_db):
        mock_db.set_table_data("orders", [
            OrderFactory.create(client_username="alice"),
            OrderFactory.create(client_username="alice", status="Cancelled"),
        ])

        grouped = AggregationService().orders_by_client(MARCH, status=OrderStatus.CANCELLED)

        assert len(grouped["alice"]) == 1

    def test_top_revenue_source(self, mock_db):
        mock_db.set_table_data("orders", [
            OrderFactory.create(source="Fiverr", amount=100),
            OrderFactory.create(source="Upwork", amount=70),
            OrderFactory.create(source="Upwork", amount=70),
        ])

        top = AggregationService().top_revenue_source(MARCH)

        assert top.name == "Upwork"
        assert top.amount == Decimal("140")

    def test_top_revenue_source_none_without_orders(self, mock_db):
        assert AggregationService().top_revenue_source(MARCH) is None

    def test_expense_category(self, mock_db):
        mock_db.set_table_data("expenses", [
            ExpenseFactory.create(amount=30, category="Marketing"),
            ExpenseFactory.create(amount=20, category="Salary"),
            ExpenseFactory.create(amount=5, category="Marketing", date="2024-04-02"),
        ])
        service = AggregationService()

        assert service.sum_expenses(MARCH) == Decimal("50")
        assert service.sum_expenses(MARCH, "Marketing") == Decimal("30")
        assert service.top_spending_category(MARCH).name == "Marketing"


# ===================
# CLIENT PRIMITIVES
# ===================

class TestClientPrimitives:

    def test_new_clients_and_cohort(self, mock_db):
        mock_db.set_table_data("clients", [
            ClientFactory.create(username="old", client_since="2024-01-10"),
            ClientFactory.create(username="edge", client_since="2024-03-01"),
            ClientFactory.create(username="new", client_since="2024-03-20"),
            ClientFactory.create(username="later", client_since="2024-04-02"),
        ])
        service = AggregationService()

        assert service.count_new_clients(MARCH) == 2
        assert [c.username for c in service.clients_before(MARCH.start)] == ["old"]

    def test_vip_clients_as_of(self, mock_db):
        mock_db.set_table_data("clients", [
            ClientFactory.create(username="a", client_since="2024-01-10", is_vip=True),
            ClientFactory.create(username="b", client_since="2024-04-10", is_vip=True),
            ClientFactory.create(username="c", client_since="2024-01-10", is_vip=False),
        ])

        assert AggregationService().count_vip_clients(MARCH.end) == 1

    def test_lifespan_from_first_to_last_order(self, mock_db):
        """Jan 5 -> Mar 5 2024 spans a leap-year February: 60 days."""
        mock_db.set_table_data("clients", [ClientFactory.create(username="alice", client_since="2024-01-01")])
        mock_db.set_table_data("orders", [
            OrderFactory.create(client_username="alice", date="2024-01-05"),
            OrderFactory.create(client_username="alice", date="2024-03-05"),
        ])

        assert AggregationService().client_lifespans(MARCH) == [60]

    def test_lifespan_requires_last_order_in_period(self, mock_db):
        mock_db.set_table_data("clients", [ClientFactory.create(username="alice")])
        mock_db.set_table_data("orders", [
            OrderFactory.create(client_username="alice", date="2024-01-05"),
            OrderFactory.create(client_username="alice", date="2024-03-05"),
        ])
        february = Period(start=date(2024, 2, 1), end=date(2024, 2, 29))

        assert AggregationService().client_lifespans(february) == []

    def test_single_order_clients_have_no_lifespan(self, mock_db):
        """Clients with one order are excluded, not counted as 0."""
        mock_db.set_table_data("clients", [
            ClientFactory.create(username="alice"),
            ClientFactory.create(username="bob"),
        ])
        mock_db.set_table_data("orders", [
            OrderFactory.create(client_username="alice", date="2024-03-05"),
            OrderFactory.create(client_username="bob", date="2024-03-01"),
            OrderFactory.create(client_username="bob", date="2024-03-11"),
        ])

        assert AggregationService().client_lifespans(MARCH) == [10]

    def test_same_day_orders_give_zero_lifespan(self, mock_db):
        mock_db.set_table_data("clients", [ClientFactory.create(username="alice")])
        mock_db.set_table_data("orders", [
            OrderFactory.create(client_username="alice", date="2024-03-05"),
            OrderFactory.create(client_username="alice", date="2024-03-05"),
        ])

        assert AggregationService().client_lifespans(MARCH) == [0]

    def test_cancelled_orders_do_not_qualify(self, mock_db):
        mock_db.set_table_data("clients", [ClientFactory.create(username="alice")])
        mock_db.set_table_data("orders", [
            OrderFactory.create(client_username="alice", date="2024-01-05", status="Cancelled"),
            OrderFactory.create(client_username="alice", date="2024-03-05"),
        ])

        assert AggregationService().client_lifespans(MARCH) == []

    def test_orders_without_client_record_ignored(self, mock_db):
        mock_db.set_table_data("orders", [
            OrderFactory.create(client_username="ghost", date="2024-01-05"),
            OrderFactory.create(client_username="ghost", date="2024-03-05"),
        ])

        assert AggregationService().client_lifespans(MARCH) == []


# ===================
# SOURCE PRIMITIVES
# ===================

class TestSourcePrimitives:

    def test_total_messages_in_period(self, mock_db):
        mock_db.set_table_data("income_sources", [
            IncomeSourceFactory.create(id="s1", name="Fiverr", data_points=[
                {"date": "2024-03-02", "messages": 4},
                {"date": "2024-04-02", "messages": 9},
            ]),
            IncomeSourceFactory.create(id="s2", name="Upwork", data_points=[
                {"date": "2024-03-03", "messages": 2},
            ]),
        ])
        service = AggregationService()

        assert service.total_messages(MARCH) == 6
        assert service.total_messages(MARCH, ["Fiverr"]) == 4

    def test_find_gig_source(self, mock_db):
        mock_db.set_table_data("income_sources", [
            IncomeSourceFactory.create(id="s1", name="Fiverr", gigs=[IncomeSourceFactory.gig(id="g1")]),
        ])
        service = AggregationService()

        assert service.find_gig_source("g1").id == "s1"
        assert service.find_gig_source("missing") is None
