"""
Aggregation primitives over the order, expense and client tables.

Every metrics engine builds on these reads. Each primitive takes a Period
and an optional income-source filter and returns a scalar or a small
record. Empty results are zero/empty; store failures raise DatabaseError
and are never replaced by zeros.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence, Type, TypeVar

import structlog
from pydantic import BaseModel

from config import get_supabase_client, settings
from models.business_note import BusinessNote
from models.client import Client
from models.competitor import Competitor
from models.expense import Expense
from models.income_source import IncomeSource
from models.metrics import NamedAmount
from models.order import Order, OrderStatus
from models.period import Period
from models.yearly_stats import MonthlyTarget
from exceptions import DatabaseError, InvalidRangeError
from services.period_service import to_decimal

logger = structlog.get_logger(__name__)

M = TypeVar("M", bound=BaseModel)

SourceFilter = Optional[Sequence[str]]


# ===================
# STATISTICS
# ===================

def calculate_mean(values: Sequence) -> Decimal:
    """Arithmetic mean, 0 for an empty list."""
    if not values:
        return Decimal("0")
    return sum((to_decimal(v) for v in values), Decimal("0")) / len(values)


def calculate_median(values: Sequence) -> Decimal:
    """
    Median of a list.

    Even count: mean of the two middle values. Odd count: middle value.
    Empty list: 0.
    """
    if not values:
        return Decimal("0")
    ordered = sorted(to_decimal(v) for v in values)
    middle = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[middle - 1] + ordered[middle]) / 2
    return ordered[middle]


def rank_by_amount(totals: Dict[str, Decimal]) -> List[NamedAmount]:
    """Sort by amount descending, name ascending on ties."""
    ranked = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return [NamedAmount(name=name, amount=round(amount, 2)) for name, amount in ranked]


def _check_period(period: Period) -> None:
    if period.end < period.start:
        raise InvalidRangeError(period.start, period.end)


def _active_sources(sources: SourceFilter) -> Optional[List[str]]:
    """None or an empty list both mean no source filter."""
    if not sources:
        return None
    return list(sources)


class AggregationService:
    """
    Read-only aggregation over the store.

    Handles paged reads of orders, expenses, clients, income sources and
    notes, and the sums/counts derived from them.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.page_size = settings.store_page_size

    # ===================
    # STORE READS
    # ===================

    def _fetch(
        self,
        table: str,
        model: Type[M],
        build: Optional[Callable] = None,
        order_by: str = "id"
    ) -> List[M]:
        """
        Read every matching row of a table as typed records.

        Args:
            table: Table name
            model: Record model for each row
            build: Applies filters to a fresh select query
            order_by: Stable column for paging

        Returns:
            List of records (empty when nothing matches)

        Raises:
            DatabaseError: If the store read fails
        """
        records: List[M] = []
        offset = 0

        try:
            while True:
                query = self.db.table(table).select("*")
                if build is not None:
                    query = build(query)
                result = (
                    query.order(order_by)
                    .range(offset, offset + self.page_size - 1)
                    .execute()
                )
                rows = result.data or []
                # The server may cap a page below page_size (max-rows);
                # only an empty page marks the end.
                if not rows:
                    break
                records.extend(model.model_validate(row) for row in rows)
                offset += len(rows)

        except Exception as e:
            logger.error(
                "store_query_failed",
                table=table,
                error=str(e),
                error_type=type(e).__name__
            )
            raise DatabaseError("select", str(e), {"table": table})

        logger.debug("store_query_complete", table=table, rows=len(records))
        return records

    def get_orders(
        self,
        period: Period,
        sources: SourceFilter = None,
        status: Optional[OrderStatus] = None,
        exclude_cancelled: bool = False
    ) -> List[Order]:
        """Orders dated inside the period."""
        _check_period(period)
        source_names = _active_sources(sources)

        def build(query):
            query = query.gte("date", period.start.isoformat()).lte("date", period.end.isoformat())
            if status is not None:
                query = query.eq("status", status.value)
            elif exclude_cancelled:
                query = query.neq("status", OrderStatus.CANCELLED.value)
            if source_names:
                query = query.in_("source", source_names)
            return query

        return self._fetch("orders", Order, build)

    def get_orders_until(self, end: date, sources: SourceFilter = None) -> List[Order]:
        """All non-cancelled orders dated on or before `end`."""
        source_names = _active_sources(sources)

        def build(query):
            query = query.lte("date", end.isoformat()).neq("status", OrderStatus.CANCELLED.value)
            if source_names:
                query = query.in_("source", source_names)
            return query

        return self._fetch("orders", Order, build)

    def get_expenses(self, period: Period, category: Optional[str] = None) -> List[Expense]:
        """Expenses dated inside the period. Expenses are never source-filtered."""
        _check_period(period)

        def build(query):
            query = query.gte("date", period.start.isoformat()).lte("date", period.end.isoformat())
            if category is not None:
                query = query.eq("category", category)
            return query

        return self._fetch("expenses", Expense, build)

    def get_clients(
        self,
        sources: SourceFilter = None,
        since_from: Optional[date] = None,
        since_to: Optional[date] = None,
        before: Optional[date] = None,
        vip_only: bool = False
    ) -> List[Client]:
        """Clients filtered by acquisition date, source and VIP flag."""
        source_names = _active_sources(sources)

        def build(query):
            if since_from is not None:
                query = query.gte("client_since", since_from.isoformat())
            if since_to is not None:
                query = query.lte("client_since", since_to.isoformat())
            if before is not None:
                query = query.lt("client_since", before.isoformat())
            if vip_only:
                query = query.eq("is_vip", True)
            if source_names:
                query = query.in_("source", source_names)
            return query

        return self._fetch("clients", Client, build, order_by="username")

    def get_income_sources(self, names: SourceFilter = None) -> List[IncomeSource]:
        """Income sources, optionally restricted to the given names."""
        source_names = _active_sources(names)

        def build(query):
            if source_names:
                query = query.in_("name", source_names)
            return query

        return self._fetch("income_sources", IncomeSource, build)

    def get_business_notes(self, period: Period) -> List[BusinessNote]:
        """Notes dated inside the period, oldest first."""
        _check_period(period)

        def build(query):
            return query.gte("date", period.start.isoformat()).lte("date", period.end.isoformat())

        notes = self._fetch("business_notes", BusinessNote, build)
        return sorted(notes, key=lambda n: n.date)

    # ===================
    # ORDER PRIMITIVES
    # ===================

    def sum_revenue(self, period: Period, sources: SourceFilter = None) -> Decimal:
        """Sum of Completed order amounts."""
        orders = self.get_orders(period, sources, status=OrderStatus.COMPLETED)
        return sum((o.amount for o in orders), Decimal("0"))

    def count_orders(self, period: Period, sources: SourceFilter = None) -> int:
        """Number of Completed orders."""
        return len(self.get_orders(period, sources, status=OrderStatus.COMPLETED))

    def orders_by_client(
        self,
        period: Period,
        sources: SourceFilter = None,
        status: Optional[OrderStatus] = None
    ) -> Dict[str, List[Order]]:
        """Client username -> that client's orders in the period (any status by default)."""
        grouped: Dict[str, List[Order]] = defaultdict(list)
        for order in self.get_orders(period, sources, status=status):
            grouped[order.client_username].append(order)
        return dict(grouped)

    def top_revenue_source(self, period: Period, sources: SourceFilter = None) -> Optional[NamedAmount]:
        """Income source with the highest Completed revenue, or None without orders."""
        totals: Dict[str, Decimal] = defaultdict(Decimal)
        for order in self.get_orders(period, sources, status=OrderStatus.COMPLETED):
            totals[order.source] += order.amount
        ranked = rank_by_amount(totals)
        return ranked[0] if ranked else None

    def revenue_for_source(self, period: Period, source: str) -> Decimal:
        return self.sum_revenue(period, [source])

    # ===================
    # EXPENSE PRIMITIVES
    # ===================

    def sum_expenses(self, period: Period, category: Optional[str] = None) -> Decimal:
        """Sum of expenses, optionally for one category."""
        expenses = self.get_expenses(period, category)
        return sum((e.amount for e in expenses), Decimal("0"))

    def top_spending_category(self, period: Period) -> Optional[NamedAmount]:
        """Expense category with the highest total, or None without expenses."""
        totals: Dict[str, Decimal] = defaultdict(Decimal)
        for expense in self.get_expenses(period):
            totals[expense.category] += expense.amount
        ranked = rank_by_amount(totals)
        return ranked[0] if ranked else None

    # ===================
    # CLIENT PRIMITIVES
    # ===================

    def count_new_clients(self, period: Period, sources: SourceFilter = None) -> int:
        """Clients whose client_since falls inside the period."""
        _check_period(period)
        return len(self.get_clients(sources, since_from=period.start, since_to=period.end))

    def clients_before(self, day: date, sources: SourceFilter = None) -> List[Client]:
        """Clients acquired strictly before `day` (the retention cohort)."""
        return self.get_clients(sources, before=day)

    def count_clients_before(self, day: date, sources: SourceFilter = None) -> int:
        return len(self.clients_before(day, sources))

    def count_vip_clients(self, as_of: date, sources: SourceFilter = None) -> int:
        """VIP clients acquired on or before `as_of`."""
        return len(self.get_clients(sources, since_to=as_of, vip_only=True))

    def client_lifespans(self, period: Period, sources: SourceFilter = None) -> List[int]:
        """
        Lifespan in days of each client whose latest order falls in the period.

        Only non-cancelled orders up to the period end qualify. A client
        needs at least 2 qualifying orders; clients with fewer have no
        lifespan and are left out rather than counted as 0. First and last
        dates come from the orders, so a client_since later than the
        orders cannot produce a negative lifespan.

        Returns:
            List of (last order - first order) in days
        """
        _check_period(period)
        known = {c.username for c in self.get_clients()}

        dates_by_client: Dict[str, List[date]] = defaultdict(list)
        for order in self.get_orders_until(period.end, sources):
            if order.client_username in known:
                dates_by_client[order.client_username].append(order.date)

        lifespans = []
        for order_dates in dates_by_client.values():
            if len(order_dates) < 2:
                continue
            first, last = min(order_dates), max(order_dates)
            if period.contains(last):
                lifespans.append((last - first).days)

        logger.debug(
            "client_lifespans_calculated",
            period=str(period),
            clients=len(lifespans)
        )
        return lifespans

    # ===================
    # SOURCE PRIMITIVES
    # ===================

    def total_messages(self, period: Period, sources: SourceFilter = None) -> int:
        """Inbound messages logged on the sources' daily data points."""
        _check_period(period)
        total = 0
        for source in self.get_income_sources(sources):
            total += sum(dp.messages for dp in source.data_points if period.contains(dp.date))
        return total

    def get_income_source(self, source_id: str) -> Optional[IncomeSource]:
        """One income source by id, or None."""

        def build(query):
            return query.eq("id", source_id)

        sources = self._fetch("income_sources", IncomeSource, build)
        return sources[0] if sources else None

    def find_gig_source(self, gig_id: str) -> Optional[IncomeSource]:
        """Income source owning the gig, or None when no source has it."""
        for source in self.get_income_sources():
            if source.find_gig(gig_id) is not None:
                return source
        return None

    def count_source_orders(self, source: str) -> int:
        """All-time non-cancelled orders of one income source."""

        def build(query):
            return query.eq("source", source).neq("status", OrderStatus.CANCELLED.value)

        return len(self._fetch("orders", Order, build))

    # ===================
    # YEARLY READS
    # ===================

    def get_competitors(self) -> List[Competitor]:
        return self._fetch("competitors", Competitor)

    def get_monthly_targets(self, year: int) -> List[MonthlyTarget]:
        """Revenue targets set for the months of one year."""

        def build(query):
            return query.eq("year", year)

        return self._fetch("monthly_targets", MonthlyTarget, build, order_by="month")
