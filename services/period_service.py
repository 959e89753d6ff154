"""
Period calculation and period-over-period change.

Derives the comparison windows used by every metrics engine:
- P2: the requested period
- P1: the period of equal length immediately before P2
- P0: the period of equal length immediately before P1

Day-count convention: duration is the raw day difference (to - from),
not a calendar-inclusive count. Every engine uses this same convention.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, List, NamedTuple, Optional, TypeVar, Union

from models.metrics import ChangeKind, MetricValue
from models.period import Period, PeriodSet
from exceptions import InvalidDateError, InvalidRangeError

ONE_DAY = timedelta(days=1)
HUNDRED = Decimal("100")
ZERO = Decimal("0")

DateInput = Union[str, date, datetime]
Number = Union[int, float, Decimal]

T = TypeVar("T")


# ===================
# DATES
# ===================

def normalize_date(value: DateInput) -> date:
    """
    Normalize a date input to a calendar day.

    Accepts date, datetime (time-of-day dropped) or an ISO string
    ("2024-03-05" or "2024-03-05T10:00:00Z").
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            raise InvalidDateError(value)
    raise InvalidDateError(value)


def make_period(start: DateInput, end: DateInput) -> Period:
    """Build a Period, rejecting ranges that end before they start."""
    start_day = normalize_date(start)
    end_day = normalize_date(end)
    if end_day < start_day:
        raise InvalidRangeError(start_day, end_day)
    return Period(start=start_day, end=end_day)


def preceding_period(period: Period) -> Period:
    """Period of the same duration that ends the day before `period` starts."""
    end = period.start - ONE_DAY
    return Period(start=end - timedelta(days=period.duration_days), end=end)


def derive_periods(start: DateInput, end: DateInput) -> PeriodSet:
    """
    Derive P2/P1/P0 for a date range.

    P1 = [from - duration - 1d, from - 1d]
    P0 = [P1.start - duration - 1d, P1.start - 1d]

    Raises:
        InvalidRangeError: If end is before start
    """
    current = make_period(start, end)
    previous = preceding_period(current)
    prior = preceding_period(previous)
    return PeriodSet(current=current, previous=previous, prior=prior)


def month_start(day: date) -> date:
    return day.replace(day=1)


def month_end(day: date) -> date:
    if day.month == 12:
        return date(day.year, 12, 31)
    return date(day.year, day.month + 1, 1) - ONE_DAY


def month_period(day: date) -> Period:
    """Full calendar month containing `day`."""
    return Period(start=month_start(day), end=month_end(day))


def previous_month(period: Period) -> Period:
    """Full calendar month before the month `period` starts in."""
    return month_period(period.start.replace(day=1) - ONE_DAY)


def month_periods(period: Period) -> List[Period]:
    """One full calendar-month period per month the range touches."""
    months = []
    cursor = month_start(period.start)
    while cursor <= period.end:
        months.append(month_period(cursor))
        cursor = month_end(cursor) + ONE_DAY
    return months


def each_day(period: Period) -> List[date]:
    return [period.start + timedelta(days=i) for i in range(period.duration_days + 1)]


# ===================
# CHANGE CALCULATION
# ===================

def to_decimal(value: Optional[Number]) -> Decimal:
    """Convert a store/computed number to Decimal (None counts as 0)."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return ZERO


def safe_divide(numerator: Number, denominator: Number) -> Decimal:
    """numerator / denominator, or 0 when the denominator is 0."""
    denominator = to_decimal(denominator)
    if denominator == 0:
        return ZERO
    return to_decimal(numerator) / denominator


def percent_change(current: Number, previous: Number) -> Decimal:
    """
    Percentage change from previous to current.

    When previous is 0 the result is capped: 100 if current grew above 0,
    otherwise 0. Unbounded growth is deliberately reported as a flat 100%.
    """
    current = to_decimal(current)
    previous = to_decimal(previous)
    if previous == 0:
        return HUNDRED if current > 0 else ZERO
    result = (current - previous) / previous * HUNDRED
    return result if result.is_finite() else ZERO


def absolute_change(current: Number, previous: Number) -> Decimal:
    """Difference in points, for values already expressed as percentages."""
    return to_decimal(current) - to_decimal(previous)


def calculate_change(current: Number, previous: Number, kind: ChangeKind) -> Decimal:
    if kind == ChangeKind.ABSOLUTE:
        return absolute_change(current, previous)
    return percent_change(current, previous)


# ===================
# PERIOD COMPARISON
# ===================

class PeriodSnapshots(NamedTuple):
    """Per-period results in P2, P1, P0 order. prior is None for two-period engines."""

    current: Any
    previous: Any
    prior: Any = None


def compare_periods(
    compute: Callable[[Period], T],
    periods: PeriodSet,
    include_prior: bool = True
) -> PeriodSnapshots:
    """
    Run a per-period compute function over P2, P1 and (optionally) P0.

    Args:
        compute: Function returning the metrics snapshot for one period
        periods: Output of derive_periods
        include_prior: False for two-period comparisons

    Returns:
        PeriodSnapshots with one snapshot per period
    """
    current = compute(periods.current)
    previous = compute(periods.previous)
    prior = compute(periods.prior) if include_prior else None
    return PeriodSnapshots(current=current, previous=previous, prior=prior)


def metric_value(
    current: Number,
    previous: Number,
    prior: Optional[Number] = None,
    kind: ChangeKind = ChangeKind.PERCENT
) -> MetricValue:
    """
    Build the standard {value, change, previous_period_change, previous_value} shape.

    Values are rounded to 2 decimals; changes are computed on unrounded inputs.
    """
    previous_period_change = None
    if prior is not None:
        previous_period_change = round(calculate_change(previous, prior, kind), 2)

    return MetricValue(
        value=round(to_decimal(current), 2),
        change=round(calculate_change(current, previous, kind), 2),
        previous_value=round(to_decimal(previous), 2),
        previous_period_change=previous_period_change,
        change_kind=kind
    )


def snapshot_metric(
    snapshots: PeriodSnapshots,
    field: str,
    kind: ChangeKind = ChangeKind.PERCENT
) -> MetricValue:
    """metric_value for one attribute of each period snapshot."""
    prior = getattr(snapshots.prior, field) if snapshots.prior is not None else None
    return metric_value(
        getattr(snapshots.current, field),
        getattr(snapshots.previous, field),
        prior,
        kind
    )
