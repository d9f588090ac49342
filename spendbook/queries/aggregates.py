"""
Aggregation Engine

DESIGN DECISION: Every aggregate is a PURE function of a record list
and its parameters. Nothing is cached: the ledger is personal-scale,
so recomputing from current state on each query is cheap and can
never show stale numbers after an edit, delete or import.

Functions that depend on "today" accept it as a parameter and only
fall back to the clock when it is omitted.

Day boundaries are local calendar days. A week runs Monday to Sunday.
"""

import calendar
from collections import defaultdict
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Iterable, Optional, Sequence, Union

from spendbook.models.expense import Expense
from spendbook.models.views import (
    BucketTotal,
    CalendarDay,
    CalendarMonth,
    DayExtreme,
    Extremes,
    Segment,
    TrendPoint,
)


DateLike = Union[date, datetime]

ZERO = Decimal("0")
RECENT_WEEKS = 4
MONTH_BANDS = ((1, 7), (8, 14), (15, 21), (22, 31))
EXPENSE_EXTREMES_DAYS = 365
DEFAULT_EXTREMES_WINDOW_DAYS = 30


# =============================================================================
# DATE WINDOWS
# =============================================================================

def as_date(value: DateLike) -> date:
    """Calendar date of a date or datetime."""
    if isinstance(value, datetime):
        return value.date()
    return value


def start_of_day(value: DateLike) -> datetime:
    return datetime.combine(as_date(value), time.min)


def end_of_day(value: DateLike) -> datetime:
    """Last millisecond of the day."""
    return datetime.combine(as_date(value), time(23, 59, 59, 999000))


def start_of_week(value: DateLike) -> datetime:
    day = as_date(value)
    return start_of_day(day - timedelta(days=day.weekday()))


def end_of_week(value: DateLike) -> datetime:
    return end_of_day(start_of_week(value) + timedelta(days=6))


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def start_of_month(value: DateLike) -> datetime:
    day = as_date(value)
    return start_of_day(day.replace(day=1))


def end_of_month(value: DateLike) -> datetime:
    day = as_date(value)
    return end_of_day(day.replace(day=days_in_month(day.year, day.month)))


def each_day(start: DateLike, end: DateLike) -> list[date]:
    """Every calendar day from start to end, inclusive."""
    first, last = as_date(start), as_date(end)
    return [first + timedelta(days=offset) for offset in range((last - first).days + 1)]


def _today(today: Optional[date]) -> date:
    return today if today is not None else date.today()


# =============================================================================
# BASIC QUERIES
# =============================================================================

def filter_by_range(
    records: Iterable[Expense],
    start: DateLike,
    end: DateLike,
) -> list[Expense]:
    """
    Records whose timestamp lies in [start, end].

    Plain dates are widened to the whole day: a date start means its
    first instant, a date end means its last millisecond.
    """
    lower = start if isinstance(start, datetime) else start_of_day(start)
    upper = end if isinstance(end, datetime) else end_of_day(end)
    return [record for record in records if lower <= record.timestamp <= upper]


def records_on(records: Iterable[Expense], day: DateLike) -> list[Expense]:
    """Records of one calendar day, oldest first."""
    return sorted(filter_by_range(records, as_date(day), as_date(day)), key=lambda r: r.timestamp)


def total_amount(records: Iterable[Expense]) -> Decimal:
    return sum((record.amount for record in records), ZERO)


def group_by_category(records: Iterable[Expense]) -> dict[str, Decimal]:
    """Summed amount per category name, in first-seen order."""
    totals: dict[str, Decimal] = {}
    for record in records:
        totals[record.category] = totals.get(record.category, ZERO) + record.amount
    return totals


def category_usage(records: Iterable[Expense]) -> dict[str, int]:
    """Number of records per category name."""
    usage: dict[str, int] = defaultdict(int)
    for record in records:
        usage[record.category] += 1
    return dict(usage)


def _totals_by_day(records: Iterable[Expense]) -> dict[date, Decimal]:
    totals: dict[date, Decimal] = defaultdict(lambda: ZERO)
    for record in records:
        totals[record.timestamp.date()] += record.amount
    return totals


# =============================================================================
# TIME BUCKETS
# =============================================================================

def daily_trend(
    records: Iterable[Expense],
    window_days: int,
    today: Optional[date] = None,
) -> list[TrendPoint]:
    """
    One point per day for the window ending today, oldest first.

    Days without spending are present with amount 0.
    """
    if window_days < 1:
        raise ValueError("window_days must be at least 1")

    end = _today(today)
    start = end - timedelta(days=window_days - 1)
    totals = _totals_by_day(records)

    return [
        TrendPoint(day=day, label=day.strftime("%m-%d"), amount=totals.get(day, ZERO))
        for day in each_day(start, end)
    ]


def monthly_totals(records: Iterable[Expense], year: int) -> list[BucketTotal]:
    """Twelve month buckets (Jan..Dec) for one year."""
    amounts = [ZERO] * 12
    for record in records:
        if record.timestamp.year == year:
            amounts[record.timestamp.month - 1] += record.amount

    return [
        BucketTotal(key=month, label=f"{year}-{month:02d}", amount=amounts[month - 1])
        for month in range(1, 13)
    ]


def yearly_totals(
    records: Iterable[Expense],
    today: Optional[date] = None,
) -> list[BucketTotal]:
    """One bucket per year with records, always including the current year."""
    totals: dict[int, Decimal] = {_today(today).year: ZERO}
    for record in records:
        year = record.timestamp.year
        totals[year] = totals.get(year, ZERO) + record.amount

    return [
        BucketTotal(key=year, label=str(year), amount=totals[year])
        for year in sorted(totals)
    ]


def available_years(records: Iterable[Expense], today: Optional[date] = None) -> list[int]:
    """Years offered by the monthly view, ascending."""
    return [bucket.key for bucket in yearly_totals(records, today)]


def available_months(
    records: Iterable[Expense],
    today: Optional[date] = None,
) -> list[tuple[int, int]]:
    """(year, month) pairs with records plus the current month, ascending."""
    current = _today(today)
    months = {(current.year, current.month)}
    for record in records:
        months.add((record.timestamp.year, record.timestamp.month))
    return sorted(months)


def _sum_between(records: Sequence[Expense], start: datetime, end: datetime) -> Decimal:
    return total_amount(record for record in records if start <= record.timestamp <= end)


def weekly_segments(
    records: Iterable[Expense],
    month: Optional[tuple[int, int]] = None,
    today: Optional[date] = None,
) -> list[Segment]:
    """
    Split recent weeks or one month into at most four day ranges.

    Args:
        month: None for the four Monday-aligned weeks ending with the
               current week, or (year, month) for the fixed bands
               1-7 / 8-14 / 15-21 / 22-end of that month.
    """
    records = list(records)
    segments = []

    if month is None:
        base = start_of_week(_today(today))
        for offset in range(RECENT_WEEKS - 1, -1, -1):
            start = base - timedelta(days=offset * 7)
            end = end_of_day(start + timedelta(days=6))
            label = f"{start.month}/{start.day:02d}~{end.month}/{end.day:02d}"
            segments.append(Segment(
                start=start.date(),
                end=end.date(),
                label=label,
                amount=_sum_between(records, start, end),
            ))
        return segments

    year, month_number = month
    if not 1 <= month_number <= 12:
        raise ValueError(f"Invalid month: {month_number}")
    last_day = days_in_month(year, month_number)

    for first, last in MONTH_BANDS:
        if first > last_day:
            continue
        band_end = last_day if last == 31 else min(last, last_day)
        start_day = date(year, month_number, first)
        end_day = date(year, month_number, band_end)
        segments.append(Segment(
            start=start_day,
            end=end_day,
            label=f"{first}-{band_end}",
            amount=_sum_between(records, start_of_day(start_day), end_of_day(end_day)),
        ))
    return segments


def calendar_month(
    records: Iterable[Expense],
    year: int,
    month: int,
    today: Optional[date] = None,
) -> CalendarMonth:
    """Monday-first grid of the month with what was spent on each day."""
    current = _today(today)
    totals = _totals_by_day(records)
    first = date(year, month, 1)
    days = [
        CalendarDay(day=day, spent=totals.get(day, ZERO), is_today=day == current)
        for day in each_day(first, first.replace(day=days_in_month(year, month)))
    ]
    return CalendarMonth(year=year, month=month, leading_blanks=first.weekday(), days=days)


# =============================================================================
# EXTREMES
# =============================================================================

def extremes(
    records: Iterable[Expense],
    window_start: Optional[date] = None,
    window_end: Optional[date] = None,
    today: Optional[date] = None,
) -> Extremes:
    """
    Cheapest and most expensive spending days and expenses.

    The day extremes cover [window_start, window_end] (default: the 30
    days ending today) and only consider days with spending. The
    single-expense extremes cover the trailing 365 days and only
    positive amounts; ties go to the earliest timestamp.
    """
    records = list(records)
    current = _today(today)
    end = as_date(window_end) if window_end is not None else current
    start = (
        as_date(window_start)
        if window_start is not None
        else end - timedelta(days=DEFAULT_EXTREMES_WINDOW_DAYS - 1)
    )
    if start > end:
        raise ValueError("window_start must not be after window_end")

    by_day: dict[date, list[Expense]] = defaultdict(list)
    for record in filter_by_range(records, start, end):
        by_day[record.timestamp.date()].append(record)

    result = Extremes(window_start=start, window_end=end)
    for day in each_day(start, end):
        entries = sorted(by_day.get(day, []), key=lambda r: r.timestamp)
        day_total = total_amount(entries)
        result.window_total += day_total
        if day_total <= 0:
            continue
        if result.min_day is None or day_total < result.min_day.total:
            result.min_day = DayExtreme(day=day, total=day_total, entries=entries)
        if result.max_day is None or day_total > result.max_day.total:
            result.max_day = DayExtreme(day=day, total=day_total, entries=entries)

    trailing = filter_by_range(
        records,
        start_of_day(current - timedelta(days=EXPENSE_EXTREMES_DAYS)),
        end_of_day(current),
    )
    for record in trailing:
        if record.amount <= 0:
            continue
        low = result.min_expense
        if low is None or (record.amount, record.timestamp) < (low.amount, low.timestamp):
            result.min_expense = record
        high = result.max_expense
        if high is None or record.amount > high.amount or (
            record.amount == high.amount and record.timestamp < high.timestamp
        ):
            result.max_expense = record

    return result
