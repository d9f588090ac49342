"""
Tests for aggregation and budget queries.
"""

import pytest
from datetime import date, datetime, timedelta
from decimal import Decimal

from spendbook.models import BudgetSettings
from spendbook.queries import (
    available_months,
    available_years,
    budget_summary,
    calendar_month,
    category_usage,
    daily_trend,
    days_in_month,
    end_of_day,
    extremes,
    filter_by_range,
    group_by_category,
    monthly_budget,
    monthly_totals,
    records_on,
    start_of_week,
    total_amount,
    weekly_budget,
    weekly_segments,
    yearly_totals,
)


class TestDateHelpers:
    """Tests for calendar helpers."""

    def test_days_in_month_leap_year(self):
        """Test February lengths."""
        assert days_in_month(2024, 2) == 29
        assert days_in_month(2023, 2) == 28

    def test_start_of_week_is_monday(self):
        """Test weeks start on Monday."""
        assert start_of_week(date(2024, 3, 1)) == datetime(2024, 2, 26)
        assert start_of_week(date(2024, 2, 26)) == datetime(2024, 2, 26)

    def test_end_of_day(self):
        """Test the end of a day is its last millisecond."""
        assert end_of_day(date(2024, 3, 1)) == datetime(2024, 3, 1, 23, 59, 59, 999000)


class TestBasicQueries:
    """Tests for filtering, totals and grouping."""

    def test_filter_by_range_inclusive_days(self, make_expense):
        """Test date bounds cover whole days on both ends."""
        early = make_expense("5", date(2024, 3, 1), hour=0)
        late = make_expense("6", date(2024, 3, 3), hour=23, minute=59)
        outside = make_expense("7", date(2024, 3, 4), hour=0)

        result = filter_by_range([early, late, outside], date(2024, 3, 1), date(2024, 3, 3))
        assert result == [early, late]

    def test_records_on_ascending(self, make_expense):
        """Test a day's records are returned oldest first."""
        later = make_expense("5", hour=18)
        earlier = make_expense("6", hour=8)
        assert records_on([later, earlier], date(2024, 3, 1)) == [earlier, later]

    def test_total_amount_empty(self):
        """Test the total of nothing is zero."""
        assert total_amount([]) == Decimal("0")

    def test_scenario_single_day(self, make_expense):
        """Test grouping and extremes for three same-day expenses."""
        day = date(2024, 3, 1)
        records = [
            make_expense("10", day, "Food", hour=8),
            make_expense("20", day, "Food", hour=12),
            make_expense("30", day, "Food", hour=19),
        ]

        assert group_by_category(filter_by_range(records, day, day)) == {"Food": Decimal("60")}

        result = extremes(records, window_start=day, window_end=day, today=day)
        assert result.min_day.day == day
        assert result.max_day.day == day
        assert result.min_day.total == Decimal("60")
        assert result.max_day.total == Decimal("60")

    def test_category_usage(self, make_expense):
        """Test usage counts records per category."""
        records = [make_expense("1", category="A"), make_expense("2", category="A"), make_expense("3", category="B")]
        assert category_usage(records) == {"A": 2, "B": 1}


class TestTimeBuckets:
    """Tests for trend, monthly and yearly buckets."""

    def test_daily_trend_empty(self):
        """Test an empty ledger still yields one zero point per day."""
        today = date(2024, 3, 1)
        points = daily_trend([], 7, today=today)

        assert len(points) == 7
        assert all(point.amount == 0 for point in points)
        assert [p.day for p in points] == [today - timedelta(days=offset) for offset in range(6, -1, -1)]
        assert points[0].label == "02-24"
        assert points[-1].label == "03-01"

    def test_daily_trend_sums_days(self, make_expense):
        """Test each point totals its day."""
        records = [make_expense("5", date(2024, 2, 29)), make_expense("7", date(2024, 2, 29))]
        points = daily_trend(records, 2, today=date(2024, 3, 1))
        assert [p.amount for p in points] == [Decimal("12"), Decimal("0")]

    def test_daily_trend_rejects_empty_window(self):
        """Test the window must hold at least one day."""
        with pytest.raises(ValueError):
            daily_trend([], 0, today=date(2024, 3, 1))

    def test_monthly_totals(self, make_expense):
        """Test twelve buckets for the chosen year only."""
        records = [
            make_expense("5", date(2024, 3, 1)),
            make_expense("6", date(2024, 3, 31)),
            make_expense("9", date(2023, 3, 1)),
        ]
        buckets = monthly_totals(records, 2024)

        assert len(buckets) == 12
        assert buckets[2].label == "2024-03"
        assert buckets[2].amount == Decimal("11")
        assert sum(b.amount for b in buckets) == Decimal("11")

    def test_yearly_totals_include_current_year(self, make_expense):
        """Test the current year is present even without records."""
        buckets = yearly_totals([make_expense("5", date(2022, 6, 1))], today=date(2024, 3, 1))
        assert [(b.key, b.amount) for b in buckets] == [(2022, Decimal("5")), (2024, Decimal("0"))]

    def test_available_years_and_months(self, make_expense):
        """Test the selectable years and months."""
        records = [make_expense("5", date(2023, 11, 5))]
        today = date(2024, 3, 1)

        assert available_years(records, today) == [2023, 2024]
        assert available_months(records, today) == [(2023, 11), (2024, 3)]


class TestSegments:
    """Tests for weekly segments and calendar."""

    def test_recent_weeks(self, make_expense):
        """Test four Monday-aligned weeks ending with the current one."""
        records = [make_expense("5", date(2024, 2, 26)), make_expense("8", date(2024, 2, 5))]
        segments = weekly_segments(records, today=date(2024, 3, 1))

        assert [s.start for s in segments] == [
            date(2024, 2, 5), date(2024, 2, 12), date(2024, 2, 19), date(2024, 2, 26),
        ]
        assert segments[-1].label == "2/26~3/03"
        assert segments[0].amount == Decimal("8")
        assert segments[-1].amount == Decimal("5")

    def test_month_bands(self, make_expense):
        """Test fixed bands with the last one running to month end."""
        records = [make_expense("4", date(2024, 2, 29)), make_expense("3", date(2024, 2, 7))]
        segments = weekly_segments(records, month=(2024, 2))

        assert [s.label for s in segments] == ["1-7", "8-14", "15-21", "22-29"]
        assert segments[0].amount == Decimal("3")
        assert segments[3].amount == Decimal("4")

    def test_month_bands_invalid_month(self):
        """Test an impossible month is rejected."""
        with pytest.raises(ValueError):
            weekly_segments([], month=(2024, 13))

    def test_calendar_month(self, make_expense):
        """Test the Monday-first grid and per-day totals."""
        grid = calendar_month([make_expense("9", date(2024, 3, 1))], 2024, 3, today=date(2024, 3, 1))

        assert grid.leading_blanks == 4
        assert len(grid.days) == 31
        assert grid.days[0].spent == Decimal("9")
        assert grid.days[0].is_today
        assert grid.total == Decimal("9")


class TestExtremes:
    """Tests for cheapest and most expensive days and expenses."""

    def test_window_days(self, make_expense):
        """Test day extremes skip empty days and prefer the earliest on ties."""
        records = [
            make_expense("10", date(2024, 2, 27)),
            make_expense("10", date(2024, 2, 28)),
            make_expense("50", date(2024, 2, 29)),
        ]
        result = extremes(records, window_start=date(2024, 2, 20), window_end=date(2024, 3, 1), today=date(2024, 3, 1))

        assert result.min_day.day == date(2024, 2, 27)
        assert result.max_day.day == date(2024, 2, 29)
        assert result.window_total == Decimal("70")

    def test_empty_window(self):
        """Test an empty window has no day extremes."""
        result = extremes([], today=date(2024, 3, 1))

        assert result.min_day is None
        assert result.max_day is None
        assert result.window_start == date(2024, 2, 1)

    def test_single_expense_extremes(self, make_expense):
        """Test single expense extremes over the trailing year."""
        old = make_expense("1", date(2022, 1, 1))
        cheap = make_expense("2", date(2024, 1, 10))
        pricey = make_expense("99", date(2024, 2, 10))
        zero = make_expense("0", date(2024, 2, 11))

        result = extremes([old, cheap, pricey, zero], today=date(2024, 3, 1))
        assert result.min_expense == cheap
        assert result.max_expense == pricey

    def test_inverted_window(self):
        """Test a window that ends before it starts is rejected."""
        with pytest.raises(ValueError):
            extremes([], window_start=date(2024, 3, 2), window_end=date(2024, 3, 1))


class TestBudget:
    """Tests for budget ceilings and balances."""

    def test_monthly_budget_derived_in_leap_february(self):
        """Test the monthly ceiling falls back to daily times days in month."""
        settings = BudgetSettings(daily_budget=Decimal("30"), monthly_budget=Decimal("0"))
        assert monthly_budget(settings, date(2024, 2, 15)) == Decimal("30") * 29

    def test_explicit_monthly_budget_wins(self):
        """Test an explicit monthly budget is used as is."""
        settings = BudgetSettings(daily_budget=Decimal("30"), monthly_budget=Decimal("500"))
        assert monthly_budget(settings, date(2024, 2, 15)) == Decimal("500")

    def test_weekly_budget(self):
        """Test the weekly ceiling is seven daily budgets."""
        assert weekly_budget(BudgetSettings(daily_budget=Decimal("30"))) == Decimal("210")

    def test_budget_summary(self, make_expense):
        """Test day, week and month figures including a negative balance."""
        records = [
            make_expense("40", date(2024, 3, 1)),
            make_expense("15", date(2024, 2, 27)),
            make_expense("100", date(2024, 2, 10)),
        ]
        summary = budget_summary(records, BudgetSettings(), today=date(2024, 3, 1))

        assert summary.daily.spent == Decimal("40")
        assert summary.daily.balance == Decimal("-10")
        assert summary.daily.over_budget
        assert summary.weekly.spent == Decimal("55")
        assert summary.weekly.balance == Decimal("155")
        assert summary.monthly.budget == Decimal("930")
        assert summary.monthly.spent == Decimal("40")

    def test_budget_summary_for_other_day(self, make_expense):
        """Test the daily line follows the chosen day."""
        records = [make_expense("12", date(2024, 2, 27))]
        summary = budget_summary(records, BudgetSettings(), day=date(2024, 2, 27), today=date(2024, 3, 1))

        assert summary.day == date(2024, 2, 27)
        assert summary.daily.spent == Decimal("12")
