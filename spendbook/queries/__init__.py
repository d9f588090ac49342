"""Aggregation and budget query package."""

from spendbook.queries.aggregates import (
    available_months,
    available_years,
    calendar_month,
    category_usage,
    daily_trend,
    days_in_month,
    end_of_day,
    end_of_month,
    end_of_week,
    extremes,
    filter_by_range,
    group_by_category,
    monthly_totals,
    records_on,
    start_of_day,
    start_of_month,
    start_of_week,
    total_amount,
    weekly_segments,
    yearly_totals,
)
from spendbook.queries.budget import (
    budget_summary,
    daily_balance,
    monthly_balance,
    monthly_budget,
    weekly_balance,
    weekly_budget,
)

__all__ = [
    "available_months",
    "available_years",
    "budget_summary",
    "calendar_month",
    "category_usage",
    "daily_balance",
    "daily_trend",
    "days_in_month",
    "end_of_day",
    "end_of_month",
    "end_of_week",
    "extremes",
    "filter_by_range",
    "group_by_category",
    "monthly_balance",
    "monthly_budget",
    "monthly_totals",
    "records_on",
    "start_of_day",
    "start_of_month",
    "start_of_week",
    "total_amount",
    "weekly_balance",
    "weekly_budget",
    "weekly_segments",
    "yearly_totals",
]
