"""
Budget Calculator

Derives weekly and monthly ceilings from the configured daily budget
(and optional explicit monthly budget) and the balances left in each
window. Balances may be negative; that is a signal for the UI, not
an error.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from spendbook.models.expense import BudgetSettings, Expense
from spendbook.models.views import BudgetLine, BudgetSummary
from spendbook.queries.aggregates import (
    days_in_month,
    end_of_month,
    end_of_week,
    filter_by_range,
    start_of_month,
    start_of_week,
    total_amount,
)


DAYS_PER_WEEK = 7


def daily_balance(settings: BudgetSettings, spent_today: Decimal) -> Decimal:
    return settings.daily_budget - spent_today


def weekly_budget(settings: BudgetSettings) -> Decimal:
    return settings.daily_budget * DAYS_PER_WEEK


def weekly_balance(settings: BudgetSettings, spent_this_week: Decimal) -> Decimal:
    return weekly_budget(settings) - spent_this_week


def monthly_budget(settings: BudgetSettings, reference_date: date) -> Decimal:
    """
    Monthly ceiling for the month containing reference_date.

    An explicit monthly budget wins; otherwise the daily budget is
    multiplied by the number of days in that month.
    """
    if settings.monthly_budget > 0:
        return settings.monthly_budget
    return settings.daily_budget * days_in_month(reference_date.year, reference_date.month)


def monthly_balance(
    settings: BudgetSettings,
    spent_this_month: Decimal,
    reference_date: date,
) -> Decimal:
    return monthly_budget(settings, reference_date) - spent_this_month


def budget_summary(
    records: Iterable[Expense],
    settings: BudgetSettings,
    day: Optional[date] = None,
    today: Optional[date] = None,
) -> BudgetSummary:
    """
    Header figures: the chosen day, plus the current week and month.

    Args:
        day: Day whose spending is set against the daily budget
             (defaults to today).
        today: Anchor of the week and month windows.
    """
    records = list(records)
    today = today or date.today()
    day = day or today

    spent_day = total_amount(filter_by_range(records, day, day))
    spent_week = total_amount(filter_by_range(records, start_of_week(today), end_of_week(today)))
    spent_month = total_amount(filter_by_range(records, start_of_month(today), end_of_month(today)))

    return BudgetSummary(
        day=day,
        daily=BudgetLine(
            budget=settings.daily_budget,
            spent=spent_day,
            balance=daily_balance(settings, spent_day),
        ),
        weekly=BudgetLine(
            budget=weekly_budget(settings),
            spent=spent_week,
            balance=weekly_balance(settings, spent_week),
        ),
        monthly=BudgetLine(
            budget=monthly_budget(settings, today),
            spent=spent_month,
            balance=monthly_balance(settings, spent_month, today),
        ),
    )
