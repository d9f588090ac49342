"""
View Models returned by the aggregation and budget layers.

These are what a host UI renders. They carry no behaviour beyond a
few convenience properties.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from spendbook.models.expense import Expense


class TrendPoint(BaseModel):
    """One calendar day of a daily trend."""

    day: date
    label: str = Field(..., description="MM-DD label for the day")
    amount: Decimal = Decimal("0")


class BucketTotal(BaseModel):
    """Total spending for a month or a year."""

    key: int = Field(..., description="Month number (1-12) or year")
    label: str
    amount: Decimal = Decimal("0")


class Segment(BaseModel):
    """Total spending over a contiguous day range."""

    start: date
    end: date
    label: str
    amount: Decimal = Decimal("0")


class DayExtreme(BaseModel):
    """A day picked as the cheapest or most expensive one of a window."""

    day: date
    total: Decimal
    entries: list[Expense] = Field(default_factory=list)


class Extremes(BaseModel):
    """
    Spending extremes.

    Day extremes cover the requested window; single-expense extremes
    cover the trailing 365 days.
    """

    window_start: date
    window_end: date
    window_total: Decimal = Decimal("0")
    min_day: Optional[DayExtreme] = None
    max_day: Optional[DayExtreme] = None
    min_expense: Optional[Expense] = None
    max_expense: Optional[Expense] = None


class CalendarDay(BaseModel):
    """A cell of the month calendar."""

    day: date
    spent: Decimal = Decimal("0")
    is_today: bool = False


class CalendarMonth(BaseModel):
    """Monday-first month grid with per-day totals."""

    year: int
    month: int
    leading_blanks: int = Field(..., ge=0, le=6, description="Empty cells before day 1")
    days: list[CalendarDay] = Field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum((cell.spent for cell in self.days), Decimal("0"))


class BudgetLine(BaseModel):
    """Budget, spending and balance for one window."""

    budget: Decimal
    spent: Decimal
    balance: Decimal

    @property
    def over_budget(self) -> bool:
        """Negative balance is an alert signal, not an error."""
        return self.balance < 0


class BudgetSummary(BaseModel):
    """The day/week/month header figures."""

    day: date
    daily: BudgetLine
    weekly: BudgetLine
    monthly: BudgetLine
