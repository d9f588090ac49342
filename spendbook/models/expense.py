"""
Core Data Models for Spendbook

These models define the schemas for everything the ledger stores:
expenses, trashed expenses, categories and budget settings, plus the
snapshot that carries all of them in and out of the app.

DESIGN DECISION: Records keep a compact, stable on-disk layout
(`id, title, amount, ts, category` with epoch-millisecond instants).
Models expose Python types (Decimal, datetime) and convert at the
edges with to_record().
"""

from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# CONSTANTS
# =============================================================================

PLACEHOLDER_TITLE = "默认"
DEFAULT_CATEGORY_COLOR = "#0ea5e9"
MIN_EXPENSE_AMOUNT = Decimal("1")
DEFAULT_DAILY_BUDGET = Decimal("30")
SNAPSHOT_VERSION = 1

_CENT = Decimal("0.01")


def new_id() -> str:
    """Generate an opaque record id."""
    return str(uuid4())


def quantize_amount(value: Decimal) -> Decimal:
    """Round an amount to whole cents."""
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def truncate_to_millis(value: datetime) -> datetime:
    """Drop sub-millisecond precision."""
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def to_epoch_ms(value: datetime) -> int:
    """Convert a naive local datetime to epoch milliseconds."""
    whole_seconds = int(value.replace(microsecond=0).timestamp())
    return whole_seconds * 1000 + value.microsecond // 1000


def from_epoch_ms(value: int) -> datetime:
    """Convert epoch milliseconds to a naive local datetime."""
    seconds, millis = divmod(int(value), 1000)
    return datetime.fromtimestamp(seconds) + timedelta(milliseconds=millis)


# =============================================================================
# CATEGORY
# =============================================================================

class Category(BaseModel):
    """
    A named, colored expense category.

    The name is the key expenses reference; the color is display-only.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Unique (case-sensitive) category name"
    )
    color: str = Field(
        default=DEFAULT_CATEGORY_COLOR,
        description="Display color, usually a #rrggbb hex string"
    )

    @field_validator('color', mode='before')
    @classmethod
    def default_blank_color(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_CATEGORY_COLOR
        return v

    def to_record(self) -> dict:
        return {"name": self.name, "color": self.color}


DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(name="日常", color="#0ea5e9"),
    Category(name="吃饭", color="#22c55e"),
    Category(name="数码", color="#f97316"),
    Category(name="额外", color="#a78bfa"),
)


def default_categories() -> list[Category]:
    """Fresh copy of the default category set."""
    return [category.model_copy() for category in DEFAULT_CATEGORIES]


# =============================================================================
# EXPENSES
# =============================================================================

class Expense(BaseModel):
    """
    An active expense in the ledger.

    The minimum amount of 1 is enforced by the ledger on add/edit, not
    here: imported records are normalized and may legitimately hold 0.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        default_factory=new_id,
        min_length=1,
        description="Opaque unique id, immutable"
    )
    title: str = Field(
        default=PLACEHOLDER_TITLE,
        min_length=1,
        max_length=200,
        description="Display text"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount, kept to 2 decimal places"
    )
    timestamp: datetime = Field(
        ...,
        description="Effective date and time of the expense (local time)"
    )
    category: str = Field(
        ...,
        min_length=1,
        description="Name of the category this expense belongs to"
    )

    @field_validator('amount')
    @classmethod
    def quantize(cls, v: Decimal) -> Decimal:
        try:
            return quantize_amount(v)
        except InvalidOperation:
            raise ValueError(f"Amount {v} is too large to keep to whole cents")

    @field_validator('timestamp')
    @classmethod
    def millisecond_resolution(cls, v: datetime) -> datetime:
        return truncate_to_millis(v)

    def to_record(self) -> dict:
        """Convert to the persisted/exported record layout."""
        return {
            "id": self.id,
            "title": self.title,
            "amount": float(self.amount),
            "ts": to_epoch_ms(self.timestamp),
            "category": self.category,
        }


class TrashedExpense(Expense):
    """An expense moved to the trash, recoverable until purged."""

    deleted_at: datetime = Field(
        ...,
        description="When the expense was soft-deleted"
    )

    @field_validator('deleted_at')
    @classmethod
    def deleted_millisecond_resolution(cls, v: datetime) -> datetime:
        return truncate_to_millis(v)

    @classmethod
    def from_expense(cls, expense: Expense, deleted_at: datetime) -> "TrashedExpense":
        return cls(**expense.model_dump(), deleted_at=deleted_at)

    def to_expense(self) -> Expense:
        """Drop the deletion stamp, keeping every original field."""
        return Expense(**self.model_dump(exclude={"deleted_at"}))

    def to_record(self) -> dict:
        record = super().to_record()
        record["deletedAt"] = to_epoch_ms(self.deleted_at)
        return record


# =============================================================================
# SETTINGS & CALLER STATE
# =============================================================================

class BudgetSettings(BaseModel):
    """
    Budget targets.

    A monthly budget of 0 means "derive from the daily budget".
    """

    daily_budget: Decimal = Field(
        default=DEFAULT_DAILY_BUDGET,
        gt=0,
        description="Daily spending target"
    )
    monthly_budget: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Explicit monthly target, 0 to derive it"
    )

    def to_record(self) -> dict:
        return {
            "dailyBudget": float(self.daily_budget),
            "monthlyBudget": float(self.monthly_budget),
        }


class Selection(BaseModel):
    """
    Category references held by the caller's UI.

    The registry keeps these pointing at existing categories across
    renames and removals.
    """

    selected_category: Optional[str] = None
    draft_category: Optional[str] = None


# =============================================================================
# SNAPSHOT
# =============================================================================

class Snapshot(BaseModel):
    """A complete capture of the ledger for export/import."""

    version: int = Field(default=SNAPSHOT_VERSION)
    generated_at: datetime = Field(default_factory=datetime.now)
    expenses: list[Expense] = Field(default_factory=list)
    trash: list[TrashedExpense] = Field(default_factory=list)
    settings: BudgetSettings = Field(default_factory=BudgetSettings)
    categories: list[Category] = Field(default_factory=list)

    def to_document(self) -> dict:
        """Convert to the exported JSON document layout."""
        return {
            "version": self.version,
            "generatedAt": self.generated_at.isoformat(timespec="milliseconds"),
            "expenses": [expense.to_record() for expense in self.expenses],
            "trash": [item.to_record() for item in self.trash],
            "settings": self.settings.to_record(),
            "categories": [category.to_record() for category in self.categories],
        }


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single issue found (and possibly corrected) while reading input."""

    field: str = Field(
        ...,
        description="Field with the issue, e.g. 'expenses[3].amount'"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'skipped_row')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="What was substituted, or what the user can do"
    )


class ImportReport(BaseModel):
    """Outcome of a committed import."""

    source_format: str
    policy: str
    imported_expenses: int = 0
    imported_trash: int = 0
    replaced_expenses: int = 0
    affected_dates: list[str] = Field(default_factory=list)
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def corrected_count(self) -> int:
        """Number of fields that were normalized to a fallback value."""
        return sum(1 for issue in self.issues if issue.issue_type != "skipped_row")

    @property
    def skipped_count(self) -> int:
        return sum(1 for issue in self.issues if issue.issue_type == "skipped_row")
