"""
Import / Load Normalization

DESIGN DECISION: Records read from disk or from an import file are
REPAIRED field by field, never rejected as a whole:

    missing/invalid id          -> new id
    missing/blank title         -> placeholder title
    negative/invalid amount     -> 0
    invalid timestamp           -> now
    unknown/blank category      -> first category
    invalid deletedAt (trash)   -> now
    invalid daily budget        -> default daily budget
    negative monthly budget     -> 0

Every substitution is recorded as a ValidationIssue so the caller can
tell the user what was corrected. Only entries that are not objects at
all are skipped.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Optional

from spendbook.models.expense import (
    DEFAULT_CATEGORY_COLOR,
    PLACEHOLDER_TITLE,
    BudgetSettings,
    Category,
    Expense,
    TrashedExpense,
    ValidationIssue,
    from_epoch_ms,
    new_id,
)
from spendbook.validation.validator import parse_amount


TITLE_MAX_LENGTH = 200


def parse_instant(value: Any) -> Optional[datetime]:
    """
    Parse an instant stored as epoch milliseconds or an ISO string.

    Timezone-aware values are converted to naive local time.
    Returns None if the value cannot be interpreted.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            return from_epoch_ms(int(value))
        if isinstance(value, str):
            text = value.strip()
            if not text:
                return None
            if text.lstrip("-").isdigit():
                return from_epoch_ms(int(text))
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            if parsed.tzinfo is not None:
                parsed = parsed.astimezone().replace(tzinfo=None)
            return parsed
    except (ValueError, OverflowError, OSError):
        return None
    return None


class RecordNormalizer:
    """
    Repairs raw JSON-shaped records into ledger models.

    One normalizer is used per load/import so that id uniqueness and
    the collected issues span the whole payload.
    """

    def __init__(
        self,
        category_names: list[str],
        default_daily_budget: Decimal,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Args:
            category_names: Valid category names; the first one is the
                            fallback for unknown categories.
            default_daily_budget: Substitute for an invalid daily budget.
            clock: Source of "now" for invalid instants.
        """
        if not category_names:
            raise ValueError("At least one category name is required")
        self._category_names = list(category_names)
        self._known = set(category_names)
        self._default_daily_budget = default_daily_budget
        self._clock = clock
        self._seen_ids: set[str] = set()
        self.issues: list[ValidationIssue] = []

    @property
    def fallback_category(self) -> str:
        return self._category_names[0]

    def _note(
        self,
        field: str,
        issue_type: str,
        message: str,
        suggested_fix: Optional[str] = None,
        severity: str = "info",
    ) -> None:
        self.issues.append(ValidationIssue(
            field=field,
            issue_type=issue_type,
            message=message,
            severity=severity,
            suggested_fix=suggested_fix,
        ))

    # -------------------------------------------------------------------------
    # Fields
    # -------------------------------------------------------------------------

    def _id(self, raw: Any, where: str) -> str:
        if isinstance(raw, str) and raw.strip():
            candidate = raw.strip()
            if candidate not in self._seen_ids:
                self._seen_ids.add(candidate)
                return candidate
            self._note(f"{where}.id", "duplicate", f"Duplicate id {candidate!r}", "generated a new id")
        else:
            self._note(f"{where}.id", "missing", "Missing or invalid id", "generated a new id")
        generated = new_id()
        self._seen_ids.add(generated)
        return generated

    def _title(self, raw: Any, where: str) -> str:
        title = raw.strip() if isinstance(raw, str) else ""
        if not title:
            self._note(f"{where}.title", "missing", "Missing title", f"used {PLACEHOLDER_TITLE!r}")
            return PLACEHOLDER_TITLE
        if len(title) > TITLE_MAX_LENGTH:
            self._note(f"{where}.title", "too_long", "Title too long", f"truncated to {TITLE_MAX_LENGTH} characters")
            return title[:TITLE_MAX_LENGTH]
        return title

    def _amount(self, raw: Any, where: str) -> Decimal:
        amount = parse_amount(raw)
        if amount is None or amount < 0:
            self._note(f"{where}.amount", "invalid_value", f"Invalid amount {raw!r}", "used 0")
            return Decimal("0")
        return amount

    def _instant(self, raw: Any, field: str) -> datetime:
        parsed = parse_instant(raw)
        if parsed is None:
            self._note(field, "invalid_value", f"Invalid instant {raw!r}", "used the current time")
            return self._clock()
        return parsed

    def _category(self, raw: Any, where: str) -> str:
        name = raw.strip() if isinstance(raw, str) else ""
        if name in self._known:
            return name
        self._note(
            f"{where}.category",
            "unknown_category" if name else "missing",
            f"Unknown category {name!r}" if name else "Missing category",
            f"used {self.fallback_category!r}",
        )
        return self.fallback_category

    # -------------------------------------------------------------------------
    # Records
    # -------------------------------------------------------------------------

    def _expense_fields(self, raw: dict, where: str) -> dict:
        timestamp_raw = raw.get("ts", raw.get("timestamp"))
        return {
            "id": self._id(raw.get("id"), where),
            "title": self._title(raw.get("title"), where),
            "amount": self._amount(raw.get("amount"), where),
            "timestamp": self._instant(timestamp_raw, f"{where}.ts"),
            "category": self._category(raw.get("category"), where),
        }

    def expense(self, raw: Any, where: str) -> Optional[Expense]:
        if not isinstance(raw, dict):
            self._note(where, "skipped_row", "Entry is not an object", severity="warning")
            return None
        return Expense(**self._expense_fields(raw, where))

    def trashed_expense(self, raw: Any, where: str) -> Optional[TrashedExpense]:
        if not isinstance(raw, dict):
            self._note(where, "skipped_row", "Entry is not an object", severity="warning")
            return None
        fields = self._expense_fields(raw, where)
        deleted_raw = raw.get("deletedAt", raw.get("deleted_at"))
        fields["deleted_at"] = self._instant(deleted_raw, f"{where}.deletedAt")
        return TrashedExpense(**fields)

    def expenses(self, raw: Any, section: str = "expenses") -> list[Expense]:
        if not isinstance(raw, list):
            return []
        records = (self.expense(item, f"{section}[{i}]") for i, item in enumerate(raw))
        return [record for record in records if record is not None]

    def trash(self, raw: Any, section: str = "trash") -> list[TrashedExpense]:
        if not isinstance(raw, list):
            return []
        records = (self.trashed_expense(item, f"{section}[{i}]") for i, item in enumerate(raw))
        return [record for record in records if record is not None]

    def settings(self, raw: Any) -> BudgetSettings:
        if raw is None:
            return BudgetSettings(daily_budget=self._default_daily_budget)
        if not isinstance(raw, dict):
            self._note("settings", "invalid_value", "Settings is not an object", "used defaults")
            return BudgetSettings(daily_budget=self._default_daily_budget)

        daily = parse_amount(raw.get("dailyBudget", raw.get("daily_budget")))
        if daily is None or daily <= 0:
            self._note(
                "settings.dailyBudget",
                "invalid_value",
                "Daily budget missing or not positive",
                f"used {self._default_daily_budget}",
            )
            daily = self._default_daily_budget

        monthly_raw = raw.get("monthlyBudget", raw.get("monthly_budget"))
        monthly = parse_amount(monthly_raw)
        if monthly is None:
            if monthly_raw not in (None, ""):
                self._note("settings.monthlyBudget", "invalid_value", f"Invalid monthly budget {monthly_raw!r}", "used 0")
            monthly = Decimal("0")
        elif monthly < 0:
            self._note("settings.monthlyBudget", "invalid_value", "Monthly budget is negative", "used 0")
            monthly = Decimal("0")

        return BudgetSettings(daily_budget=daily, monthly_budget=monthly)


def normalize_categories(raw: Any) -> tuple[list[Category], list[ValidationIssue]]:
    """
    Parse a stored category list.

    Entries without a usable name and repeated names are dropped.
    An empty result means "use the defaults".
    """
    issues: list[ValidationIssue] = []
    if not isinstance(raw, list):
        return [], issues

    categories: list[Category] = []
    seen: set[str] = set()
    for i, item in enumerate(raw):
        name = item.get("name") if isinstance(item, dict) else None
        name = name.strip() if isinstance(name, str) else ""
        if not name or name in seen or len(name) > 50:
            issues.append(ValidationIssue(
                field=f"categories[{i}]",
                issue_type="skipped_row",
                message=f"Unusable category entry {item!r}",
                severity="warning",
            ))
            continue
        color = item.get("color")
        seen.add(name)
        categories.append(Category(
            name=name,
            color=color if isinstance(color, str) and color.strip() else DEFAULT_CATEGORY_COLOR,
        ))
    return categories, issues
