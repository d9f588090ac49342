"""
Input Validation for ledger writes

DESIGN DECISION: Validation happens BEFORE any state changes.
A rejected add/edit/category operation raises ValidationError and
leaves the ledger exactly as it was, so every aggregate the UI has
already rendered stays correct.

Amounts are parsed leniently (the UI hands us form strings such as
"¥12.50"), but the minimum of 1 currency unit is strict.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from spendbook.errors import ValidationError
from spendbook.models.expense import MIN_EXPENSE_AMOUNT, PLACEHOLDER_TITLE


ModelT = TypeVar("ModelT", bound=BaseModel)

_NON_NUMERIC = re.compile(r"[^0-9.\-]")

# Largest accepted amount is just under 10**15.
MAX_AMOUNT_DIGITS = 14


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Parse an amount from a number or a loosely formatted string.

    Currency symbols, thousands separators and spaces are ignored.
    Returns None when nothing numeric is left, or when the value is
    too large to keep to whole cents.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return _within_bounds(value)
    if isinstance(value, (int, float)):
        try:
            parsed = Decimal(str(value))
        except InvalidOperation:
            return None
        return _within_bounds(parsed)

    cleaned = _NON_NUMERIC.sub("", str(value))
    if not cleaned:
        return None
    try:
        parsed = Decimal(cleaned)
    except InvalidOperation:
        return None
    return _within_bounds(parsed)


def _within_bounds(parsed: Decimal) -> Optional[Decimal]:
    if not parsed.is_finite() or parsed.adjusted() > MAX_AMOUNT_DIGITS:
        return None
    return parsed


def require_amount(value: Any) -> Decimal:
    """Parse an amount and enforce the minimum of one currency unit."""
    amount = parse_amount(value)
    if amount is None:
        raise ValidationError(f"Amount is not a number: {value!r}", field="amount")
    if amount < MIN_EXPENSE_AMOUNT:
        raise ValidationError(
            f"Amount must be at least {MIN_EXPENSE_AMOUNT} (got {amount})",
            field="amount",
        )
    return amount


def clean_title(title: Optional[str], allow_placeholder: bool = True) -> str:
    """
    Strip a title.

    New expenses fall back to the placeholder title; edits must keep
    a real one (allow_placeholder=False).
    """
    cleaned = (title or "").strip()
    if cleaned:
        return cleaned
    if allow_placeholder:
        return PLACEHOLDER_TITLE
    raise ValidationError("Title must not be empty", field="title")


def clean_category_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Category name must not be empty", field="name")
    return cleaned


def build_model(model_cls: type[ModelT], **data: Any) -> ModelT:
    """
    Construct a model, reporting schema failures as ValidationError.

    Keeps pydantic's exception type from leaking out of the ledger API.
    """
    try:
        return model_cls(**data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        raise ValidationError(f"{field or model_cls.__name__}: {first.get('msg')}", field=field) from e
