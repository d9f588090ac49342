"""
JSON Snapshot Export / Import

Export produces one document:

    {"version": 1, "generatedAt": "...", "expenses": [...],
     "trash": [...], "settings": {...}, "categories": [...]}

Import accepts that document back. A payload that is not JSON is a
FormatError; a JSON value that is not an object, or an object with
neither an "expenses" nor a "trash" array, is a ValidationError.
Everything below that level is repaired by RecordNormalizer.
"""

import json
from datetime import datetime
from decimal import Decimal
from typing import Callable, Union

from spendbook.errors import FormatError, ValidationError
from spendbook.ledger.state import LedgerState
from spendbook.models.expense import SNAPSHOT_VERSION, Snapshot, ValidationIssue
from spendbook.transfer.merge import ImportBatch
from spendbook.validation.normalizer import RecordNormalizer, normalize_categories


def export_snapshot(
    state: LedgerState,
    clock: Callable[[], datetime] = datetime.now,
) -> Snapshot:
    """Capture the current state. Does not mutate anything."""
    return Snapshot(
        version=SNAPSHOT_VERSION,
        generated_at=clock(),
        expenses=list(state.expenses),
        trash=list(state.trash),
        settings=state.settings,
        categories=list(state.categories),
    )


def dumps(snapshot: Snapshot) -> str:
    return json.dumps(snapshot.to_document(), ensure_ascii=False, indent=2)


def _decode(raw: Union[str, bytes]) -> str:
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FormatError(f"Snapshot is not UTF-8 text: {e}") from e
    return raw.lstrip("\ufeff")


def parse_snapshot(
    raw: Union[str, bytes],
    category_names: list[str],
    default_daily_budget: Decimal,
    use_snapshot_categories: bool = True,
    clock: Callable[[], datetime] = datetime.now,
) -> ImportBatch:
    """
    Parse and normalize a JSON snapshot.

    Args:
        raw: Document text or bytes
        category_names: Current category names (fallback resolution)
        default_daily_budget: Substitute for an invalid daily budget
        use_snapshot_categories: Take the snapshot's own category list
            (when it has a usable one) as the registry to resolve
            against and to install on commit.

    Raises:
        FormatError: If the payload is not JSON
        ValidationError: If no minimally valid snapshot can be built
    """
    try:
        document = json.loads(_decode(raw))
    except json.JSONDecodeError as e:
        raise FormatError(f"Snapshot is not valid JSON: {e}") from e

    if not isinstance(document, dict):
        raise ValidationError("Snapshot must be a JSON object", field="snapshot")

    expenses_raw = document.get("expenses")
    trash_raw = document.get("trash")
    if not isinstance(expenses_raw, list) and not isinstance(trash_raw, list):
        raise ValidationError(
            "Snapshot has neither an 'expenses' nor a 'trash' array",
            field="snapshot",
        )

    issues: list[ValidationIssue] = []
    version = document.get("version")
    if isinstance(version, int) and not isinstance(version, bool) and version > SNAPSHOT_VERSION:
        issues.append(ValidationIssue(
            field="version",
            issue_type="newer_version",
            message=f"Snapshot version {version} is newer than {SNAPSHOT_VERSION}",
            severity="warning",
            suggested_fix="Unknown fields were ignored",
        ))

    categories = None
    names = category_names
    if use_snapshot_categories:
        parsed_categories, category_issues = normalize_categories(document.get("categories"))
        issues.extend(category_issues)
        if parsed_categories:
            categories = parsed_categories
            names = [c.name for c in parsed_categories]

    normalizer = RecordNormalizer(names, default_daily_budget, clock=clock)
    expenses = normalizer.expenses(expenses_raw) if isinstance(expenses_raw, list) else None
    trash = normalizer.trash(trash_raw) if isinstance(trash_raw, list) else None
    settings = normalizer.settings(document["settings"]) if "settings" in document else None
    issues.extend(normalizer.issues)

    return ImportBatch(
        source_format="json",
        expenses=expenses,
        trash=trash,
        settings=settings,
        categories=categories,
        issues=issues,
    )
