"""
Tabular Export / Import (SpreadsheetML 2003)

The tabular artefact is an Excel 2003 XML workbook with one worksheet:

    日期 | 标题 | 分类 | 金额 | 记录时间      <- header
    one detail row per expense, oldest first
    (blank row)
    汇总 | 日期 | 条目 | 金额 |              <- summary header
    汇总 | 2024-03-01 | 2 条 | 15.00          <- one row per day
    汇总 | 总计 | 2 条 | 15.00                <- grand total

Import reads the header row, locates the 日期 and 金额 columns (标题 and
分类 are optional) and keeps every row with a YYYY-MM-DD date and a
positive amount. Summary rows fail the date check and are skipped.
"""

import re
import xml.etree.ElementTree as ET
from collections import OrderedDict
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional, Union
from xml.sax.saxutils import escape, quoteattr

from spendbook.errors import FormatError, ValidationError
from spendbook.models.expense import (
    PLACEHOLDER_TITLE,
    Expense,
    ValidationIssue,
)
from spendbook.queries import aggregates
from spendbook.transfer.merge import ImportBatch
from spendbook.validation.validator import parse_amount


SPREADSHEET_NS = "urn:schemas-microsoft-com:office:spreadsheet"
WORKSHEET_NAME = "消费明细"

HEADER_DATE = "日期"
HEADER_TITLE = "标题"
HEADER_CATEGORY = "分类"
HEADER_AMOUNT = "金额"
HEADER_RECORDED = "记录时间"
DETAIL_HEADERS = (HEADER_DATE, HEADER_TITLE, HEADER_CATEGORY, HEADER_AMOUNT, HEADER_RECORDED)

SUMMARY_LABEL = "汇总"
TOTAL_LABEL = "总计"

IMPORT_BASE_TIME = time(12, 0)

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# (type, value) where type is "String" or "Number"
Cell = tuple[str, str]


def _text(value: str) -> Cell:
    return ("String", value)


def _number(value: Decimal) -> Cell:
    return ("Number", str(value))


def _count_label(count: int) -> str:
    return f"{count} 条"


# =============================================================================
# EXPORT
# =============================================================================

def build_rows(expenses: list[Expense], start: aggregates.DateLike, end: aggregates.DateLike) -> list[list[Cell]]:
    """
    Lay out the worksheet rows for expenses within [start, end].

    Raises:
        ValidationError: If the range is inverted or holds no expenses
    """
    if aggregates.as_date(start) > aggregates.as_date(end):
        raise ValidationError("Export range start is after its end", field="range")

    selected = sorted(aggregates.filter_by_range(expenses, start, end), key=lambda e: e.timestamp)
    if not selected:
        raise ValidationError("No expenses in the selected range", field="range")

    rows: list[list[Cell]] = [[_text(h) for h in DETAIL_HEADERS]]
    per_day: "OrderedDict[date, list[Expense]]" = OrderedDict()
    for expense in selected:
        rows.append([
            _text(expense.timestamp.date().isoformat()),
            _text(expense.title),
            _text(expense.category),
            _number(expense.amount),
            _text(expense.timestamp.strftime("%Y-%m-%d %H:%M:%S")),
        ])
        per_day.setdefault(expense.timestamp.date(), []).append(expense)

    rows.append([])
    rows.append([_text(SUMMARY_LABEL), _text(HEADER_DATE), _text("条目"), _text(HEADER_AMOUNT), _text("")])
    for day, items in per_day.items():
        rows.append([
            _text(SUMMARY_LABEL),
            _text(day.isoformat()),
            _text(_count_label(len(items))),
            _number(aggregates.total_amount(items)),
        ])
    rows.append([
        _text(SUMMARY_LABEL),
        _text(TOTAL_LABEL),
        _text(_count_label(len(selected))),
        _number(aggregates.total_amount(selected)),
    ])
    return rows


def render_workbook(rows: list[list[Cell]], sheet_name: str = WORKSHEET_NAME) -> str:
    """Serialize rows into a SpreadsheetML 2003 document."""
    lines = [
        '<?xml version="1.0"?>',
        '<?mso-application progid="Excel.Sheet"?>',
        f'<Workbook xmlns="{SPREADSHEET_NS}" xmlns:ss="{SPREADSHEET_NS}">',
        f"<Worksheet ss:Name={quoteattr(sheet_name)}>",
        "<Table>",
    ]
    for row in rows:
        cells = "".join(
            f'<Cell><Data ss:Type="{cell_type}">{escape(value)}</Data></Cell>'
            for cell_type, value in row
        )
        lines.append(f"<Row>{cells}</Row>")
    lines.extend(["</Table>", "</Worksheet>", "</Workbook>"])
    return "\n".join(lines)


def export_tabular(expenses: list[Expense], start: aggregates.DateLike, end: aggregates.DateLike) -> str:
    return render_workbook(build_rows(expenses, start, end))


# =============================================================================
# IMPORT
# =============================================================================

def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def read_rows(raw: Union[str, bytes]) -> list[list[str]]:
    """
    Extract the cell text of every Row element, in document order.

    Raises:
        FormatError: If the payload is not well-formed XML
    """
    try:
        root = ET.fromstring(raw)
    except ET.ParseError as e:
        raise FormatError(f"Workbook is not valid XML: {e}") from e

    rows = []
    for element in root.iter():
        if _local_name(element.tag) != "Row":
            continue
        values = []
        for cell in element:
            if _local_name(cell.tag) != "Cell":
                continue
            data = next((child for child in cell if _local_name(child.tag) == "Data"), None)
            values.append("".join(data.itertext()).strip() if data is not None else "")
        rows.append(values)
    return rows


def _column(header: list[str], name: str) -> Optional[int]:
    return header.index(name) if name in header else None


def _cell(row: list[str], index: Optional[int]) -> str:
    if index is None or index >= len(row):
        return ""
    return row[index]


def _parse_day(value: str) -> Optional[date]:
    if not _DATE_PATTERN.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def parse_tabular(raw: Union[str, bytes], category_names: list[str]) -> ImportBatch:
    """
    Parse a SpreadsheetML workbook into an import batch.

    Rows for the same date get timestamps at 12:00 plus their ordinal
    in minutes and milliseconds, so they stay distinct and keep file
    order.

    Raises:
        FormatError: If the XML does not parse
        ValidationError: If there are no data rows, the date or amount
                         column is missing, or no row is usable
    """
    if not category_names:
        raise ValidationError("At least one category is required", field="categories")

    rows = read_rows(raw)
    if len(rows) <= 1:
        raise ValidationError("Workbook has no data rows", field="rows")

    header = rows[0]
    date_col = _column(header, HEADER_DATE)
    amount_col = _column(header, HEADER_AMOUNT)
    title_col = _column(header, HEADER_TITLE)
    category_col = _column(header, HEADER_CATEGORY)
    if date_col is None or amount_col is None:
        raise ValidationError(
            f"Workbook needs both a {HEADER_DATE} and a {HEADER_AMOUNT} column",
            field="header",
        )

    known = set(category_names)
    fallback = category_names[0]
    issues: list[ValidationIssue] = []
    grouped: "OrderedDict[date, list[tuple[str, Decimal, str]]]" = OrderedDict()

    for number, row in enumerate(rows[1:], start=2):
        if not any(row):
            continue
        where = f"rows[{number}]"
        day = _parse_day(_cell(row, date_col))
        amount = parse_amount(_cell(row, amount_col))
        if day is None or amount is None or amount <= 0:
            issues.append(ValidationIssue(
                field=where,
                issue_type="skipped_row",
                message="Row has no valid date or positive amount",
                severity="info",
            ))
            continue

        title = _cell(row, title_col) or PLACEHOLDER_TITLE
        category = _cell(row, category_col)
        if category not in known:
            issues.append(ValidationIssue(
                field=f"{where}.category",
                issue_type="unknown_category" if category else "missing",
                message=f"Unknown category {category!r}" if category else "Missing category",
                severity="info",
                suggested_fix=f"used {fallback!r}",
            ))
            category = fallback
        grouped.setdefault(day, []).append((title, amount, category))

    if not grouped:
        raise ValidationError("No valid expense rows in workbook", field="rows")

    expenses = []
    for day in sorted(grouped):
        base = datetime.combine(day, IMPORT_BASE_TIME)
        for ordinal, (title, amount, category) in enumerate(grouped[day]):
            expenses.append(Expense(
                title=title[:200],
                amount=amount,
                timestamp=base + timedelta(minutes=ordinal, milliseconds=ordinal),
                category=category,
            ))

    return ImportBatch(source_format="tabular", expenses=expenses, issues=issues)
