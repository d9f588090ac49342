"""
Snapshot import/export.

Parsing produces an ImportBatch; apply_import commits it.
"""

from spendbook.transfer.json_snapshot import dumps, export_snapshot, parse_snapshot
from spendbook.transfer.merge import ImportBatch, apply_import
from spendbook.transfer.tabular import (
    DETAIL_HEADERS,
    SPREADSHEET_NS,
    build_rows,
    export_tabular,
    parse_tabular,
    read_rows,
    render_workbook,
)

__all__ = [
    "dumps",
    "export_snapshot",
    "parse_snapshot",
    "ImportBatch",
    "apply_import",
    "DETAIL_HEADERS",
    "SPREADSHEET_NS",
    "build_rows",
    "export_tabular",
    "parse_tabular",
    "read_rows",
    "render_workbook",
]
