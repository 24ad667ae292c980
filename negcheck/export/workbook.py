"""Spreadsheet export of verified records.

One sheet per category (always all eight, in report order). Rows are sorted by
entity then title; rows whose finding is "Yes" are highlighted.
"""

from __future__ import annotations

import io
import os
import re
from typing import List, Optional, Sequence

import pandas as pd
from openpyxl.formatting.rule import FormulaRule
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from negcheck.parsing.record_types import UNKNOWN_ENTITY, VerifiedRecord
from negcheck.rules.keyword_rules import CATEGORY_ORDER, Category


COLUMNS = ["No.", "Entity", "URL", "Title", "Finding", "Note"]
COLUMN_WIDTHS = [6, 28, 50, 60, 12, 60]
WRAP_COLUMNS = ("C", "D", "F")
HIGHLIGHT_ROWS = 2000

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_THIN = Side(style="thin", color="FFD1D5DB")
_BORDER = Border(top=_THIN, left=_THIN, bottom=_THIN, right=_THIN)
_YES_FILL = PatternFill(fill_type="solid", start_color="FFFFC7CE", end_color="FFFFC7CE")
_NOTE_FILL = PatternFill(fill_type="solid", start_color="FFFFF2CC", end_color="FFFFF2CC")


def _category_frame(records: Sequence[VerifiedRecord], category: Category) -> pd.DataFrame:
    rows = sorted(
        (r for r in records if r.category == category),
        key=lambda r: ((r.entity or "").lower(), (r.title or "").lower()),
    )
    data: List[list] = [
        [i, r.entity or UNKNOWN_ENTITY, r.url or "", r.title or "", r.finding.value, r.note or ""]
        for i, r in enumerate(rows, 1)
    ]
    return pd.DataFrame(data, columns=COLUMNS)


def _style_sheet(ws, n_rows: int) -> None:
    ws.freeze_panes = "A2"
    ws.auto_filter.ref = "A1:F1"
    for idx, width in enumerate(COLUMN_WIDTHS):
        ws.column_dimensions[chr(ord("A") + idx)].width = width
    for cell in ws[1]:
        cell.font = Font(bold=True)
        cell.alignment = Alignment(vertical="center", horizontal="center", wrap_text=True)

    for row in ws.iter_rows(min_row=1, max_row=n_rows + 1, max_col=len(COLUMNS)):
        for cell in row:
            cell.border = _BORDER
    for r in range(2, n_rows + 2):
        for col in WRAP_COLUMNS:
            ws[f"{col}{r}"].alignment = Alignment(wrap_text=True, vertical="top")

    last = max(HIGHLIGHT_ROWS, n_rows + 1)
    ws.conditional_formatting.add(f"E2:E{last}", FormulaRule(formula=['EXACT($E2,"Yes")'], fill=_YES_FILL))
    ws.conditional_formatting.add(f"F2:F{last}", FormulaRule(formula=['EXACT($E2,"Yes")'], fill=_NOTE_FILL))


def render_workbook(records: Sequence[VerifiedRecord], report_name: Optional[str] = None) -> bytes:
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        for category in CATEGORY_ORDER:
            frame = _category_frame(records, category)
            frame.to_excel(writer, sheet_name=category.value, index=False)
            _style_sheet(writer.sheets[category.value], len(frame))
        if report_name:
            writer.book.properties.title = report_name
    return buf.getvalue()


def export_filename(original_name: Optional[str]) -> str:
    stem = os.path.splitext(os.path.basename(original_name or ""))[0].strip() or "report"
    return re.sub(r"\s+", "_", stem) + "_Check.xlsx"
