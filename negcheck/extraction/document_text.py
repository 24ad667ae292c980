"""Raw text from uploaded report documents (PDF / DOCX).

The reader is picked from the declared MIME type or the file extension; if that
fails (or the type is unknown) both readers are tried in turn.
"""

from __future__ import annotations

import logging
import os
from typing import Callable, List, Optional

import docx
from docx.table import Table
from pypdf import PdfReader


logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class UnreadableDocumentError(ValueError):
    """Neither reader could get text out of the document."""


def extract_pdf_text(path: str) -> str:
    reader = PdfReader(path)
    pages: List[str] = []
    for page in reader.pages:
        pages.append(page.extract_text() or "")
    return "\n".join(pages).replace("\r", "")


def _table_lines(table) -> List[str]:
    lines: List[str] = []
    for row in table.rows:
        prev = None
        for cell in row.cells:
            # Merged cells repeat the same cell object across the row.
            if cell._tc is prev:
                continue
            prev = cell._tc
            lines.extend(cell.text.split("\n"))
    return lines


def extract_docx_text(path: str) -> str:
    document = docx.Document(path)
    lines: List[str] = []
    for block in document.iter_inner_content():
        if isinstance(block, Table):
            lines.extend(_table_lines(block))
        else:
            lines.append(block.text)
    return "\n".join(lines).replace("\r", "")


def _primary_reader(mimetype: Optional[str], filename: Optional[str]) -> Optional[Callable[[str], str]]:
    lower = (filename or "").lower()
    if mimetype == PDF_MIME or lower.endswith(".pdf"):
        return extract_pdf_text
    if mimetype == DOCX_MIME or lower.endswith(".docx"):
        return extract_docx_text
    return None


def extract_text(path: str, mimetype: Optional[str] = None, filename: Optional[str] = None) -> str:
    """Return the document's raw text or raise UnreadableDocumentError."""
    if not path or not os.path.isfile(path):
        raise UnreadableDocumentError("Unsupported or unreadable file type")
    primary = _primary_reader(mimetype, filename)
    if primary is not None:
        try:
            return primary(path)
        except Exception as e:
            logger.warning("Primary read failed, trying fallback: %s", e)

    for reader in (extract_pdf_text, extract_docx_text):
        if reader is primary:
            continue
        try:
            return reader(path)
        except Exception as e:
            logger.debug("%s failed for %s: %s", reader.__name__, filename or path, e)
    raise UnreadableDocumentError("Unsupported or unreadable file type")
