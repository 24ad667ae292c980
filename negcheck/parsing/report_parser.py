"""Lenient parser for negative-news due-diligence report text.

Reports are human-formatted, not a grammar. What we rely on:
- Each finding starts on an "item head" line: a sequence number followed by a
  short category code, e.g. ``3. BR Acme Holdings`` or ``12) EX1``.
- A line equal to a category name (``Fraud``, ``money laundering``) is a section
  header.
- Entity, title and URL follow the head within a few lines, sometimes labelled
  (``Title:``, ``URL:``, ``Link``), sometimes not.

The parser is a set of pure functions over an immutable tuple of lines; every
helper receives the index it starts from and never mutates shared state.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, FrozenSet, Iterable, Iterator, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union

from negcheck.parsing.record_types import UNKNOWN_ENTITY, RawRecord
from negcheck.rules.keyword_rules import CATEGORY_ORDER, Category, category_for_code


logger = logging.getLogger(__name__)

ENTITY_LOOKAHEAD = 5
FIELD_SCAN_WINDOW = 30

_ITEM_HEAD = re.compile(r"^\s*(\d+)\s*[.)-]?\s*([A-Za-z0-9]{2,3})\b(?:\s+(.*))?$")
_LABEL = re.compile(
    r"^(?:\d+\.\s*)?(?:title|url|link|description|finding|comment|co\s*clarification)\b", re.IGNORECASE
)
_NON_DATA_LABEL = re.compile(r"^(?:\d+\.\s*)?(?:finding|comment|co\s*clarification)\b", re.IGNORECASE)
_TITLE_LABEL = re.compile(r"^(?:\d+\.\s*)?title\b[:\-\s]*(.*)$", re.IGNORECASE)
_URL_LABEL = re.compile(r"^(?:\d+\.\s*)?(?:url|link)\b[:\-\s]*(https?://\S+)", re.IGNORECASE)
_BARE_URL = re.compile(r"https?://\S+", re.IGNORECASE)
_URL_TRAILING_JUNK = ".,;:'\"<>"

# Section headers are exact, case-insensitive category names.
_CATEGORY_HEADERS: Dict[str, Category] = {c.value.lower(): c for c in Category}


class ParseResult(NamedTuple):
    records: List[RawRecord]
    counts: Dict[str, int]


class ItemHead(NamedTuple):
    code: str
    rest: str


def normalize_report_text(raw: Optional[str]) -> str:
    """Flatten tabs / NBSP, collapse runs of spaces and drop carriage returns."""
    text = (raw or "").replace("\r", "")
    text = text.replace("\t", " ").replace("\u00a0", " ")
    return re.sub(r" {2,}", " ", text)


def split_report_lines(raw: Optional[str]) -> Tuple[str, ...]:
    return tuple(normalize_report_text(raw).split("\n"))


def match_item_head(line: str) -> Optional[ItemHead]:
    """Return the head's code and trailing text if `line` introduces a known item.

    Clarification heads ("CO") and codes outside the category table are not items.
    """
    m = _ITEM_HEAD.match(line)
    if not m:
        return None
    code = m.group(2).upper()
    if category_for_code(code) is None:
        return None
    return ItemHead(code=code, rest=(m.group(3) or "").strip())


def is_label(line: str) -> bool:
    return bool(_LABEL.match(line))


def _is_boundary(line: str, headers: Mapping[str, Category]) -> bool:
    return line.lower() in headers or match_item_head(line) is not None


def _clean_url(url: str) -> str:
    url = url.strip()
    while url and (url[-1] in _URL_TRAILING_JUNK or (url[-1] == ")" and url.count("(") < url.count(")"))):
        url = url[:-1]
    return url


def read_entity(
    lines: Sequence[str],
    start: int,
    headers: Mapping[str, Category],
) -> Tuple[str, Optional[int]]:
    """Look ahead from `start` for the first line that can name the entity.

    Returns (entity, index of the consumed line) or ("", None).
    """
    for j in range(start, min(len(lines), start + ENTITY_LOOKAHEAD)):
        line = lines[j].strip()
        if not line:
            continue
        if _is_boundary(line, headers):
            break
        if is_label(line) or _BARE_URL.match(line):
            continue
        return line, j
    return "", None


def _window(lines: Sequence[str], start: int, *, skip: Optional[int], lead: str) -> Iterator[str]:
    if lead:
        yield lead
    for j in range(start, min(len(lines), start + FIELD_SCAN_WINDOW)):
        if j == skip:
            continue
        yield lines[j].strip()


def read_title_and_url(
    lines: Sequence[str],
    start: int,
    headers: Mapping[str, Category],
    *,
    skip: Optional[int] = None,
    lead: str = "",
) -> Tuple[str, str]:
    """Collect the first title and URL found after an item head.

    `skip` is the index of a line already consumed as the entity; `lead` is
    labelled text that trailed the head itself. Stops at the next item head or
    category header.
    """
    title = ""
    url = ""
    title_pending = False
    for line in _window(lines, start, skip=skip, lead=lead):
        if not line:
            continue
        if _is_boundary(line, headers):
            break
        if _NON_DATA_LABEL.match(line):
            continue

        m = _TITLE_LABEL.match(line)
        if m:
            value = m.group(1).strip()
            if value and not title:
                title = value
            title_pending = not title
        elif title_pending and not is_label(line) and not _BARE_URL.match(line):
            title = line
            title_pending = False
        elif not url:
            labelled = _URL_LABEL.match(line)
            bare = None if labelled else _BARE_URL.search(line)
            if labelled:
                url = _clean_url(labelled.group(1))
            elif bare:
                url = _clean_url(bare.group(0))

        if title and url:
            break
    return title, url


def _allowed_categories(categories: Optional[Iterable[Union[str, Category]]]) -> FrozenSet[Category]:
    if categories is None:
        return frozenset(Category)
    out = set()
    for c in categories:
        cat = c if isinstance(c, Category) else Category.from_name(str(c))
        if cat is not None:
            out.add(cat)
    return frozenset(out)


def parse_report_entries(
    text: Optional[str],
    categories: Optional[Iterable[Union[str, Category]]] = None,
) -> ParseResult:
    """Recover (category, entity, title, url) records from report text.

    Records keep the document's line order. Malformed input yields fewer records,
    never an exception. `counts` has one entry per allowed category.
    """
    allowed = _allowed_categories(categories)
    headers = _CATEGORY_HEADERS
    lines = split_report_lines(text)

    records: List[RawRecord] = []
    section: Optional[Category] = None
    for i, raw_line in enumerate(lines):
        line = raw_line.strip()
        if not line:
            continue

        header = headers.get(line.lower())
        if header is not None:
            section = header
            continue

        head = match_item_head(line)
        if head is None:
            continue
        category = category_for_code(head.code) or section
        if category is None or category not in allowed:
            continue

        entity = head.rest
        lead = ""
        entity_index: Optional[int] = None
        if not entity or is_label(entity) or _BARE_URL.match(entity):
            lead = entity
            entity, entity_index = read_entity(lines, i + 1, headers)
        entity = entity or UNKNOWN_ENTITY

        title, url = read_title_and_url(lines, i + 1, headers, skip=entity_index, lead=lead)
        if not title and not url:
            logger.debug("dropping item at line %d (%s): no title or url", i + 1, head.code)
            continue
        records.append(RawRecord(category=category, entity=entity, title=title, url=url))

    counts = {c.value: 0 for c in CATEGORY_ORDER if c in allowed}
    for rec in records:
        counts[rec.category.value] += 1
    logger.debug("parsed %d records: %s", len(records), counts)
    return ParseResult(records=records, counts=counts)
