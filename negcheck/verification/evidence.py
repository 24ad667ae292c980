"""Entity / keyword co-mention detection on page text.

Two passes:
1. A single paragraph that names the entity and matches the category pattern.
2. Only if (1) fails: the nearest entity and pattern hits in the whole page,
   accepted when they sit within a bounded character distance.
"""

from __future__ import annotations

import bisect
import re
from typing import List, Optional, Pattern, Tuple


EVIDENCE_PREFIX = "Evidence: "
PREVIEW_CHARS = 300
PROXIMITY_CHARS = 300
WINDOW_MARGIN = 40
SNIPPET_CHARS = 140
# Paragraphs longer than this are cut at sentence boundaries.
MAX_PARAGRAPH_CHARS = 1000

_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+(?=[\"'“(A-Z0-9])")

Span = Tuple[int, int]


def split_paragraphs(text: str) -> List[str]:
    out: List[str] = []
    for block in re.split(r"\n+", text or ""):
        block = block.strip()
        if not block:
            continue
        if len(block) <= MAX_PARAGRAPH_CHARS:
            out.append(block)
            continue
        out.extend(s.strip() for s in _SENTENCE_BREAK.split(block) if s.strip())
    return out


def entity_pattern(entity: str) -> Optional[Pattern[str]]:
    name = " ".join((entity or "").split())
    if not name:
        return None
    return re.compile(re.escape(name), re.IGNORECASE)


def _nearest_pair(a: List[Span], b: List[Span]) -> Optional[Tuple[Span, Span, int]]:
    """Closest (a, b) span pair by gap between them (0 when they overlap)."""
    if not a or not b:
        return None
    starts = [s for s, _ in b]
    best = None
    for sa in a:
        k = bisect.bisect_left(starts, sa[0])
        for idx in (k - 1, k):
            if 0 <= idx < len(b):
                sb = b[idx]
                gap = max(0, max(sa[0], sb[0]) - min(sa[1], sb[1]))
                if best is None or gap < best[2]:
                    best = (sa, sb, gap)
    return best


def _spans(pattern: Pattern[str], text: str) -> List[Span]:
    return [m.span() for m in pattern.finditer(text) if m.end() > m.start()]


def _clip(text: str, start: int, end: int) -> str:
    body = text[start:end].strip()
    if start > 0:
        body = "..." + body
    if end < len(text):
        body = body + "..."
    return body


def _excerpt(text: str, start: int, end: int) -> str:
    return EVIDENCE_PREFIX + _clip(text, start, end)


def _around(text: str, span: Span, width: int) -> Span:
    size = span[1] - span[0]
    width = max(width, size)
    start = max(0, min(span[0] - (width - size) // 2, len(text) - width))
    return start, min(len(text), start + width)


def _paragraph_excerpt(paragraph: str, ent: Span, kw: Span) -> str:
    if len(paragraph) <= PREVIEW_CHARS:
        return _excerpt(paragraph, 0, len(paragraph))
    lo = min(ent[0], kw[0])
    hi = max(ent[1], kw[1])
    if hi <= PREVIEW_CHARS:
        return _excerpt(paragraph, 0, PREVIEW_CHARS)
    if hi - lo <= PREVIEW_CHARS - WINDOW_MARGIN:
        start = max(0, hi - PREVIEW_CHARS + WINDOW_MARGIN)
        return _excerpt(paragraph, start, start + PREVIEW_CHARS)

    # Too far apart for one window: one snippet around each match.
    first, second = sorted((ent, kw))
    a = _around(paragraph, first, SNIPPET_CHARS)
    b = _around(paragraph, second, SNIPPET_CHARS)
    if b[0] <= a[1]:
        return _excerpt(paragraph, a[0], b[1])
    return EVIDENCE_PREFIX + _clip(paragraph, *a) + " " + _clip(paragraph, *b)


def find_evidence(page_text: str, entity: str, pattern: Pattern[str]) -> str:
    """Return an "Evidence: ..." excerpt, or "" when there is no co-mention."""
    ent_re = entity_pattern(entity)
    if ent_re is None or not page_text:
        return ""

    paragraphs = split_paragraphs(page_text)
    for p in paragraphs:
        pair = _nearest_pair(_spans(ent_re, p), _spans(pattern, p))
        if pair:
            return _paragraph_excerpt(p, pair[0], pair[1])

    joined = " ".join(paragraphs)
    pair = _nearest_pair(_spans(ent_re, joined), _spans(pattern, joined))
    if pair is None or pair[2] > PROXIMITY_CHARS:
        return ""
    ent, kw, _ = pair
    start = max(0, min(ent[0], kw[0]) - WINDOW_MARGIN)
    end = min(len(joined), max(ent[1], kw[1]) + WINDOW_MARGIN)
    return _excerpt(joined, start, end)
