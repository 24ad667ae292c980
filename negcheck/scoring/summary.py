"""Per-category summary with a title-only negative heuristic.

Needs no network. A title counts as negative only when it carries an
enforcement or litigation cue, or an offence word followed by an
investigation word.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Protocol

from negcheck.rules.keyword_rules import CATEGORY_ORDER, Category


# -----------------------------
# Title cues
# -----------------------------
NEGATIVE_TITLE_PATTERNS = [
    re.compile(
        r"\b(?:indict(?:ed|ment)?|charged?|sued?|convict(?:ed|ion)?|plead(?:ed)?\s+guilty|arrest(?:ed)?|fined|penalt(?:y|ies)|sanction(?:ed)?)\b",
        re.IGNORECASE,
    ),
    re.compile(r"\b(?:class\s+action|lawsuit|settlement)\b", re.IGNORECASE),
    re.compile(
        r"\b(?:bribe(?:ry)?|kickback|corrupt(?:ion)?|fraud|money\s+launder(?:ing|ed)|cartel|antitrust)\b"
        r".*\b(?:case|probe|investigation|alleg(?:ation|e|ed))\b",
        re.IGNORECASE,
    ),
]


def is_negative_title(title: Optional[str]) -> bool:
    t = (title or "").strip()
    if not t:
        return False
    return any(p.search(t) for p in NEGATIVE_TITLE_PATTERNS)


class _HasTitleAndUrl(Protocol):
    category: Category
    title: str
    url: str


@dataclass(frozen=True)
class SummaryRow:
    category: Category
    total: int
    negative: int

    def to_dict(self) -> Dict[str, Any]:
        return {"category": self.category.value, "total": self.total, "negative": self.negative}


@dataclass(frozen=True)
class Summary:
    rows: List[SummaryRow]
    total: int
    negative: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": [r.to_dict() for r in self.rows],
            "totals": {"total": self.total, "negative": self.negative},
        }


def build_summary(records: Iterable[_HasTitleAndUrl]) -> Summary:
    """One row per category (fixed order), counting records that carry a URL."""
    totals = {c: 0 for c in CATEGORY_ORDER}
    negatives = {c: 0 for c in CATEGORY_ORDER}
    for rec in records:
        if rec.category not in totals or not rec.url:
            continue
        totals[rec.category] += 1
        if is_negative_title(rec.title):
            negatives[rec.category] += 1
    rows = [SummaryRow(category=c, total=totals[c], negative=negatives[c]) for c in CATEGORY_ORDER]
    return Summary(
        rows=rows,
        total=sum(r.total for r in rows),
        negative=sum(r.negative for r in rows),
    )
