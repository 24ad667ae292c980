"""Keyword categories and their detection patterns.

Every negative-news finding in a report belongs to exactly one of eight
categories. Each category carries:
- a short item code used by report authors ("BR", "ML", ...)
- a compiled pattern describing the vocabulary that counts as a hit on a page

The pattern table is checked against the enum at import time, so adding a
category without a pattern (or the other way round) fails loudly.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Dict, Mapping, Optional, Pattern


class Category(str, Enum):
    MONEY_LAUNDERING = "Money Laundering"
    BRIBE = "Bribe"
    CORRUPT = "Corrupt"
    FRAUD = "Fraud"
    LITIGATION = "Litigation"
    ABUSE = "Abuse"
    CARTEL = "Cartel"
    ANTITRUST = "Antitrust"

    @classmethod
    def from_name(cls, name: Optional[str]) -> Optional["Category"]:
        """Case-insensitive exact lookup by display name."""
        key = (name or "").strip().lower()
        for cat in cls:
            if cat.value.lower() == key:
                return cat
        return None


# Report order; summary rows and workbook sheets follow it.
CATEGORY_ORDER = tuple(Category)


CODE_TO_CATEGORY: Dict[str, Category] = {
    "ML": Category.MONEY_LAUNDERING,
    "BR": Category.BRIBE,
    "CR": Category.CORRUPT,
    "FR": Category.FRAUD,
    "LI": Category.LITIGATION,
    "AB": Category.ABUSE,
    "CA": Category.CARTEL,
    "EX1": Category.ANTITRUST,
}

# "CO" heads clarification notes in reports; it is never an item.
CLARIFICATION_CODE = "CO"


_FLAGS = re.IGNORECASE

# Stems take any suffix ("fraudsters", "launderers"); short words stay whole.
KEYWORD_RULES: Mapping[Category, Pattern[str]] = {
    Category.MONEY_LAUNDERING: re.compile(
        r"\b(?:launder\w*|anti[-\s]?money[-\s]?laundering|aml\b)", _FLAGS
    ),
    Category.BRIBE: re.compile(
        r"\b(?:brib\w*|kickback\w*|pay[-\s]?offs?\b|gratification\w*)", _FLAGS
    ),
    Category.CORRUPT: re.compile(
        r"\b(?:corrupt\w*|malfeasance|graft\b)", _FLAGS
    ),
    Category.FRAUD: re.compile(
        r"\b(?:fraud\w*|scam(?:s|med|mers?|ming)?\b|false\s*claims?\b|decept(?:ion|ive)\w*)", _FLAGS
    ),
    Category.LITIGATION: re.compile(
        r"\b(?:lawsuits?|sue[sd]?|suing|filed|complaints?|settlements?|consent\s*decrees?|charged?)\b", _FLAGS
    ),
    Category.ABUSE: re.compile(
        r"\b(?:abus\w*|harass\w*|misconduct\w*|bull(?:y|ied|ies|ying)\b|assault\w*)", _FLAGS
    ),
    Category.CARTEL: re.compile(
        r"\b(?:cartel\w*|price[-\s]?fix\w*|bid[-\s]?rigg\w*|rigg(?:ing|ed)\b|collu(?:sion|sive|de|ded|ding)\b)", _FLAGS
    ),
    Category.ANTITRUST: re.compile(
        r"\b(?:anti[-\s]?trust\w*|competition\s*law\w*|monopol\w*|restraint\s*of\s*trade)", _FLAGS
    ),
}


def _check_exhaustive() -> None:
    missing = [c.value for c in Category if c not in KEYWORD_RULES]
    unmapped = [c.value for c in Category if c not in CODE_TO_CATEGORY.values()]
    if missing or unmapped:
        raise RuntimeError(f"keyword rules incomplete: missing patterns={missing} missing codes={unmapped}")


_check_exhaustive()


def category_for_code(code: str) -> Optional[Category]:
    c = (code or "").strip().upper()
    if not c or c == CLARIFICATION_CODE:
        return None
    return CODE_TO_CATEGORY.get(c)
