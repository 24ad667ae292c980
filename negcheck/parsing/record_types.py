"""Shared record types for parsed and verified report entries."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

from negcheck.rules.keyword_rules import Category


UNKNOWN_ENTITY = "Unknown"


class Finding(str, Enum):
    YES = "Yes"
    NO = "No"


@dataclass(frozen=True)
class RawRecord:
    """One finding recovered from the report text (pre-verification).

    At least one of `title` / `url` is non-empty for every record the parser emits.
    """

    category: Category
    entity: str = UNKNOWN_ENTITY
    title: str = ""
    url: str = ""

    def verified(self, finding: Finding, note: str) -> "VerifiedRecord":
        return VerifiedRecord(
            category=self.category,
            entity=self.entity,
            title=self.title,
            url=self.url,
            finding=finding,
            note=note,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "entity": self.entity,
            "title": self.title,
            "url": self.url,
        }


@dataclass(frozen=True)
class VerifiedRecord:
    category: Category
    entity: str
    title: str
    url: str
    finding: Finding
    note: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "entity": self.entity,
            "title": self.title,
            "url": self.url,
            "finding": self.finding.value,
            "note": self.note,
        }
