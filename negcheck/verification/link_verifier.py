"""Verify parsed records against the pages they link to.

Each record is checked independently on a fixed-size worker pool; results are
collected by input index, so output order always equals input order no matter
which fetch finishes first.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Mapping, Optional, Pattern, Sequence

from negcheck.extraction.page_fetch import PageFetcher
from negcheck.parsing.record_types import Finding, RawRecord, VerifiedRecord
from negcheck.rules.keyword_rules import KEYWORD_RULES, Category
from negcheck.verification.evidence import find_evidence


logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 2

NOTE_MISSING_INPUT = "Missing keyword or URL"
NOTE_FETCH_FAILED = "Fetch failed or non-HTML"
NOTE_NO_CO_MENTION = "No direct co-mention of entity & keyword."
NOTE_ANALYZER_ERROR = "Analyzer error"

# Notes that mean "we could not look", as opposed to "we looked and found nothing".
DEGRADED_NOTES = frozenset({NOTE_FETCH_FAILED, NOTE_ANALYZER_ERROR})

FetchFn = Callable[[str], str]
EvidenceFn = Callable[[str, str, Pattern[str]], str]


class VerificationShortfall(Exception):
    """Ends a verification step with finding=No and the given note."""

    def __init__(self, note: str):
        super().__init__(note)
        self.note = note


def run_guarded(step: Callable[[RawRecord], str], record: RawRecord) -> VerifiedRecord:
    """Run one fallible verification step for `record`.

    The step returns an evidence note for a positive finding. A
    VerificationShortfall becomes finding=No with its note; any other
    exception becomes finding=No with NOTE_ANALYZER_ERROR.
    """
    try:
        evidence = step(record)
    except VerificationShortfall as short:
        return record.verified(Finding.NO, short.note)
    except Exception:
        logger.exception("verification failed for %s | %s | %s", record.category.value, record.entity, record.url)
        return record.verified(Finding.NO, NOTE_ANALYZER_ERROR)
    return record.verified(Finding.YES, evidence)


class LinkVerifier:
    def __init__(
        self,
        fetch: Optional[FetchFn] = None,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
        evidence: EvidenceFn = find_evidence,
    ) -> None:
        self.fetch = fetch or PageFetcher()
        self.concurrency = max(1, int(concurrency))
        self.evidence = evidence

    def check(self, record: RawRecord, rules: Mapping[Category, Pattern[str]]) -> str:
        """Evidence for one record; raises VerificationShortfall when there is none."""
        pattern = rules.get(record.category)
        if pattern is None or not record.url:
            raise VerificationShortfall(NOTE_MISSING_INPUT)
        page_text = self.fetch(record.url)
        if not page_text:
            raise VerificationShortfall(NOTE_FETCH_FAILED)
        found = self.evidence(page_text, record.entity, pattern)
        if not found:
            raise VerificationShortfall(NOTE_NO_CO_MENTION)
        return found

    def verify(
        self,
        records: Sequence[RawRecord],
        rules: Optional[Mapping[Category, Pattern[str]]] = None,
    ) -> List[VerifiedRecord]:
        table = KEYWORD_RULES if rules is None else rules
        if not records:
            return []
        total = len(records)

        def task(idx: int, record: RawRecord) -> VerifiedRecord:
            out = run_guarded(lambda r: self.check(r, table), record)
            logger.info(
                "[analyze] %d/%d -> %s | %s | %s => %s",
                idx + 1,
                total,
                out.category.value,
                out.entity,
                out.url or "no URL",
                out.finding.value,
            )
            return out

        with ThreadPoolExecutor(max_workers=self.concurrency, thread_name_prefix="verify") as pool:
            futures: List[Future] = [pool.submit(task, i, r) for i, r in enumerate(records)]
            return [self._collect(f, r) for f, r in zip(futures, records)]

    @staticmethod
    def _collect(future: Future, record: RawRecord) -> VerifiedRecord:
        try:
            return future.result()
        except Exception:
            logger.exception("worker failed for %s", record.url)
            return record.verified(Finding.NO, NOTE_ANALYZER_ERROR)


def count_degraded(records: Sequence[VerifiedRecord]) -> int:
    return sum(1 for r in records if r.finding is Finding.NO and r.note in DEGRADED_NOTES)
