"""Analyze / export operations over one uploaded report.

Both operations return a ServiceOutcome instead of raising, so the transport
layer (web_app.py, analyze_report.py) only maps status -> response:
- ok / partial: success; partial means some records could not be checked
- no_input / invalid_input: the caller's fault, nothing was parsed
- failed: unexpected internal error, no partial payload
"""

from __future__ import annotations

import contextlib
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from negcheck.config import Settings
from negcheck.contracts.analyze_response import validate_analyze_response
from negcheck.export.workbook import XLSX_MIME, export_filename, render_workbook
from negcheck.extraction.document_text import UnreadableDocumentError, extract_text
from negcheck.extraction.page_fetch import PageFetcher
from negcheck.parsing.record_types import Finding, VerifiedRecord
from negcheck.parsing.report_parser import ParseResult, parse_report_entries
from negcheck.rules.keyword_rules import KEYWORD_RULES
from negcheck.scoring.summary import build_summary
from negcheck.verification.link_verifier import LinkVerifier, count_degraded


logger = logging.getLogger(__name__)

SAMPLE_LINES = 120

ExtractFn = Callable[[str, Optional[str], Optional[str]], str]


class OutcomeStatus(str, Enum):
    OK = "ok"
    PARTIAL = "partial"
    NO_INPUT = "no_input"
    INVALID_INPUT = "invalid_input"
    FAILED = "failed"


_HTTP_STATUS = {
    OutcomeStatus.OK: 200,
    OutcomeStatus.PARTIAL: 200,
    OutcomeStatus.NO_INPUT: 400,
    OutcomeStatus.INVALID_INPUT: 400,
    OutcomeStatus.FAILED: 500,
}


@dataclass(frozen=True)
class UploadedReport:
    path: str
    filename: str = ""
    mimetype: Optional[str] = None


@dataclass(frozen=True)
class ServiceOutcome:
    status: OutcomeStatus
    payload: Dict[str, Any] = field(default_factory=dict)
    message: Optional[str] = None
    content: Optional[bytes] = None
    filename: Optional[str] = None
    mimetype: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status in (OutcomeStatus.OK, OutcomeStatus.PARTIAL)

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self.status]

    def to_json(self) -> Dict[str, Any]:
        if self.ok:
            return {"ok": True, **self.payload}
        return {"ok": False, "error": self.message or self.status.value}


def discard_upload(path: Optional[str]) -> None:
    """Best-effort removal of a spooled upload."""
    if not path:
        return
    with contextlib.suppress(OSError):
        os.remove(path)


def build_analyze_payload(text: str, parsed: ParseResult, verified: List[VerifiedRecord]) -> Dict[str, Any]:
    summary = build_summary(verified)
    verified_count = {name: 0 for name in parsed.counts}
    for rec in verified:
        if rec.finding is Finding.YES and rec.category.value in verified_count:
            verified_count[rec.category.value] += 1
    degraded = count_degraded(verified)
    return {
        "summary": summary.to_dict(),
        "debugCount": dict(parsed.counts),
        "verifiedCount": verified_count,
        "records": [r.to_dict() for r in verified],
        "sample": (text or "").split("\n")[:SAMPLE_LINES],
        "partial": degraded > 0,
        "degraded": degraded,
    }


class ReportService:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        verifier: Optional[LinkVerifier] = None,
        extract: ExtractFn = extract_text,
    ) -> None:
        self.settings = settings or Settings()
        if verifier is None:
            fetcher = PageFetcher(
                timeout=self.settings.request_timeout,
                max_bytes=self.settings.max_html_bytes,
                max_redirects=self.settings.max_redirects,
            )
            verifier = LinkVerifier(fetcher, concurrency=self.settings.concurrency)
        self.verifier = verifier
        self.extract = extract

    def _read(self, upload: UploadedReport) -> str:
        return self.extract(upload.path, upload.mimetype, upload.filename)

    def _parse_and_verify(self, text: str):
        parsed = parse_report_entries(text, KEYWORD_RULES.keys())
        verified = self.verifier.verify(parsed.records, KEYWORD_RULES)
        return parsed, verified

    def analyze(self, upload: Optional[UploadedReport]) -> ServiceOutcome:
        if upload is None or not upload.path:
            return ServiceOutcome(OutcomeStatus.NO_INPUT, message="No file uploaded")
        try:
            text = self._read(upload)
        except UnreadableDocumentError as e:
            return ServiceOutcome(OutcomeStatus.INVALID_INPUT, message=str(e))
        try:
            parsed, verified = self._parse_and_verify(text)
            payload = build_analyze_payload(text, parsed, verified)
        except Exception as e:
            logger.exception("Analyze error")
            return ServiceOutcome(OutcomeStatus.FAILED, message=str(e) or "Analyze failed")

        errors = validate_analyze_response(payload)
        if errors:
            logger.warning("analyze payload does not match contract: %s", "; ".join(errors[:5]))
        status = OutcomeStatus.PARTIAL if payload["partial"] else OutcomeStatus.OK
        logger.info(
            "analyzed %s: records=%d partial=%s",
            upload.filename or upload.path,
            len(payload["records"]),
            payload["partial"],
        )
        return ServiceOutcome(status, payload=payload)

    def export(self, upload: Optional[UploadedReport]) -> ServiceOutcome:
        if upload is None or not upload.path:
            return ServiceOutcome(OutcomeStatus.NO_INPUT, message="No file uploaded")
        try:
            text = self._read(upload)
        except UnreadableDocumentError as e:
            return ServiceOutcome(OutcomeStatus.INVALID_INPUT, message=str(e))
        try:
            _, verified = self._parse_and_verify(text)
            report_name = os.path.splitext(os.path.basename(upload.filename or ""))[0] or None
            content = render_workbook(verified, report_name)
        except Exception as e:
            logger.exception("Export error")
            return ServiceOutcome(OutcomeStatus.FAILED, message=str(e) or "Export failed")

        degraded = count_degraded(verified)
        return ServiceOutcome(
            OutcomeStatus.PARTIAL if degraded else OutcomeStatus.OK,
            payload={"records": len(verified), "degraded": degraded},
            content=content,
            filename=export_filename(upload.filename),
            mimetype=XLSX_MIME,
        )
