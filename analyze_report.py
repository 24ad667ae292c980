#!/usr/bin/env python3
"""Analyze one negative-news report from the command line.

Prints the analyze summary as JSON; with --export also writes the findings workbook.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace

from negcheck.config import Settings
from negcheck.service.report_service import ReportService, UploadedReport


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Check a negative-news report's links for entity/keyword co-mentions.")
    p.add_argument("report", help="Path to the report (.pdf or .docx)")
    p.add_argument("--export", metavar="OUT.xlsx", help="Write the verified findings workbook here")
    p.add_argument("--concurrency", type=int, default=None, help="Concurrent page fetches (default: $CONCURRENCY or 2)")
    p.add_argument("--log-level", default=None, help="Logging level (default: $LOG_LEVEL or INFO)")
    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    if args.concurrency is not None:
        settings = replace(settings, concurrency=max(1, args.concurrency))
    level = (args.log_level or settings.log_level).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), stream=sys.stderr)

    service = ReportService(settings)
    upload = UploadedReport(path=args.report, filename=args.report)

    if args.export:
        outcome = service.export(upload)
        if outcome.ok:
            with open(args.export, "wb") as f:
                f.write(outcome.content or b"")
            print(f"[export] wrote {args.export} records={outcome.payload.get('records')}", file=sys.stderr)
    else:
        outcome = service.analyze(upload)
        if outcome.ok:
            body = {k: outcome.payload[k] for k in ("summary", "debugCount", "verifiedCount", "partial")}
            print(json.dumps(body, indent=2))

    if not outcome.ok:
        print(f"[error] {outcome.message}", file=sys.stderr)
        return 1 if outcome.http_status == 400 else 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
