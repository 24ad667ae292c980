#!/usr/bin/env python3
"""
Flask web application for the negative-news report checker.
Endpoints: analyze an uploaded report (summary JSON) and export the verified findings workbook.
"""

import io
import logging
import os
import tempfile
from typing import Optional

from flask import Flask, jsonify, request, send_file
from flask_cors import CORS
from werkzeug.exceptions import RequestEntityTooLarge

from negcheck.config import Settings
from negcheck.rules.keyword_rules import CATEGORY_ORDER
from negcheck.service.report_service import ReportService, UploadedReport, discard_upload

logger = logging.getLogger(__name__)


def _spool_upload(upload_dir: str) -> Optional[UploadedReport]:
    """Save the request's `file` part to a temp file owned by this request."""
    f = request.files.get("file")
    if f is None or not f.filename:
        return None
    suffix = os.path.splitext(f.filename)[1].lower()
    os.makedirs(upload_dir, exist_ok=True)
    fd, path = tempfile.mkstemp(prefix="upload_", suffix=suffix, dir=upload_dir)
    os.close(fd)
    try:
        f.save(path)
    except Exception:
        discard_upload(path)
        raise
    return UploadedReport(path=path, filename=f.filename, mimetype=f.mimetype)


def create_app(service: Optional[ReportService] = None, settings: Optional[Settings] = None) -> Flask:
    settings = settings or Settings.from_env()
    service = service or ReportService(settings)

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = settings.max_upload_bytes
    CORS(app)

    @app.errorhandler(RequestEntityTooLarge)
    def too_large(e):
        return jsonify({'ok': False, 'error': 'File too large'}), 413

    @app.route('/api/health', methods=['GET'])
    def health():
        return jsonify({'ok': True, 'categories': [c.value for c in CATEGORY_ORDER]})

    @app.route('/analyze-report', methods=['POST'])
    def analyze_report():
        upload = None
        try:
            upload = _spool_upload(settings.upload_dir)
            outcome = service.analyze(upload)
            return jsonify(outcome.to_json()), outcome.http_status
        except RequestEntityTooLarge:
            raise
        except Exception as e:
            logger.exception("Analyze error")
            return jsonify({'ok': False, 'error': str(e) or 'Analyze failed'}), 500
        finally:
            discard_upload(upload.path if upload else None)

    @app.route('/export-excel', methods=['POST'])
    def export_excel():
        upload = None
        try:
            upload = _spool_upload(settings.upload_dir)
            outcome = service.export(upload)
            if not outcome.ok:
                return jsonify(outcome.to_json()), outcome.http_status
            return send_file(
                io.BytesIO(outcome.content or b""),
                mimetype=outcome.mimetype,
                as_attachment=True,
                download_name=outcome.filename,
            )
        except RequestEntityTooLarge:
            raise
        except Exception as e:
            logger.exception("Export error")
            return jsonify({'ok': False, 'error': str(e) or 'Export failed'}), 500
        finally:
            discard_upload(upload.path if upload else None)

    return app


if __name__ == '__main__':
    _settings = Settings.from_env()
    logging.basicConfig(level=getattr(logging, _settings.log_level, logging.INFO))
    create_app(settings=_settings).run(host=_settings.host, port=_settings.port)
