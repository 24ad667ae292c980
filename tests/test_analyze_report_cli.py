import contextlib
import io
import json
import os
import shutil
import tempfile
import unittest

import docx
from openpyxl import load_workbook

import analyze_report


class TestAnalyzeReportCli(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.report = os.path.join(self.tmp, "Acme Group.docx")
        document = docx.Document()
        for line in ("Bribe", "1. BR Acme Group", "Title: Acme Group charged over bribes", "Fraud", "2. FR Acme Group", "Title: Acme audit"):
            document.add_paragraph(line)
        document.save(self.report)

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def _run(self, *argv):
        out, err = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            code = analyze_report.main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_prints_summary_json(self):
        code, out, _ = self._run(self.report, "--log-level", "ERROR")
        self.assertEqual(code, 0)
        body = json.loads(out)
        self.assertEqual(body["debugCount"]["Bribe"], 1)
        self.assertEqual(body["debugCount"]["Fraud"], 1)
        self.assertEqual(len(body["summary"]["rows"]), 8)
        self.assertFalse(body["partial"])

    def test_export_writes_workbook(self):
        target = os.path.join(self.tmp, "out.xlsx")
        code, _, _ = self._run(self.report, "--export", target, "--log-level", "ERROR")
        self.assertEqual(code, 0)
        wb = load_workbook(target)
        rows = list(wb["Bribe"].iter_rows(min_row=2, values_only=True))
        self.assertEqual(rows[0][4:], ("No", "Missing keyword or URL"))

    def test_unreadable_report_exits_with_input_error(self):
        code, _, err = self._run(os.path.join(self.tmp, "missing.pdf"), "--log-level", "ERROR")
        self.assertEqual(code, 1)
        self.assertIn("Unsupported or unreadable file type", err)


if __name__ == "__main__":
    unittest.main()
