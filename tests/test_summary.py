import unittest

from negcheck.parsing.record_types import Finding, RawRecord
from negcheck.rules.keyword_rules import CATEGORY_ORDER, Category
from negcheck.scoring.summary import build_summary, is_negative_title


def _rec(category, title, url="https://example.com/a"):
    return RawRecord(category=category, entity="Acme", title=title, url=url)


class TestNegativeTitle(unittest.TestCase):
    def test_enforcement_and_litigation_cues(self):
        for title in (
            "Acme executives indicted over port deal",
            "Regulator fined Acme $2m",
            "Acme faces class action from investors",
            "Acme pleaded guilty to export violations",
        ):
            self.assertTrue(is_negative_title(title), msg=title)

    def test_offence_word_needs_investigation_word(self):
        self.assertTrue(is_negative_title("Bribery probe widens at Acme"))
        self.assertFalse(is_negative_title("Acme launches anti-fraud training"))

    def test_blank_and_neutral_titles(self):
        for title in (None, "", "   ", "Acme reports record quarter"):
            self.assertFalse(is_negative_title(title), msg=repr(title))


class TestBuildSummary(unittest.TestCase):
    def test_one_row_per_category_in_order(self):
        summary = build_summary([])
        self.assertEqual([r.category for r in summary.rows], list(CATEGORY_ORDER))
        self.assertEqual((summary.total, summary.negative), (0, 0))

    def test_counts_and_totals(self):
        records = [
            _rec(Category.BRIBE, "Acme charged in bribery case"),
            _rec(Category.BRIBE, "Acme opens office"),
            _rec(Category.FRAUD, "Acme sued by customers"),
            _rec(Category.FRAUD, "Acme fined", url=""),
        ]
        summary = build_summary(records)
        rows = {r.category: r for r in summary.rows}
        self.assertEqual((rows[Category.BRIBE].total, rows[Category.BRIBE].negative), (2, 1))
        self.assertEqual((rows[Category.FRAUD].total, rows[Category.FRAUD].negative), (1, 1))
        self.assertEqual(summary.total, sum(r.total for r in summary.rows))
        self.assertEqual(summary.negative, 2)
        for row in summary.rows:
            self.assertLessEqual(row.negative, row.total)

    def test_accepts_verified_records_and_is_stable(self):
        records = [_rec(Category.CARTEL, "Cartel investigation opened").verified(Finding.NO, "x")]
        first = build_summary(records).to_dict()
        self.assertEqual(first, build_summary(records).to_dict())
        self.assertEqual(first["totals"], {"total": 1, "negative": 1})
        self.assertEqual(first["rows"][CATEGORY_ORDER.index(Category.CARTEL)]["category"], "Cartel")


if __name__ == "__main__":
    unittest.main()
