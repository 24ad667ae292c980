import re
import unittest

from negcheck.rules.keyword_rules import KEYWORD_RULES, Category
from negcheck.verification.evidence import (
    EVIDENCE_PREFIX,
    PREVIEW_CHARS,
    find_evidence,
    split_paragraphs,
)


BRIBE = KEYWORD_RULES[Category.BRIBE]


class TestSplitParagraphs(unittest.TestCase):
    def test_lines_become_paragraphs(self):
        self.assertEqual(split_paragraphs("one\n\n two \nthree"), ["one", "two", "three"])

    def test_long_blocks_split_at_sentences(self):
        block = " ".join(f"Sentence number {i} is here." for i in range(100))
        parts = split_paragraphs(block)
        self.assertEqual(len(parts), 100)
        self.assertEqual(parts[0], "Sentence number 0 is here.")


class TestFindEvidence(unittest.TestCase):
    def test_same_paragraph_co_mention(self):
        page = "Markets update\nACME Corp was investigated for bribery last year.\nWeather"
        ev = find_evidence(page, "ACME Corp", BRIBE)
        self.assertTrue(ev.startswith(EVIDENCE_PREFIX))
        self.assertIn("ACME Corp was investigated for bribery last year.", ev)

    def test_entity_match_is_case_insensitive_and_literal(self):
        page = "acme corp. (uk) paid kickbacks to officials"
        self.assertTrue(find_evidence(page, "ACME Corp. (UK)", BRIBE))
        self.assertEqual(find_evidence("acmeXcorp paid kickbacks", "acme.corp", BRIBE), "")

    def test_adjacent_paragraph_fallback_within_window(self):
        page = "Officials opened a bribery probe on Monday.\nThe company named was Delta Freight."
        ev = find_evidence(page, "Delta Freight", BRIBE)
        self.assertIn("bribery", ev)
        self.assertIn("Delta Freight", ev)

    def test_far_apart_mentions_are_not_evidence(self):
        page = "Delta Freight opened a new depot.\n" + ("Filler sentence.\n" * 40) + "A bribery case elsewhere."
        self.assertEqual(find_evidence(page, "Delta Freight", BRIBE), "")

    def test_no_entity_or_no_keyword(self):
        self.assertEqual(find_evidence("Bribery everywhere.", "Omega Ltd", BRIBE), "")
        self.assertEqual(find_evidence("Omega Ltd reported earnings.", "Omega Ltd", BRIBE), "")
        self.assertEqual(find_evidence("", "Omega Ltd", BRIBE), "")
        self.assertEqual(find_evidence("Omega bribe", "  ", BRIBE), "")

    def test_long_paragraph_excerpt_keeps_both_mentions(self):
        para = ("Background text. " * 20) + "Sigma Bank was accused of laundering funds." + (" More text." * 20)
        ev = find_evidence(para, "Sigma Bank", KEYWORD_RULES[Category.MONEY_LAUNDERING])
        body = ev[len(EVIDENCE_PREFIX):]
        self.assertLessEqual(len(body.strip(".")), PREVIEW_CHARS)
        self.assertIn("Sigma Bank", body)
        self.assertRegex(body, re.compile("laundering"))

    def test_far_apart_mentions_in_one_paragraph_keep_both(self):
        para = "Sigma Bank " + ("filler words here " * 40) + "was accused of bribery."
        ev = find_evidence(para, "Sigma Bank", BRIBE)
        body = ev[len(EVIDENCE_PREFIX):]
        self.assertIn("Sigma Bank", body)
        self.assertRegex(body, BRIBE)
        self.assertIn("... ...", body)
        self.assertLessEqual(len(body.strip(".")), PREVIEW_CHARS)


if __name__ == "__main__":
    unittest.main()
