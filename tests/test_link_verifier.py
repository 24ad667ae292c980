import threading
import time
import unittest

from negcheck.parsing.record_types import Finding, RawRecord
from negcheck.parsing.report_parser import parse_report_entries
from negcheck.rules.keyword_rules import KEYWORD_RULES, Category
from negcheck.verification.link_verifier import (
    NOTE_ANALYZER_ERROR,
    NOTE_FETCH_FAILED,
    NOTE_MISSING_INPUT,
    NOTE_NO_CO_MENTION,
    LinkVerifier,
    VerificationShortfall,
    count_degraded,
    run_guarded,
)


class CountingFetch:
    def __init__(self, pages=None, delay=0.0):
        self.pages = pages or {}
        self.delay = delay
        self.calls = []
        self.active = 0
        self.peak = 0
        self._lock = threading.Lock()

    def __call__(self, url):
        with self._lock:
            self.calls.append(url)
            self.active += 1
            self.peak = max(self.peak, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            return self.pages.get(url, "")
        finally:
            with self._lock:
                self.active -= 1


def _rec(url, entity="ACME Corp", category=Category.BRIBE, title="t"):
    return RawRecord(category=category, entity=entity, title=title, url=url)


class TestRunGuarded(unittest.TestCase):
    def test_maps_outcomes(self):
        rec = _rec("https://a.example.com")
        self.assertEqual(run_guarded(lambda r: "Evidence: x", rec).finding, Finding.YES)

        def short(_):
            raise VerificationShortfall("nope")

        self.assertEqual(run_guarded(short, rec).note, "nope")

        def boom(_):
            raise KeyError("x")

        out = run_guarded(boom, rec)
        self.assertEqual((out.finding, out.note), (Finding.NO, NOTE_ANALYZER_ERROR))


class TestLinkVerifier(unittest.TestCase):
    def test_co_mention_is_a_finding(self):
        fetch = CountingFetch({"https://a.example.com": "ACME Corp was investigated for bribery last year."})
        out = LinkVerifier(fetch).verify([_rec("https://a.example.com")])
        self.assertEqual(out[0].finding, Finding.YES)
        self.assertIn("ACME Corp was investigated for bribery last year.", out[0].note)

    def test_empty_fetch_means_fetch_failed(self):
        fetch = CountingFetch()
        out = LinkVerifier(fetch).verify([_rec("https://gone.example.com", entity="Whoever", category=Category.CARTEL)])
        self.assertEqual((out[0].finding, out[0].note), (Finding.NO, NOTE_FETCH_FAILED))
        self.assertEqual(count_degraded(out), 1)

    def test_missing_url_never_fetches(self):
        fetch = CountingFetch()
        out = LinkVerifier(fetch).verify([_rec(""), _rec("", category=Category.FRAUD)])
        self.assertTrue(all(r.finding is Finding.NO and r.note == NOTE_MISSING_INPUT for r in out))
        self.assertEqual(fetch.calls, [])

    def test_category_without_pattern_never_fetches(self):
        rules = {k: v for k, v in KEYWORD_RULES.items() if k is not Category.ANTITRUST}
        fetch = CountingFetch()
        out = LinkVerifier(fetch).verify([_rec("https://a.example.com", category=Category.ANTITRUST)], rules)
        self.assertEqual((out[0].finding, out[0].note), (Finding.NO, NOTE_MISSING_INPUT))
        self.assertEqual(fetch.calls, [])

    def test_no_co_mention(self):
        fetch = CountingFetch({"https://a.example.com": "ACME Corp opened a new office."})
        out = LinkVerifier(fetch).verify([_rec("https://a.example.com")])
        self.assertEqual(out[0].note, NOTE_NO_CO_MENTION)
        self.assertEqual(count_degraded(out), 0)

    def test_errors_stay_with_their_record(self):
        def fetch(url):
            if url.endswith("/bad"):
                raise RuntimeError("parser exploded")
            return "ACME Corp paid a bribe."

        recs = [_rec("https://a.example.com/ok"), _rec("https://a.example.com/bad"), _rec("https://a.example.com/ok2")]
        out = LinkVerifier(fetch, concurrency=3).verify(recs)
        self.assertEqual([r.finding for r in out], [Finding.YES, Finding.NO, Finding.YES])
        self.assertEqual(out[1].note, NOTE_ANALYZER_ERROR)

    def test_concurrency_cap_and_input_order(self):
        lock = threading.Lock()
        state = {"active": 0, "peak": 0}
        second_done = threading.Event()
        completed = []

        def fetch(url):
            with lock:
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
            try:
                if url.endswith("/0"):
                    second_done.wait(timeout=5)
                else:
                    time.sleep(0.01)
                return f"ACME Corp bribe story {url}"
            finally:
                with lock:
                    state["active"] -= 1
                    completed.append(url)
                if url.endswith("/1"):
                    second_done.set()

        recs = [_rec(f"https://a.example.com/{i}") for i in range(10)]
        out = LinkVerifier(fetch, concurrency=2).verify(recs)

        self.assertLessEqual(state["peak"], 2)
        self.assertLess(completed.index("https://a.example.com/1"), completed.index("https://a.example.com/0"))
        self.assertEqual([r.url for r in out], [r.url for r in recs])
        self.assertTrue(all(r.finding is Finding.YES for r in out))

    def test_verify_preserves_count_for_parsed_reports(self):
        text = "1. BR Acme\nTitle: a\n2. FR Beta\nhttps://b.example.com\n3. LI Gamma\nTitle: c\nhttps://c.example.com\n"
        records, _ = parse_report_entries(text)
        out = LinkVerifier(CountingFetch()).verify(records)
        self.assertEqual(len(out), len(records))
        self.assertEqual([(r.entity, r.title, r.url) for r in out], [(r.entity, r.title, r.url) for r in records])

    def test_empty_batch(self):
        self.assertEqual(LinkVerifier(CountingFetch()).verify([]), [])


if __name__ == "__main__":
    unittest.main()
