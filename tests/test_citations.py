# SPDX-License-Identifier: AGPL-3.0-only

"""
Tests for citation injection and URL scrubbing.
"""

import copy

from sentiment.citations import UrlPool, inject_citations, placeholder_text, scrub_urls
from sentiment.models import ToolCallURL


def _snapshot(data):
    return data["report"]["sentiment_snapshot"]


class TestPlaceholderText:
    """Test locale placeholder texts."""

    def test_locales(self):
        assert placeholder_text("en") == "Information from web search"
        assert placeholder_text("he") == "מידע מחיפוש ברשת"
        assert placeholder_text("en-US") == "Information from web search"

    def test_unknown_locale_falls_back_to_english(self):
        assert placeholder_text("fr") == "Information from web search"
        assert placeholder_text(None) == "Information from web search"


class TestUrlPool:
    """Test UrlPool bookkeeping."""

    def test_take_skips_used(self, pool_urls):
        pool = UrlPool(pool_urls)
        pool.mark_used("https://real.com/1")
        assert pool.take().url == "https://real.com/2"
        assert pool.take() is None
        assert list(pool.remaining()) == []


class TestInjectCitations:
    """Test inject_citations."""

    def test_placeholders_replaced_in_order(self, pool_urls):
        data = {
            "report": {
                "sentiment_snapshot": [{"source": "S", "url": "https://example.com/a"}],
                "positive_feedback": {"items": [{"title": "t", "url": "https://www.example.com/b"}]},
            }
        }
        original = copy.deepcopy(data)
        result = inject_citations(data, pool_urls, locale="en")

        assert _snapshot(result) == [{"source": "S", "url": "https://real.com/1"}]
        assert result["report"]["positive_feedback"]["items"][0]["url"] == "https://real.com/2"
        assert data == original

    def test_placeholder_dropped_when_pool_exhausted(self):
        data = {"report": {"sentiment_snapshot": [{"source": "S", "url": "https://example.com/a"}]}}
        result = inject_citations(data, [], locale="en")
        assert _snapshot(result) == [{"source": "S"}]

    def test_valid_urls_kept_and_remaining_appended(self):
        data = {"report": {"critical_feedback": {"items": [{"title": "c", "url": "https://news.com/a?x=1"}]}}}
        pool = [
            ToolCallURL(url="https://news.com/a"),
            ToolCallURL(url="https://other.com/b", snippet="snip"),
        ]
        result = inject_citations(data, pool, locale="en")

        assert result["report"]["critical_feedback"]["items"][0]["url"] == "https://news.com/a"
        assert _snapshot(result) == [
            {"source": "Information from web search", "sentiment_summary": "snip", "url": "https://other.com/b"}
        ]

    def test_hebrew_placeholders(self):
        result = inject_citations({"report": {}}, [ToolCallURL(url="https://ynet.co.il/a")], locale="he")
        assert _snapshot(result) == [
            {"source": "מידע מחיפוש ברשת", "sentiment_summary": "מידע מחיפוש ברשת", "url": "https://ynet.co.il/a"}
        ]

    def test_budget_limits_appended_urls(self):
        pool = [ToolCallURL(url=f"https://site{i}.com/page") for i in range(15)]
        result = inject_citations({"report": {}}, pool, locale="en", max_urls=10)
        assert len(_snapshot(result)) == 10

    def test_budget_counts_existing_citations(self):
        existing = [{"source": f"S{i}", "url": f"https://known{i}.com"} for i in range(3)]
        pool = [ToolCallURL(url=f"https://site{i}.com/page") for i in range(12)]
        result = inject_citations({"report": {"sentiment_snapshot": existing}}, pool, locale="en", max_urls=10)
        urls = {entry["url"] for entry in _snapshot(result)}
        assert len(urls) == 10

    def test_report_created_for_appended_urls(self, pool_urls):
        result = inject_citations({"overall_score": 50}, pool_urls, locale="en")
        assert [e["url"] for e in _snapshot(result)] == ["https://real.com/1", "https://real.com/2"]
        assert _snapshot(result)[0]["source"] == "Real One"

    def test_no_pool_no_report(self):
        assert inject_citations({"overall_score": 50}, [], locale="en") == {"overall_score": 50}


class TestScrubUrls:
    """Test scrub_urls."""

    def test_cleans_and_drops_anywhere(self):
        data = {
            "sample_mentions": [
                {"content": "a", "url": "http://localhost/x"},
                {"content": "b", "url": "https://a.com/x?q=1"},
            ],
            "report": {"positioning": {"url": "https://example.com"}},
        }
        assert scrub_urls(data) == {
            "sample_mentions": [{"content": "a"}, {"content": "b", "url": "https://a.com/x"}],
            "report": {"positioning": {}},
        }
