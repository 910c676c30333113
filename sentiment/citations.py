# SPDX-License-Identifier: AGPL-3.0-only

"""
Citation injection: attach real URLs to the report and bound their number.
"""

import copy
import logging
from typing import Any, Dict, Iterator, List, Optional, Set

from .models import ToolCallURL
from .urls import clean_url

logger = logging.getLogger(__name__)

PLACEHOLDER_TEXT = {
    "en": "Information from web search",
    "he": "מידע מחיפוש ברשת",
}


def placeholder_text(locale: Optional[str]) -> str:
    return PLACEHOLDER_TEXT.get((locale or "").split("-")[0].lower(), PLACEHOLDER_TEXT["en"])


class UrlPool:
    """Deduplicated URL pool that tracks which URLs the report consumed."""

    def __init__(self, entries: List[ToolCallURL]):
        self.entries = list(entries)
        self.used: Set[str] = set()

    def mark_used(self, url: str):
        self.used.add(url)

    def take(self) -> Optional[ToolCallURL]:
        """Next URL not yet attached anywhere, or None when exhausted."""
        for entry in self.entries:
            if entry.url not in self.used:
                self.used.add(entry.url)
                return entry
        return None

    def remaining(self) -> Iterator[ToolCallURL]:
        for entry in self.entries:
            if entry.url not in self.used:
                yield entry


def _nested_lists(report: Dict[str, Any]) -> List[List[Any]]:
    lists = []
    snapshot = report.get("sentiment_snapshot")
    if isinstance(snapshot, list):
        lists.append(snapshot)
    for key in ("positive_feedback", "critical_feedback"):
        section = report.get(key)
        if isinstance(section, dict) and isinstance(section.get("items"), list):
            lists.append(section["items"])
    return lists


def _fix_entry_url(entry: Dict[str, Any], pool: UrlPool):
    if "url" not in entry:
        return
    cleaned = clean_url(entry.get("url"))
    if cleaned:
        entry["url"] = cleaned
        pool.mark_used(cleaned)
        return

    replacement = pool.take()
    if replacement:
        logger.debug("Replacing placeholder URL %r with %s", entry.get("url"), replacement.url)
        entry["url"] = replacement.url
    else:
        logger.debug("Dropping placeholder URL %r", entry.get("url"))
        del entry["url"]


def inject_citations(
    data: Dict[str, Any],
    pool_entries: List[ToolCallURL],
    locale: Optional[str] = None,
    max_urls: int = 10,
) -> Dict[str, Any]:
    """
    Attach pool URLs to the report's citation lists.

    Args:
        data: Parsed report (top-level dict holding an optional ``report``)
        pool_entries: Deduplicated, cleaned URLs
        locale: Locale for placeholder texts of new snapshot entries
        max_urls: Budget of distinct URLs across the whole report

    Returns:
        A new dict; ``data`` is not modified
    """
    result = copy.deepcopy(data)
    pool = UrlPool(pool_entries)

    report = result.get("report")
    if not isinstance(report, dict):
        report = None

    if report is not None:
        for entries in _nested_lists(report):
            for entry in entries:
                if isinstance(entry, dict):
                    _fix_entry_url(entry, pool)

    extra = []
    fallback = placeholder_text(locale)
    for entry in pool.remaining():
        if len(pool.used) >= max_urls:
            break
        pool.mark_used(entry.url)
        extra.append({
            "source": entry.title or fallback,
            "sentiment_summary": entry.snippet or fallback,
            "url": entry.url,
        })

    if extra:
        if report is None:
            report = {}
            result["report"] = report
        snapshot = report.get("sentiment_snapshot")
        if not isinstance(snapshot, list):
            snapshot = []
            report["sentiment_snapshot"] = snapshot
        snapshot.extend(extra)

    discarded = len(pool.entries) - len([e for e in pool.entries if e.url in pool.used])
    if discarded:
        logger.debug("Discarded %d unused citation URLs", discarded)
    return result


def scrub_urls(value: Any) -> Any:
    """
    Clean every ``url`` field in a nested structure, removing invalid ones.

    Returns a new structure; covers keys the model added outside the citation
    lists.
    """
    if isinstance(value, list):
        return [scrub_urls(item) for item in value]
    if not isinstance(value, dict):
        return value
    out = {}
    for key, item in value.items():
        if key == "url":
            cleaned = clean_url(item)
            if cleaned:
                out[key] = cleaned
            continue
        out[key] = scrub_urls(item)
    return out
