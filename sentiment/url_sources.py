# SPDX-License-Identifier: AGPL-3.0-only

"""
Ordered strategies for collecting citation URLs.

Each strategy is a pure function ``(source) -> Optional[List[ToolCallURL]]``.
``first_success`` applies them in priority order and returns the first
non-empty result:

1. structured tool results (caller URLs, every generation step, top-level
   tool results and tool calls with embedded results), cumulatively
2. URLs written in the completion text
3. ``url`` fields the model put in its own report

Shapes follow the tool-call records of multi-step generation APIs; both
camelCase and snake_case keys, and both list and keyed-object containers,
are accepted.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .models import ToolCallURL
from .urls import URL_PATTERN, strip_trailing_punctuation, title_from_context

logger = logging.getLogger(__name__)

WEB_SEARCH_TOOLS = {"web_search", "websearch", "web_search_preview", "search", "google_search", "browser_search"}

RESULT_KEYS = ("toolResults", "tool_results")
CALL_KEYS = ("toolCalls", "tool_calls")
PAYLOAD_KEYS = ("result", "output", "results", "content")
LIST_KEYS = ("results", "items", "data")
URL_KEYS = ("url", "link", "href", "uri")
TITLE_KEYS = ("title", "name", "source")
SNIPPET_KEYS = ("snippet", "description", "content", "text", "summary")


@dataclass
class UrlSource:
    """Everything a strategy may look at."""
    text: str = ""
    tool_urls: List[ToolCallURL] = field(default_factory=list)
    generation: Optional[Dict[str, Any]] = None
    report: Optional[Dict[str, Any]] = None
    context_chars: int = 100


Strategy = Callable[[UrlSource], Optional[List[ToolCallURL]]]


def _first_str(record: Dict[str, Any], keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        value = record.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def _records(container: Any) -> List[Any]:
    """Tool records may come as a list or as an object keyed by call id."""
    if isinstance(container, list):
        return container
    if isinstance(container, dict):
        return list(container.values())
    return []


def _tool_name(record: Dict[str, Any]) -> str:
    name = record.get("toolName") or record.get("tool_name") or record.get("name") or record.get("type") or ""
    if not name and isinstance(record.get("function"), dict):
        name = record["function"].get("name") or ""
    return str(name)


def is_web_search_tool(name: str) -> bool:
    normalized = name.lower().replace("-", "_")
    if normalized.endswith("_call"):
        normalized = normalized[:-len("_call")]
    return normalized in WEB_SEARCH_TOOLS or "web_search" in normalized


def _item_to_url(item: Any) -> Optional[ToolCallURL]:
    if not isinstance(item, dict):
        return None
    url = _first_str(item, URL_KEYS)
    if not url:
        return None
    return ToolCallURL(url=url, title=_first_str(item, TITLE_KEYS), snippet=_first_str(item, SNIPPET_KEYS))


def _items_to_urls(items: Iterable[Any]) -> List[ToolCallURL]:
    found = []
    for item in items:
        entry = _item_to_url(item)
        if entry:
            found.append(entry)
    return found


def regex_urls(blob: str) -> List[ToolCallURL]:
    """Every http(s) URL in a blob, without titles."""
    return [ToolCallURL(url=strip_trailing_punctuation(m.group(0))) for m in URL_PATTERN.finditer(blob or "")]


def urls_from_payload(payload: Any) -> List[ToolCallURL]:
    """
    Pull URLs out of one web-search result payload.

    Tries, in order: a list of items, ``.results``, ``.items``, ``.data``,
    a single inline result, and finally a regex over the serialized payload.
    """
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except ValueError:
            return regex_urls(payload)

    if isinstance(payload, list):
        found = _items_to_urls(payload)
        if found:
            return found

    if isinstance(payload, dict):
        for key in LIST_KEYS:
            if isinstance(payload.get(key), list):
                found = _items_to_urls(payload[key])
                if found:
                    return found
        single = _item_to_url(payload)
        if single:
            return [single]

    try:
        blob = json.dumps(payload, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        blob = str(payload)
    return regex_urls(blob)


def _payload(record: Dict[str, Any]) -> Any:
    for key in PAYLOAD_KEYS:
        if key in record and record[key] is not None:
            return record[key]
    return None


def urls_from_tool_records(container: Any) -> List[ToolCallURL]:
    """URLs from web-search records in a tool-results or tool-calls container."""
    found = []
    for record in _records(container):
        if not isinstance(record, dict) or not is_web_search_tool(_tool_name(record)):
            continue
        payload = _payload(record)
        if payload is None:
            continue
        try:
            found.extend(urls_from_payload(payload))
        except (TypeError, ValueError, AttributeError) as e:
            logger.debug("Skipping unreadable tool result: %s", e)
    return found


def _containers(record: Dict[str, Any], keys: Sequence[str]) -> List[Any]:
    return [record[key] for key in keys if key in record]


def urls_from_steps(generation: Optional[Dict[str, Any]]) -> List[ToolCallURL]:
    """URLs from every step of a multi-step generation."""
    found = []
    for step in _records((generation or {}).get("steps")):
        if not isinstance(step, dict):
            continue
        for container in _containers(step, RESULT_KEYS) + _containers(step, CALL_KEYS):
            found.extend(urls_from_tool_records(container))
    return found


def urls_from_top_level(generation: Optional[Dict[str, Any]]) -> List[ToolCallURL]:
    """URLs from the non-stepped tool results, and tool calls carrying results."""
    generation = generation or {}
    found = []
    for container in _containers(generation, RESULT_KEYS) + _containers(generation, CALL_KEYS):
        found.extend(urls_from_tool_records(container))
    return found


def structured_strategy(source: UrlSource) -> Optional[List[ToolCallURL]]:
    found = list(source.tool_urls)
    found.extend(urls_from_steps(source.generation))
    found.extend(urls_from_top_level(source.generation))
    return found or None


def text_strategy(source: UrlSource) -> Optional[List[ToolCallURL]]:
    text = source.text or ""
    found = []
    for match in URL_PATTERN.finditer(text):
        url = strip_trailing_punctuation(match.group(0))
        title = title_from_context(text, match.start(), url, source.context_chars)
        found.append(ToolCallURL(url=url, title=title))
    return found or None


def report_strategy(source: UrlSource) -> Optional[List[ToolCallURL]]:
    report = (source.report or {}).get("report")
    if not isinstance(report, dict):
        return None

    entries = []
    for key in ("positive_feedback", "critical_feedback"):
        section = report.get(key)
        if isinstance(section, dict):
            entries.extend(e for e in _records(section.get("items")) if isinstance(e, dict))
    entries.extend(e for e in _records(report.get("sentiment_snapshot")) if isinstance(e, dict))

    found = []
    for entry in entries:
        url = entry.get("url")
        if not isinstance(url, str) or not url or "example.com" in url.lower():
            continue
        title = entry.get("title") or entry.get("source")
        snippet = entry.get("description") or entry.get("sentiment_summary")
        found.append(ToolCallURL(
            url=url,
            title=title if isinstance(title, str) else None,
            snippet=snippet if isinstance(snippet, str) else None,
        ))
    return found or None


DEFAULT_STRATEGIES: List[Strategy] = [structured_strategy, text_strategy, report_strategy]


def strategy_name(strategy: Strategy) -> str:
    return getattr(strategy, "__name__", None) or repr(strategy)


def select_strategy(strategies: Sequence[Strategy], source: UrlSource) -> Tuple[Optional[str], List[ToolCallURL]]:
    """Name and result of the first strategy that yields at least one URL; ``(None, [])`` if none does."""
    for strategy in strategies:
        name = strategy_name(strategy)
        try:
            found = strategy(source)
        except (TypeError, ValueError, AttributeError) as e:
            logger.debug("URL strategy %s failed: %s", name, e)
            continue
        if found:
            logger.debug("URL strategy %s yielded %d candidates", name, len(found))
            return name, found
    return None, []


def first_success(strategies: Sequence[Strategy], source: UrlSource) -> List[ToolCallURL]:
    """Return the result of the first strategy that yields at least one URL."""
    return select_strategy(strategies, source)[1]


def collect_urls(source: UrlSource, strategies: Optional[Sequence[Strategy]] = None) -> List[ToolCallURL]:
    return first_success(strategies or DEFAULT_STRATEGIES, source)
