# SPDX-License-Identifier: AGPL-3.0-only

"""
Repair and parse truncated or sloppy JSON produced by a language model.

Every pass is string-aware: quoted content is copied through untouched, and
running ``repair_json`` on its own output returns it unchanged.
"""

import json
import logging
import re
from typing import Any, Dict, Tuple

from .boundary import EMPTY_OBJECT, extract_json_boundary
from .errors import InvalidReportShape, MalformedCompletion
from .scanner import PAIRS, ScanState, advance, final_state, is_structural, next_significant, scan

logger = logging.getLogger(__name__)

SCORE_FIELDS = ("overall_score", "positive_percentage", "negative_percentage", "neutral_percentage")

RECOVERY_DIRECT = "direct"
RECOVERY_EXTRACTED = "extracted"
RECOVERY_REPAIRED = "repaired"
RECOVERY_SCRAPED = "scraped"


def close_open_string(text: str) -> str:
    """Append a closing quote when the text ends inside a string."""
    state = final_state(text)
    if state is ScanState.ESCAPED:
        # A dangling backslash would escape the quote we add
        return text[:-1] + '"'
    if state is ScanState.IN_STRING:
        return text + '"'
    return text


def _drop_trailing_commas_once(text: str) -> str:
    out = []
    for index, ch, state in scan(text):
        if ch == "," and state is ScanState.NORMAL and next_significant(text, index + 1) in ("]", "}"):
            continue
        out.append(ch)
    return "".join(out)


def remove_trailing_commas(text: str) -> str:
    """Remove commas before ``]``/``}`` until none remain."""
    while True:
        cleaned = _drop_trailing_commas_once(text)
        if cleaned == text:
            return cleaned
        text = cleaned


def balance_brackets(text: str) -> str:
    """
    Walk the text with a bracket stack.

    Runs of commas followed by a closer (or by nothing) are dropped. A ``}`` first
    closes any arrays opened inside its object, and the walk stops once the
    root object closes so that trailing prose is discarded. Closers with no
    matching opener are dropped, and whatever is still open at the end is
    closed in LIFO order.
    """
    out = []
    stack = []
    state = ScanState.NORMAL
    for index, ch in enumerate(text):
        current = state
        state = advance(state, ch)
        if not is_structural(ch, current):
            out.append(ch)
            continue

        if ch == ",":
            # A run of commas ending at a closer or at end of input goes as a whole
            if next_significant(text, index + 1, skip=",") in ("]", "}", ""):
                continue
            out.append(ch)
        elif ch in "{[":
            stack.append(ch)
            out.append(ch)
        elif ch == "]":
            if stack and stack[-1] == PAIRS[ch]:
                stack.pop()
                out.append(ch)
        elif ch == "}":
            if "{" not in stack:
                continue
            while stack[-1] == "[":
                stack.pop()
                out.append("]")
            stack.pop()
            out.append(ch)
            if not stack:
                break
        else:
            out.append(ch)

    while stack:
        out.append("]" if stack.pop() == "[" else "}")
    return "".join(out)


def _last_structural_close(text: str) -> int:
    last = -1
    for index, ch, state in scan(text):
        if ch == "}" and state is ScanState.NORMAL:
            last = index
    return last


def repair_json(text: str) -> str:
    """
    Repair a candidate JSON substring.

    Args:
        text: Candidate substring, usually from ``extract_json_boundary``

    Returns:
        Repaired text; already-valid JSON is returned unchanged
    """
    if not text:
        return text

    repaired = close_open_string(text)
    repaired = remove_trailing_commas(repaired)
    repaired = balance_brackets(repaired)
    repaired = remove_trailing_commas(repaired)

    # Nothing may follow the root object
    if repaired.lstrip().startswith("{"):
        last = _last_structural_close(repaired)
        if last != -1 and repaired[last + 1:].strip():
            repaired = repaired[:last + 1]
    return repaired


def scrape_score_fields(text: str) -> Dict[str, int]:
    """Regex-extract the numeric score fields that can be found in ``text``."""
    found = {}
    for field in SCORE_FIELDS:
        match = re.search(r'"%s"\s*:\s*(\d+)' % re.escape(field), text or "")
        if match:
            found[field] = int(match.group(1))
    return found


def _scraped_or_malformed(text: str, parse_error: str) -> Dict[str, Any]:
    scraped = scrape_score_fields(text)
    if len(scraped) == len(SCORE_FIELDS):
        logger.warning("Completion JSON unrecoverable (%s); using scraped score fields", parse_error)
        data = dict(scraped)
        data.update({"positive_themes": [], "negative_themes": [], "report": {}})
        return data
    raise MalformedCompletion(parse_error, excerpt=text)


def parse_completion_traced(text: str) -> Tuple[Dict[str, Any], str]:
    """
    Parse a raw completion and report how it was recovered.

    Returns:
        ``(data, mode)`` where mode is ``direct`` (the completion was clean
        JSON), ``extracted`` (prose or fences removed), ``repaired`` or
        ``scraped``

    Raises:
        MalformedCompletion: If neither repair nor the field scrape succeeds
        InvalidReportShape: If the JSON parses to something other than an object
    """
    text = text or ""
    candidate = extract_json_boundary(text)
    if candidate == EMPTY_OBJECT and "{" not in text:
        return _scraped_or_malformed(text, "No JSON object found in completion"), RECOVERY_SCRAPED

    repaired = repair_json(candidate)
    try:
        data = json.loads(repaired)
    except ValueError as e:
        return _scraped_or_malformed(text, str(e)), RECOVERY_SCRAPED

    if not isinstance(data, dict):
        raise InvalidReportShape("AI response is not a JSON object", [])

    if repaired != candidate:
        mode = RECOVERY_REPAIRED
    elif candidate != text.strip():
        mode = RECOVERY_EXTRACTED
    else:
        mode = RECOVERY_DIRECT
    return data, mode


def parse_completion(text: str) -> Dict[str, Any]:
    """
    Parse a raw completion into a JSON object.

    Args:
        text: Raw completion text

    Returns:
        Parsed dict; a minimal report synthesized from the score fields when
        the completion holds no object or the JSON is beyond repair
    """
    data, _ = parse_completion_traced(text)
    return data
