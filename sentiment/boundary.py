# SPDX-License-Identifier: AGPL-3.0-only

"""
Locate the JSON object inside a raw language-model completion.

Completions often arrive as prose around a fenced code block. The extractor
returns a candidate substring only; it does not guarantee that it parses.
"""

import re
from typing import Optional

from .scanner import PAIRS, ScanState, brace_depth, scan

FENCE_PATTERN = re.compile(r"```(?:json)?", re.IGNORECASE)
EMPTY_OBJECT = "{}"


def strip_fences(text: str) -> str:
    """Remove code-fence markers that appear outside quoted strings."""
    out = []
    skip_until = 0
    for index, ch, state in scan(text):
        if index < skip_until:
            continue
        if ch == "`" and state is ScanState.NORMAL:
            match = FENCE_PATTERN.match(text, index)
            if match:
                skip_until = match.end()
                continue
        out.append(ch)
    return "".join(out)


def find_object_end(text: str) -> Optional[int]:
    """Index of the ``}`` that closes the object opened at ``text[0]``."""
    depth = 0
    for index, ch, state in scan(text):
        if state is not ScanState.NORMAL:
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


def first_mismatch(text: str) -> int:
    """Index of the first closer that does not match the innermost opener."""
    stack = []
    for index, ch, state in scan(text):
        if state is not ScanState.NORMAL:
            continue
        if ch in "{[":
            stack.append(ch)
        elif ch in PAIRS:
            if not stack or stack[-1] != PAIRS[ch]:
                return index
            stack.pop()
    return len(text)


def extract_json_boundary(text: str) -> str:
    """
    Extract the candidate JSON object from a completion.

    Args:
        text: Raw completion, possibly wrapped in prose or code fences

    Returns:
        The object substring, a best-effort truncated object, or ``"{}"``
        when the text holds no ``{`` at all
    """
    if not text:
        return EMPTY_OBJECT

    start = text.find("{")
    if start == -1:
        return EMPTY_OBJECT

    body = strip_fences(text[start:])

    end = find_object_end(body)
    if end is not None:
        return body[:end + 1]

    # Unbalanced: the object is truncated or a closer is missing
    last = body.rfind("}")
    if last != -1:
        candidate = body[:last + 1]
        if not body[last + 1:].strip() or brace_depth(candidate) == 0:
            return candidate

    return body[:first_mismatch(body)].rstrip()
