# SPDX-License-Identifier: AGPL-3.0-only

"""
String-aware character scanner shared by boundary extraction and JSON repair.

The scanner is a three-state machine. A character read in ``NORMAL`` state is
structural unless it is the quote that opens a string; everything read in
``IN_STRING`` or ``ESCAPED`` state is quoted content. A quote read in
``ESCAPED`` state never closes the string.
"""

from enum import Enum
from typing import Iterator, Tuple

OPENERS = "{["
CLOSERS = "}]"
PAIRS = {"}": "{", "]": "["}


class ScanState(str, Enum):
    """Lexical state of the scanner before a character is consumed."""
    NORMAL = "normal"
    IN_STRING = "in_string"
    ESCAPED = "escaped"


def advance(state: ScanState, ch: str) -> ScanState:
    """Return the state after consuming ``ch`` in ``state``."""
    if state is ScanState.ESCAPED:
        return ScanState.IN_STRING
    if state is ScanState.IN_STRING:
        if ch == "\\":
            return ScanState.ESCAPED
        if ch == '"':
            return ScanState.NORMAL
        return ScanState.IN_STRING
    if ch == '"':
        return ScanState.IN_STRING
    return ScanState.NORMAL


def scan(text: str) -> Iterator[Tuple[int, str, ScanState]]:
    """Yield ``(index, char, state)`` where state is the one the char is read in."""
    state = ScanState.NORMAL
    for index, ch in enumerate(text):
        yield index, ch, state
        state = advance(state, ch)


def is_structural(ch: str, state: ScanState) -> bool:
    return state is ScanState.NORMAL and ch != '"'


def final_state(text: str) -> ScanState:
    """State after consuming the whole text."""
    state = ScanState.NORMAL
    for ch in text:
        state = advance(state, ch)
    return state


def brace_depth(text: str) -> int:
    """Net ``{``/``}`` depth of the text, ignoring quoted content."""
    depth = 0
    for _, ch, state in scan(text):
        if state is not ScanState.NORMAL:
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
    return depth


def next_significant(text: str, start: int, skip: str = "") -> str:
    """First non-whitespace character at or after ``start``, also passing over ``skip``; '' at end of input."""
    for ch in text[start:]:
        if not ch.isspace() and ch not in skip:
            return ch
    return ""
