# SPDX-License-Identifier: AGPL-3.0-only

"""
URL validation, cleaning and de-duplication for report citations.

Invalid candidates are always dropped, never repaired.
"""

import re
from typing import Iterable, List, Optional
from urllib.parse import urlsplit

from .models import ToolCallURL

BANNED_URL_MARKERS = ("example.com", "localhost", "127.0.0.1", "placeholder", "...", "…")
URL_PATTERN = re.compile(r"https?://[^\s\"'<>`]+", re.IGNORECASE)
TRAILING_PUNCTUATION = ".,;:!?)]}"
DEFAULT_PORTS = {"http": 80, "https": 443}


def is_valid_url(url: str) -> bool:
    """Check that a URL is a real, complete HTTP(S) link."""
    if not isinstance(url, str) or not url:
        return False

    lowered = url.lower()
    if any(marker in lowered for marker in BANNED_URL_MARKERS):
        return False
    if not lowered.startswith(("http://", "https://")):
        return False

    try:
        parts = urlsplit(url)
        hostname = parts.hostname or ""
        # Non-numeric or out-of-range ports raise here
        parts.port
    except ValueError:
        return False

    if len(hostname) < 3 or " " in hostname or ".." in hostname:
        return False
    return True


def clean_url(url: str) -> Optional[str]:
    """
    Reduce a URL to ``scheme://host[:port]/path``.

    Userinfo, query string and fragment are discarded, the default port for
    the scheme is dropped and trailing slashes removed. IPv6 hosts keep their
    brackets. Returns None when the URL is invalid.
    """
    if not is_valid_url(url):
        return None
    parts = urlsplit(url.strip())
    scheme = parts.scheme.lower()
    host = parts.hostname
    if ":" in host:
        host = f"[{host}]"
    port = parts.port
    if port is not None and port != DEFAULT_PORTS.get(scheme):
        host = f"{host}:{port}"
    path = parts.path.rstrip("/")
    return f"{scheme}://{host}{path}"


def is_placeholder_url(url) -> bool:
    """True for URL-ish values that must be replaced or removed."""
    return not is_valid_url(url)


def domain_label(url: str) -> str:
    """Domain name of a URL without ``www.`` and the TLD: ``https://www.ynet.co.il`` -> ``ynet``."""
    try:
        hostname = urlsplit(url).hostname or ""
    except ValueError:
        return ""
    if hostname.startswith("www."):
        hostname = hostname[4:]
    return hostname.split(".")[0]


def strip_trailing_punctuation(url: str) -> str:
    return url.rstrip(TRAILING_PUNCTUATION)


def title_from_context(text: str, url_start: int, url: str, context_chars: int = 100) -> str:
    """
    Guess a title for a URL found in free text.

    Args:
        text: Text the URL was found in
        url_start: Index where the URL begins
        url: The URL itself
        context_chars: How much preceding text to look at

    Returns:
        Quoted or markdown-bracketed text right before the URL, else the
        URL's domain label
    """
    context = text[max(0, url_start - context_chars):url_start]

    markdown = re.search(r"\[([^\[\]]+)\]\(\s*$", context)
    if markdown:
        return markdown.group(1).strip()

    quoted = re.search(r"[\"“”]([^\"“”]*\w[^\"“”]*)[\"“”]\s*[:\-–—(]?\s*$", context)
    if quoted:
        return quoted.group(1).strip()

    return domain_label(url)


def dedupe_urls(entries: Iterable[ToolCallURL]) -> List[ToolCallURL]:
    """
    Clean, validate and collapse URL entries by their cleaned URL.

    First-seen order is kept; a merged entry takes the first non-empty
    title and snippet seen for that URL.
    """
    merged = {}
    for entry in entries:
        cleaned = clean_url(entry.url)
        if not cleaned:
            continue
        existing = merged.get(cleaned)
        if existing is None:
            merged[cleaned] = ToolCallURL(url=cleaned, title=entry.title, snippet=entry.snippet)
            continue
        if not existing.title and entry.title:
            existing.title = entry.title
        if not existing.snippet and entry.snippet:
            existing.snippet = entry.snippet
    return list(merged.values())
