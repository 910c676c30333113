# SPDX-License-Identifier: AGPL-3.0-only

"""
Post sentiment: merge the model's per-comment verdicts with the real comments
fetched from the platform.
"""

from typing import Any, Dict, List, Optional

from .errors import InvalidReportShape
from .repair import parse_completion

MAX_COMMENT_TEXT_MATCH_LENGTH = 50
MAX_COMMENTS_TO_RETURN = 10
SENTIMENT_ORDER = {"positive": 0, "neutral": 1, "negative": 2}
SENTIMENTS = ("positive", "negative", "neutral")


def _sentiment(value: Any, default: str = "neutral") -> str:
    value = str(value or "").lower()
    return value if value in SENTIMENTS else default


def comments_match(text1: str, text2: str) -> bool:
    """Fuzzy match on the first 50 characters, case-insensitive, either way round."""
    t1 = (text1 or "").lower()[:MAX_COMMENT_TEXT_MATCH_LENGTH]
    t2 = (text2 or "").lower()[:MAX_COMMENT_TEXT_MATCH_LENGTH]
    if not t1 or not t2:
        return False
    return t1 in t2 or t2 in t1


def sort_comments(comments: List[Dict[str, str]]) -> List[Dict[str, str]]:
    """Positive first, then neutral, then negative; stable within a group."""
    return sorted(comments, key=lambda c: SENTIMENT_ORDER.get(c.get("sentiment"), 1))


def merge_comment_sentiment(real_comments: List[Dict[str, Any]], ai_comments: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """
    Give each real comment the sentiment the model assigned to it.

    Args:
        real_comments: ``{text, author, sentiment?}`` dicts from the platform
        ai_comments: ``sample_comments`` from the model's response

    Returns:
        Sorted comments, capped at ``MAX_COMMENTS_TO_RETURN``; model comments
        that match no real comment are kept after the real ones
    """
    ai_comments = [c for c in ai_comments or [] if isinstance(c, dict)]
    merged = []
    for real in real_comments:
        match = next(
            (c for c in ai_comments if c.get("text") and real.get("text") and comments_match(c["text"], real["text"])),
            None,
        )
        merged.append({
            "text": real.get("text", ""),
            "sentiment": _sentiment((match or {}).get("sentiment") or real.get("sentiment")),
            "author": real.get("author") or "Unknown",
        })

    for ai in ai_comments:
        if any(r.get("text") and ai.get("text") and comments_match(r["text"], ai["text"]) for r in real_comments):
            continue
        merged.append({
            "text": ai.get("text") or "",
            "sentiment": _sentiment(ai.get("sentiment")),
            "author": ai.get("author") or "Unknown",
        })

    return sort_comments(merged)[:MAX_COMMENTS_TO_RETURN]


def sentiment_distribution(comments: List[Dict[str, str]]) -> Dict[str, int]:
    """Rounded percentage of each sentiment; ``mixed`` is always 0."""
    total = len(comments)
    if not total:
        return {"positive": 0, "negative": 0, "neutral": 0, "mixed": 0}

    def share(label: str) -> int:
        count = sum(1 for c in comments if c.get("sentiment") == label)
        return int(count * 100 / total + 0.5)

    return {
        "positive": share("positive"),
        "negative": share("negative"),
        "neutral": share("neutral"),
        "mixed": 0,
    }


def process_post_sentiment(completion: str, real_comments: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    """
    Parse a post-sentiment completion and merge it with real comments.

    Raises:
        MalformedCompletion: If the completion cannot be parsed
        InvalidReportShape: If ``overall_sentiment`` is missing
    """
    data = parse_completion(completion)
    if "overall_sentiment" not in data:
        raise InvalidReportShape("AI response missing required field: overall_sentiment", list(data.keys()))

    result = dict(data)
    real_comments = real_comments or []
    if real_comments:
        ai_comments = result.get("sample_comments")
        result["sample_comments"] = merge_comment_sentiment(
            real_comments, ai_comments if isinstance(ai_comments, list) else []
        )
        result["sentiment_distribution"] = sentiment_distribution(result["sample_comments"])
    return result
