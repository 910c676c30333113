# SPDX-License-Identifier: AGPL-3.0-only

"""
Relative post scoring.

A post is scored 0-100 against the brand's top 10 posts of the same platform
and post type (stories against stories, reels against reels), plus bonuses
for objectively good metrics.
"""

import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

TOP_POSTS = 10
MIN_ENGAGEMENT_THRESHOLD = 5
MIN_IMPRESSIONS_THRESHOLD = 10
MIN_ENGAGEMENT_RATE_THRESHOLD = 0.5
VIDEO_MARKERS = (".mp4", ".mov", ".avi", ".webm", "video")


class PostMetrics(BaseModel):
    impressions: float = 0
    engagement: float = Field(0, description="likes + comments + shares")
    engagement_rate: float = Field(0, description="Percentage")


class PostWithMetrics(BaseModel):
    id: str
    platform: str
    post_type: str
    metrics: PostMetrics


class Benchmarks(BaseModel):
    top_impressions: float = 0
    top_engagement: float = 0
    top_engagement_rate: float = 0
    avg_impressions: float = 0
    avg_engagement: float = 0
    avg_engagement_rate: float = 0


def detect_post_type(platform: str, metadata: Optional[Dict[str, Any]] = None, media_urls: Optional[List[str]] = None) -> str:
    """Infer the post type from explicit metadata, else from platform and media."""
    platform = (platform or "").lower()
    metadata = metadata or {}
    media_type = str(metadata.get("mediaType") or "").lower()
    media_count = len(media_urls or [])
    has_video = any(marker in url.lower() for url in media_urls or [] for marker in VIDEO_MARKERS)

    for key in ("contentType", "format", "postType"):
        if metadata.get(key):
            return str(metadata[key]).lower()

    if platform == "instagram":
        if "story" in media_type or metadata.get("isStory"):
            return "story"
        if "reel" in media_type or metadata.get("isReel"):
            return "reel"
        if media_count > 1:
            return "carousel"
        return "reel" if has_video else "feed"

    if platform == "facebook":
        if "story" in media_type or metadata.get("isStory"):
            return "story"
        return "video" if has_video else "feed"

    if platform in ("x", "twitter"):
        return "thread" if metadata.get("isThread") or media_count > 4 else "post"

    if platform == "tiktok":
        return "carousel" if media_count > 1 else "video"

    if platform == "youtube":
        # Shorts can't be told apart from metadata alone
        return "video"

    if platform == "linkedin":
        return "post"

    if has_video:
        return "video"
    if media_count > 1:
        return "carousel"
    return "post"


def _composite(post: PostWithMetrics) -> float:
    m = post.metrics
    return m.impressions * (m.engagement_rate / 100) + m.engagement


def calculate_benchmarks(posts: List[PostWithMetrics], platform: str, post_type: str) -> Benchmarks:
    """
    Benchmarks from the top 10 posts of the same platform and type.

    Minimum thresholds keep a weak history from inflating scores; with no
    comparable posts every benchmark is zero.
    """
    same_kind = [
        p for p in posts
        if p.platform.lower() == platform.lower() and p.post_type.lower() == post_type.lower()
    ]
    if not same_kind:
        return Benchmarks()

    top = sorted(same_kind, key=_composite, reverse=True)[:TOP_POSTS]
    count = len(top)

    return Benchmarks(
        top_impressions=max(max(p.metrics.impressions for p in top), MIN_IMPRESSIONS_THRESHOLD),
        top_engagement=max(max(p.metrics.engagement for p in top), MIN_ENGAGEMENT_THRESHOLD),
        top_engagement_rate=max(max(p.metrics.engagement_rate for p in top), MIN_ENGAGEMENT_RATE_THRESHOLD),
        avg_impressions=max(sum(p.metrics.impressions for p in top) / count, MIN_IMPRESSIONS_THRESHOLD),
        avg_engagement=max(sum(p.metrics.engagement for p in top) / count, MIN_ENGAGEMENT_THRESHOLD),
        avg_engagement_rate=max(sum(p.metrics.engagement_rate for p in top) / count, MIN_ENGAGEMENT_RATE_THRESHOLD),
    )


def _log_ratio(value: float, top: float) -> float:
    if top <= 0:
        return 0.0
    return min(1.0, math.log10(1 + max(value, 0)) / math.log10(1 + top))


def _absolute_bonus(m: PostMetrics) -> int:
    bonus = 0
    if m.engagement >= 20:
        bonus += 15
    elif m.engagement >= 10:
        bonus += 10
    elif m.engagement >= 5:
        bonus += 5

    if m.engagement_rate >= 5:
        bonus += 10
    elif m.engagement_rate >= 2:
        bonus += 5
    elif m.engagement_rate >= 1:
        bonus += 2

    if m.impressions >= 1000:
        bonus += 5
    elif m.impressions >= 500:
        bonus += 3
    elif m.impressions >= 100:
        bonus += 1
    return min(30, bonus)


def _benchmark_bonus(m: PostMetrics, b: Benchmarks) -> int:
    bonus = 0
    if b.top_impressions > 0 and m.impressions >= b.top_impressions:
        bonus += 3
    if b.top_engagement > 0 and m.engagement >= b.top_engagement:
        bonus += 4
    if b.top_engagement_rate > 0 and m.engagement_rate >= b.top_engagement_rate:
        bonus += 3
    return min(10, bonus)


def calculate_smart_score(post: PostWithMetrics, all_posts: List[PostWithMetrics]) -> int:
    """
    Score a post 0-100.

    Relative performance against the benchmarks is worth up to 70 points
    (engagement 50%, impressions 25%, engagement rate 25%), absolute
    metrics up to 30, and matching the top benchmarks up to 10. Posts with
    fewer than two engagements are capped at 40.
    """
    m = post.metrics
    b = calculate_benchmarks(all_posts, post.platform, post.post_type)

    if b.top_impressions == 0 and b.top_engagement == 0 and b.top_engagement_rate == 0:
        return min(50, int(math.floor(m.engagement_rate * 2 + min(m.engagement / 100, 30))))

    rate_ratio = min(1.0, m.engagement_rate / b.top_engagement_rate) if b.top_engagement_rate > 0 else 0.0
    relative = (
        _log_ratio(m.impressions, b.top_impressions) * 0.25
        + _log_ratio(m.engagement, b.top_engagement) * 0.50
        + rate_ratio * 0.25
    ) * 70

    score = relative + _absolute_bonus(m) + _benchmark_bonus(m, b)
    if m.engagement < 2:
        score = min(40, score)
    score = min(100, max(0, score))
    return int(math.floor(score + 0.5))


def _number(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def calculate_scores_for_posts(posts: List[Dict[str, Any]]) -> Dict[str, int]:
    """
    Score a batch of posts against each other.

    Args:
        posts: ``{id, platform, metadata?, mediaUrls?, metrics}`` dicts where
            metrics holds ``impressions``, ``engagement`` and ``engagementRate``

    Returns:
        Mapping of post id to score
    """
    if not posts:
        return {}

    typed = []
    for post in posts:
        metrics = post.get("metrics") or {}
        typed.append(PostWithMetrics(
            id=str(post["id"]),
            platform=post.get("platform") or "",
            post_type=detect_post_type(post.get("platform") or "", post.get("metadata") or {}, post.get("mediaUrls")),
            metrics=PostMetrics(
                impressions=_number(metrics.get("impressions")),
                engagement=_number(metrics.get("engagement")),
                engagement_rate=_number(metrics.get("engagementRate", metrics.get("engagement_rate"))),
            ),
        ))

    return {post.id: max(0, min(100, calculate_smart_score(post, typed))) for post in typed}
