# SPDX-License-Identifier: AGPL-3.0-only

"""
Brand sentiment response normalization.

Turns unreliable language-model completions into validated sentiment reports
with real, deduplicated citations.
"""

from .boundary import extract_json_boundary
from .errors import InvalidReportShape, MalformedCompletion, NormalizerError
from .models import SentimentReport, ToolCallURL
from .normalizer import SentimentNormalizer, normalize_sentiment_result
from .repair import parse_completion, repair_json
from .scoring import reconcile_score
from .urls import clean_url, dedupe_urls, is_valid_url

__all__ = [
    "extract_json_boundary",
    "repair_json",
    "parse_completion",
    "is_valid_url",
    "clean_url",
    "dedupe_urls",
    "reconcile_score",
    "SentimentNormalizer",
    "normalize_sentiment_result",
    "SentimentReport",
    "ToolCallURL",
    "NormalizerError",
    "MalformedCompletion",
    "InvalidReportShape",
]
