# SPDX-License-Identifier: AGPL-3.0-only

"""
Tests for post sentiment comment merging.
"""

import json
import pytest

from sentiment.comments import (
    comments_match,
    merge_comment_sentiment,
    process_post_sentiment,
    sentiment_distribution,
    sort_comments,
)
from sentiment.errors import InvalidReportShape


@pytest.fixture
def real_comments():
    return [
        {"text": "Love it", "author": "dana", "sentiment": "neutral"},
        {"text": "Too expensive for me", "author": "yoni"},
    ]


@pytest.fixture
def ai_comments():
    return [
        {"text": "too expensive for me", "sentiment": "negative"},
        {"text": "love it", "sentiment": "positive"},
        {"text": "Bot spam", "sentiment": "weird", "author": None},
    ]


class TestCommentsMatch:
    """Test fuzzy comment matching."""

    def test_case_insensitive_containment(self):
        assert comments_match("Great product!!", "great product")
        assert comments_match("great product", "Great product!!")

    def test_only_first_50_characters(self):
        prefix = "x" * 50
        assert comments_match(prefix + "one ending", prefix + "another ending")

    def test_empty_never_matches(self):
        assert not comments_match("", "anything")
        assert not comments_match(None, "anything")


class TestMergeCommentSentiment:
    """Test merge_comment_sentiment."""

    def test_merge(self, real_comments, ai_comments):
        merged = merge_comment_sentiment(real_comments, ai_comments)
        assert merged == [
            {"text": "Love it", "sentiment": "positive", "author": "dana"},
            {"text": "Bot spam", "sentiment": "neutral", "author": "Unknown"},
            {"text": "Too expensive for me", "sentiment": "negative", "author": "yoni"},
        ]

    def test_capped_at_ten(self):
        real = [{"text": f"comment number {i}", "author": "a"} for i in range(12)]
        assert len(merge_comment_sentiment(real, [])) == 10

    def test_real_sentiment_kept_without_match(self):
        merged = merge_comment_sentiment([{"text": "meh", "sentiment": "negative"}], [])
        assert merged == [{"text": "meh", "sentiment": "negative", "author": "Unknown"}]

    def test_sort_is_stable(self):
        comments = [
            {"text": "1", "sentiment": "negative"},
            {"text": "2", "sentiment": "positive"},
            {"text": "3", "sentiment": "negative"},
        ]
        assert [c["text"] for c in sort_comments(comments)] == ["2", "1", "3"]


class TestSentimentDistribution:
    """Test sentiment_distribution."""

    def test_rounded_shares(self):
        comments = [{"sentiment": "positive"}, {"sentiment": "positive"}, {"sentiment": "negative"}]
        assert sentiment_distribution(comments) == {"positive": 67, "negative": 33, "neutral": 0, "mixed": 0}

    def test_empty(self):
        assert sentiment_distribution([]) == {"positive": 0, "negative": 0, "neutral": 0, "mixed": 0}


class TestProcessPostSentiment:
    """Test process_post_sentiment."""

    def test_requires_overall_sentiment(self):
        with pytest.raises(InvalidReportShape):
            process_post_sentiment('{"sample_comments": []}')

    def test_without_real_comments(self):
        completion = json.dumps({"overall_sentiment": "positive", "sentiment_score": 80})
        assert process_post_sentiment(completion) == {"overall_sentiment": "positive", "sentiment_score": 80}

    def test_with_real_comments(self, real_comments, ai_comments):
        completion = "```json\n" + json.dumps({
            "overall_sentiment": "mixed",
            "sample_comments": ai_comments,
            "sentiment_distribution": {"positive": 10, "negative": 10, "neutral": 80, "mixed": 0},
        }) + "\n```"
        result = process_post_sentiment(completion, real_comments)
        assert len(result["sample_comments"]) == 3
        assert result["sentiment_distribution"] == {"positive": 33, "negative": 33, "neutral": 33, "mixed": 0}
