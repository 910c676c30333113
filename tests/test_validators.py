# SPDX-License-Identifier: AGPL-3.0-only

"""
Tests for request validation schemas and configuration.
"""

import uuid
import pytest
from marshmallow import ValidationError

from sentiment.config import NormalizerConfig
from sentiment.prompt_pack import (
    build_post_sentiment_prompt,
    build_sentiment_prompt,
    build_system_prompt,
    format_comments,
    get_locale_prompt,
)
from sentiment.validators import PostSentimentRequestSchema, SentimentRequestSchema, validate_request


class TestSentimentRequestSchema:
    """Test SentimentRequestSchema."""

    def test_defaults(self):
        data = validate_request(SentimentRequestSchema(), {"keywords": "acme"})
        assert data == {"keywords": "acme", "locale": "he"}

    def test_camel_case_keys(self):
        brand_id = str(uuid.uuid4())
        data = validate_request(SentimentRequestSchema(), {
            "keywords": "acme shoes",
            "brandName": "Acme",
            "brandId": brand_id,
            "locale": "en",
            "unexpected": True,
        })
        assert data["brand_name"] == "Acme"
        assert data["brand_id"] == uuid.UUID(brand_id)
        assert "unexpected" not in data

    def test_missing_keywords(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_request(SentimentRequestSchema(), {"locale": "en"})
        assert "keywords" in exc_info.value.messages

    def test_invalid_locale_and_brand_id(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_request(SentimentRequestSchema(), {"keywords": "acme", "locale": "fr", "brandId": "nope"})
        assert "locale" in exc_info.value.messages
        assert "brandId" in exc_info.value.messages

    def test_non_object_payload(self):
        with pytest.raises(ValidationError):
            validate_request(SentimentRequestSchema(), ["keywords"])


class TestPostSentimentRequestSchema:
    """Test PostSentimentRequestSchema."""

    def test_valid(self):
        post_id = str(uuid.uuid4())
        data = validate_request(PostSentimentRequestSchema(), {
            "postId": post_id,
            "postContent": "New collection out now",
            "platform": "instagram",
            "engagement": {"likes": 10, "comments": 2},
        })
        assert data["post_id"] == uuid.UUID(post_id)
        assert data["engagement"] == {"likes": 10, "comments": 2}
        assert data["locale"] == "he"

    def test_negative_engagement(self):
        with pytest.raises(ValidationError):
            validate_request(PostSentimentRequestSchema(), {
                "postId": str(uuid.uuid4()),
                "postContent": "x",
                "engagement": {"likes": -1},
            })


class TestNormalizerConfig:
    """Test NormalizerConfig."""

    def test_defaults(self, monkeypatch):
        for name in ("SENTIMENT_MAX_REPORT_URLS", "SENTIMENT_DEFAULT_LOCALE", "SENTIMENT_SCORE_DIVERGENCE_THRESHOLD"):
            monkeypatch.delenv(name, raising=False)
        config = NormalizerConfig()
        assert config.get_normalizer_config() == {
            "score_divergence_threshold": 10,
            "max_report_urls": 10,
            "title_context_chars": 100,
            "default_locale": "he",
        }

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("SENTIMENT_MAX_REPORT_URLS", "5")
        monkeypatch.setenv("SENTIMENT_DEFAULT_LOCALE", "en")
        config = NormalizerConfig()
        assert config.max_report_urls == 5
        assert config.default_locale == "en"

    def test_validate_ai_config(self):
        assert NormalizerConfig(openai_api_key="k").validate_ai_config()
        assert not NormalizerConfig(openai_api_key=None).validate_ai_config()
        assert NormalizerConfig(openai_api_key="k").get_ai_config()["openai"]["api_key"] == "k"


class TestPromptPack:
    """Test prompt construction."""

    def test_locale_fallback(self):
        assert get_locale_prompt("fr")["language"] == "English"
        assert get_locale_prompt("he")["language"] == "Hebrew"

    def test_system_prompt(self):
        assert build_system_prompt("he").endswith("Language: Hebrew.")

    def test_sentiment_prompt(self):
        prompt = build_sentiment_prompt("acme shoes", brand_name="Acme", locale="en")
        assert '"Acme"' in prompt
        assert "Keywords: acme shoes" in prompt
        assert '"sentiment_snapshot"' in prompt

    def test_post_system_prompt(self):
        assert build_system_prompt("en", subject="post").startswith("You are a post sentiment analysis expert.")

    def test_format_comments(self):
        assert format_comments([]) == ""
        text = format_comments([{"text": "Great", "author": "dana"}, {"text": "Meh"}], locale="en")
        assert text.splitlines()[2:] == ['1. "Great" by @dana', '2. "Meh" by @Unknown']

    def test_post_prompt_truncates_content(self):
        prompt = build_post_sentiment_prompt("x" * 600, locale="en")
        assert '"' + "x" * 500 + '"' in prompt
        assert "x" * 501 not in prompt
        assert "Platform:" not in prompt
        assert '"overall_sentiment"' in prompt

    def test_post_prompt_hebrew(self):
        prompt = build_post_sentiment_prompt(
            "פוסט", platform="facebook", engagement={"likes": 3}, comments=[{"text": "יפה", "author": "a"}], locale="he"
        )
        assert "פלטפורמה: facebook" in prompt
        assert "מעורבות: 3 לייקים, 0 תגובות, 0 שיתופים" in prompt
        assert '1. "יפה" מאת @a' in prompt
