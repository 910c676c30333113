# SPDX-License-Identifier: AGPL-3.0-only

"""
Pytest configuration and fixtures.

This module provides shared fixtures and configuration for all tests.
"""

import json
import pytest
from unittest.mock import Mock

from sentiment.config import NormalizerConfig
from sentiment.models import ToolCallURL
from sentiment.normalizer import SentimentNormalizer


@pytest.fixture
def normalizer_config():
    """Normalizer config with the stock constants, independent of the environment."""
    return NormalizerConfig(
        score_divergence_threshold=10,
        max_report_urls=10,
        title_context_chars=100,
        default_locale="en",
        openai_api_key="test-key",
    )


@pytest.fixture
def normalizer(normalizer_config):
    """Normalizer bound to the test config."""
    return SentimentNormalizer(config=normalizer_config)


@pytest.fixture
def fenced_completion():
    """Completion with prose, a fenced block and a trailing comma."""
    return (
        'Here is the report:\n```json\n'
        '{"overall_score":10,"positive_percentage":58,"negative_percentage":15,'
        '"neutral_percentage":27,"positive_themes":["a"],"negative_themes":["b"],}\n'
        '```\nThanks!'
    )


@pytest.fixture
def report_with_placeholder():
    """A parsed report whose only citation is a placeholder URL."""
    return {
        "overall_score": 65,
        "positive_percentage": 50,
        "negative_percentage": 20,
        "neutral_percentage": 30,
        "positive_themes": ["service"],
        "negative_themes": [],
        "report": {
            "sentiment_snapshot": [
                {"source": "Blog", "sentiment_summary": "Good", "url": "https://example.com/post"}
            ]
        },
    }


@pytest.fixture
def search_generation():
    """Multi-step generation record with one web-search tool result."""
    return {
        "steps": [
            {
                "toolResults": [
                    {
                        "toolCallId": "call_1",
                        "toolName": "web_search",
                        "result": [
                            {"url": "https://news.co.il/a?utm=x", "title": "News A"},
                            {"url": "https://blog.com/b/", "title": "Blog B", "snippet": "Mixed reviews"},
                        ],
                    }
                ]
            }
        ]
    }


@pytest.fixture
def pool_urls():
    """Two real, clean citation URLs."""
    return [
        ToolCallURL(url="https://real.com/1", title="Real One"),
        ToolCallURL(url="https://real.com/2"),
    ]


@pytest.fixture
def responses_payload():
    """OpenAI Responses API payload with one web search and one cited message."""
    report = {
        "overall_score": 70,
        "positive_percentage": 60,
        "negative_percentage": 20,
        "neutral_percentage": 20,
        "positive_themes": ["price"],
        "negative_themes": ["support"],
    }
    return {
        "id": "resp_1",
        "output": [
            {
                "type": "web_search_call",
                "id": "ws_1",
                "status": "completed",
                "action": {
                    "type": "search",
                    "query": "acme reviews",
                    "sources": [{"type": "url", "url": "https://reviews.com/acme"}],
                },
            },
            {
                "type": "message",
                "role": "assistant",
                "content": [
                    {
                        "type": "output_text",
                        "text": json.dumps(report),
                        "annotations": [
                            {"type": "url_citation", "url": "https://news.com/acme?utm_source=openai", "title": "Acme news"}
                        ],
                    }
                ],
            },
        ],
        "usage": {"input_tokens": 100, "output_tokens": 50, "total_tokens": 150},
    }


@pytest.fixture
def mock_llm_client():
    """Mock LLM client returning a well-formed report."""
    client = Mock()
    client.call.return_value = {
        "text": json.dumps({
            "overall_score": 72,
            "positive_percentage": 58,
            "negative_percentage": 15,
            "neutral_percentage": 27,
            "positive_themes": ["quality"],
            "negative_themes": ["price"],
            "report": {"sentiment_snapshot": [{"source": "S", "sentiment_summary": "ok", "url": "https://example.com/x"}]},
        }),
        "tokens": 120,
        "generation": {"toolResults": []},
        "citations": [{"url": "https://ynet.co.il/article/1", "title": "Ynet"}],
    }
    return client


# Pytest configuration
def pytest_configure(config):
    """Register the suite's markers."""
    config.addinivalue_line(
        "markers", "unit: fast test of a single module"
    )
    config.addinivalue_line(
        "markers", "integration: service pipeline over a mocked LLM client"
    )
    config.addinivalue_line(
        "markers", "slow: exhaustive input sweep; deselect with -m 'not slow'"
    )


def pytest_collection_modifyitems(config, items):
    """Service tests run the whole pipeline; everything else is a unit test."""
    for item in items:
        if item.path.name == "test_service.py" or "integration" in item.name:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
