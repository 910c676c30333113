# SPDX-License-Identifier: AGPL-3.0-only

"""
Sentiment service orchestrator: validate, prompt, call the model, normalize.
"""

import logging
from typing import Any, Dict, List, Optional

from common.llm_client import LLMClient
from common.metrics import AnalysisMetrics

from .comments import process_post_sentiment
from .config import NormalizerConfig, config as default_config
from .errors import NormalizerError
from .normalizer import SentimentNormalizer
from .prompt_pack import build_post_sentiment_prompt, build_sentiment_prompt, build_system_prompt
from .scoring import sentiment_label
from .validators import PostSentimentRequestSchema, SentimentRequestSchema, validate_request

logger = logging.getLogger(__name__)


class SentimentService:
    """Service to analyze brand and post sentiment with a web-searching model."""

    def __init__(self, llm_client: Optional[LLMClient] = None, config: Optional[NormalizerConfig] = None):
        """
        Initialize the sentiment service.

        Args:
            llm_client: Client for the generative call (built from config when omitted)
            config: Service and normalizer settings
        """
        self.config = config or default_config
        ai = self.config.get_ai_config()
        self.llm_client = llm_client or LLMClient(
            model=ai["openai"]["model"],
            api_key=ai["openai"]["api_key"],
            base_url=ai["openai"]["base_url"],
            timeout=ai["timeout"],
            max_retries=ai["max_retries"],
            web_search=ai["web_search"],
        )
        self.normalizer = SentimentNormalizer(config=self.config)
        self.schema = SentimentRequestSchema()
        self.post_schema = PostSentimentRequestSchema()

    def analyze(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Main processing pipeline.

        Args:
            payload: {keywords, brandName?, brandId?, locale?}

        Returns:
            {result: {}, metrics: {}}

        Raises:
            marshmallow.ValidationError: If the payload is invalid
            LLMError: If the model call fails after retries
            NormalizerError: If the completion cannot be turned into a report
        """
        metrics = AnalysisMetrics()
        params = validate_request(self.schema, payload)
        locale = params.get("locale") or self.config.default_locale

        prompt = build_sentiment_prompt(params["keywords"], params.get("brand_name"), locale)
        llm_response = self.llm_client.call(prompt, system_prompt=build_system_prompt(locale))
        metrics.record_llm_call(llm_response.get("tokens", 0))

        try:
            report = self.normalizer.normalize(
                llm_response.get("text") or "",
                tool_urls=llm_response.get("citations"),
                generation=llm_response.get("generation"),
                locale=locale,
                metrics=metrics,
            )
        except NormalizerError as e:
            metrics.record_error(e.message)
            logger.error("Sentiment normalization failed: %s", e.message)
            raise

        result = report.to_dict()
        result["sentiment_label"] = sentiment_label(report.overall_score)
        metrics.record_citations(_count_urls(result))
        metrics.finish()

        return {
            "result": result,
            "metrics": metrics.to_dict()
        }

    def analyze_post(self, payload: Dict[str, Any], real_comments: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        """
        Analyze the sentiment of a single social post.

        Args:
            payload: {postId, postContent, platform?, engagement?, locale?}
            real_comments: ``{text, author}`` comments fetched from the platform

        Returns:
            {result: {}, metrics: {}}

        Raises:
            marshmallow.ValidationError: If the payload is invalid
            LLMError: If the model call fails after retries
            NormalizerError: If the completion has no usable sentiment
        """
        metrics = AnalysisMetrics()
        params = validate_request(self.post_schema, payload)
        locale = params.get("locale") or self.config.default_locale

        prompt = build_post_sentiment_prompt(
            params["post_content"],
            platform=params.get("platform"),
            engagement=params.get("engagement"),
            comments=real_comments,
            locale=locale,
        )
        llm_response = self.llm_client.call(prompt, system_prompt=build_system_prompt(locale, subject="post"))
        metrics.record_llm_call(llm_response.get("tokens", 0))

        try:
            result = process_post_sentiment(llm_response.get("text") or "", real_comments)
        except NormalizerError as e:
            metrics.record_error(e.message)
            logger.error("Post sentiment processing failed for %s: %s", params["post_id"], e.message)
            raise
        metrics.finish()

        return {
            "result": result,
            "metrics": metrics.to_dict()
        }


def _count_urls(value: Any) -> int:
    if isinstance(value, list):
        return sum(_count_urls(v) for v in value)
    if isinstance(value, dict):
        return sum(1 if k == "url" else _count_urls(v) for k, v in value.items())
    return 0
