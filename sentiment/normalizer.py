# SPDX-License-Identifier: AGPL-3.0-only

"""
Response normalization for brand sentiment outputs.

Turns a raw completion plus whatever citation URLs the surrounding tool loop
gathered into a validated ``SentimentReport``. The normalizer performs no I/O
and holds no shared state; one instance can serve concurrent requests.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from pydantic import ValidationError

from common.metrics import AnalysisMetrics

from .citations import inject_citations, scrub_urls
from .config import NormalizerConfig, config as default_config
from .errors import InvalidReportShape
from .models import SentimentReport, ToolCallURL, to_percentage
from .repair import parse_completion_traced
from .scoring import reconcile_score
from .url_sources import DEFAULT_STRATEGIES, Strategy, UrlSource, select_strategy
from .urls import dedupe_urls

logger = logging.getLogger(__name__)

ToolUrlLike = Union[ToolCallURL, Dict[str, Any], str]


def has_required_fields(data: Dict[str, Any]) -> bool:
    """A report needs overall_score, or both positive and negative percentages."""
    return "overall_score" in data or ("positive_percentage" in data and "negative_percentage" in data)


def coerce_tool_urls(tool_urls: Optional[Iterable[ToolUrlLike]]) -> List[ToolCallURL]:
    """Accept ToolCallURL models, ``{url, title?, snippet?}`` dicts or bare strings."""
    coerced = []
    for item in tool_urls or []:
        if isinstance(item, ToolCallURL):
            coerced.append(item)
        elif isinstance(item, str) and item:
            coerced.append(ToolCallURL(url=item))
        elif isinstance(item, dict) and isinstance(item.get("url"), str):
            coerced.append(ToolCallURL(url=item["url"], title=item.get("title"), snippet=item.get("snippet")))
    return coerced


class SentimentNormalizer:
    """Normalize sentiment completions into reports."""

    def __init__(self, config: Optional[NormalizerConfig] = None, strategies: Optional[Sequence[Strategy]] = None):
        """
        Args:
            config: Normalizer settings (defaults to the global config)
            strategies: URL strategies in priority order
        """
        self.config = config or default_config
        self.strategies = list(strategies or DEFAULT_STRATEGIES)

    def normalize(
        self,
        completion: str,
        tool_urls: Optional[Iterable[ToolUrlLike]] = None,
        generation: Optional[Dict[str, Any]] = None,
        locale: Optional[str] = None,
        metrics: Optional[AnalysisMetrics] = None,
    ) -> SentimentReport:
        """
        Build a report from a raw completion.

        Args:
            completion: Raw model completion
            tool_urls: URLs gathered by the tool loop
            generation: Raw multi-step generation record (steps, tool calls/results)
            locale: Locale for placeholder texts
            metrics: Optional per-request metrics to record recovery and URL counts in

        Returns:
            Validated SentimentReport

        Raises:
            MalformedCompletion: If the completion cannot be parsed
            InvalidReportShape: If required score fields are missing
        """
        data, recovery = parse_completion_traced(completion)
        if metrics:
            metrics.record_recovery(recovery)

        if not has_required_fields(data):
            raise InvalidReportShape(
                "AI response missing required fields: overall_score or positive/negative percentages",
                list(data.keys()),
            )

        data = dict(data)
        data["overall_score"] = self.reconcile(data, metrics)

        pool = self.collect_citations(completion, tool_urls, generation, data, metrics)
        data = inject_citations(
            data,
            pool,
            locale=locale or self.config.default_locale,
            max_urls=self.config.max_report_urls,
        )
        data = scrub_urls(data)

        try:
            return SentimentReport(**data)
        except (ValidationError, TypeError) as e:
            raise InvalidReportShape(f"AI response has an invalid report shape: {e}", list(data.keys()))

    def reconcile(self, data: Dict[str, Any], metrics: Optional[AnalysisMetrics] = None) -> int:
        provided = data.get("overall_score", 0)
        score = reconcile_score(
            data.get("positive_percentage", 0),
            data.get("neutral_percentage", 0),
            provided,
            threshold=self.config.score_divergence_threshold,
        )
        if score != provided:
            logger.debug("overall_score reconciled from %r to %d", provided, score)
        if metrics:
            metrics.record_score(to_percentage(provided), score)
        return score

    def collect_citations(
        self,
        completion: str,
        tool_urls: Optional[Iterable[ToolUrlLike]],
        generation: Optional[Dict[str, Any]],
        data: Dict[str, Any],
        metrics: Optional[AnalysisMetrics] = None,
    ) -> List[ToolCallURL]:
        """Collect, clean and deduplicate the citation URL pool."""
        source = UrlSource(
            text=completion or "",
            tool_urls=coerce_tool_urls(tool_urls),
            generation=generation,
            report=data,
            context_chars=self.config.title_context_chars,
        )
        strategy, candidates = select_strategy(self.strategies, source)
        pool = dedupe_urls(candidates)
        if len(pool) < len(candidates):
            logger.debug("URL pool: %d candidates, %d valid and unique", len(candidates), len(pool))
        if metrics:
            metrics.record_urls(strategy, len(candidates), len(pool))
        return pool


def normalize_sentiment_result(
    completion: str,
    tool_urls: Optional[Iterable[ToolUrlLike]] = None,
    generation: Optional[Dict[str, Any]] = None,
    locale: Optional[str] = None,
    config: Optional[NormalizerConfig] = None,
) -> SentimentReport:
    """
    Normalize an LLM response to the sentiment report schema.
    Returns: SentimentReport {overall_score, *_percentage, *_themes, report}
    """
    return SentimentNormalizer(config=config).normalize(completion, tool_urls, generation, locale)
