"""
Per-request analysis metrics: model usage and how the completion was recovered.
"""
import time
from typing import Any, Dict, List, Optional


class AnalysisMetrics:
    """
    Counters for one analysis request.

    Besides LLM usage this records which recovery path produced the JSON
    (direct, extracted, repaired or scraped), which URL strategy supplied the
    citation pool, and how many candidate URLs were lost to validation,
    de-duplication or the citation budget.
    """

    def __init__(self):
        self.started_at = time.time()
        self.finished_at: Optional[float] = None
        self.llm_calls = 0
        self.total_tokens = 0
        self.recovery: Optional[str] = None
        self.score_reconciled = False
        self.url_strategy: Optional[str] = None
        self.url_candidates = 0
        self.url_pool = 0
        self.citations = 0
        self.errors: List[str] = []

    def record_llm_call(self, tokens: int):
        self.llm_calls += 1
        self.total_tokens += tokens or 0

    def record_recovery(self, mode: str):
        self.recovery = mode

    def record_score(self, provided: int, reconciled: int):
        self.score_reconciled = provided != reconciled

    def record_urls(self, strategy: Optional[str], candidates: int, pool: int):
        """Strategy that yielded candidates, raw candidate count and the cleaned pool size."""
        self.url_strategy = strategy
        self.url_candidates = candidates
        self.url_pool = pool

    def record_citations(self, count: int):
        self.citations = count

    def record_error(self, error: str):
        self.errors.append(error)

    def finish(self):
        self.finished_at = time.time()

    @property
    def urls_dropped(self) -> int:
        """Candidates that did not end up cited in the report."""
        return max(0, self.url_candidates - self.citations)

    def duration(self) -> float:
        return (self.finished_at or time.time()) - self.started_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "duration_seconds": round(self.duration(), 3),
            "llm_calls": self.llm_calls,
            "total_tokens": self.total_tokens,
            "recovery": self.recovery,
            "score_reconciled": self.score_reconciled,
            "urls": {
                "strategy": self.url_strategy,
                "candidates": self.url_candidates,
                "pool": self.url_pool,
                "cited": self.citations,
                "dropped": self.urls_dropped,
            },
            "errors": self.errors,
        }
