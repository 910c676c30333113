# SPDX-License-Identifier: AGPL-3.0-only

"""
Pydantic models for the sentiment normalizer.

The report models are lenient on input: language models return
numbers as strings, drop keys and add keys of their own. Validators coerce
what can be coerced and discard the rest, so a report that passed the shape
check never fails on a stray field.
"""

import math
import time
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, validator


def to_percentage(value: Any) -> int:
    """Coerce a model-provided number to an integer in [0, 100]."""
    if isinstance(value, bool) or value is None:
        return 0
    try:
        number = float(str(value).strip().rstrip('%'))
    except (TypeError, ValueError):
        return 0
    if math.isnan(number) or math.isinf(number):
        return 0
    return max(0, min(100, int(math.floor(number + 0.5))))


def _text_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    out = []
    for item in value:
        if isinstance(item, str):
            if item.strip():
                out.append(item)
        elif isinstance(item, (int, float)) and not isinstance(item, bool):
            out.append(str(item))
        elif isinstance(item, dict):
            label = item.get('title') or item.get('theme') or item.get('name')
            if isinstance(label, str) and label.strip():
                out.append(label)
    return out


def _optional_text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _dict_list(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


class ToolCallURL(BaseModel):
    """A URL discovered from tool results or from the completion text."""
    url: str = Field(description="Raw or cleaned URL")
    title: Optional[str] = Field(None, description="Page title, when known")
    snippet: Optional[str] = Field(None, description="Search snippet, when known")

    @validator('title', 'snippet', pre=True)
    def blank_to_none(cls, v):
        if not isinstance(v, str) or not v.strip():
            return None
        return v.strip()


class FeedbackItem(BaseModel):
    """One positive or critical feedback entry."""
    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None

    class Config:
        extra = "allow"
        frozen = True

    @validator('title', 'description', 'url', pre=True)
    def coerce_text(cls, v):
        return _optional_text(v)


class FeedbackSection(BaseModel):
    items: List[FeedbackItem] = Field(default_factory=list)

    class Config:
        extra = "allow"
        frozen = True

    @validator('items', pre=True)
    def keep_objects(cls, v):
        return _dict_list(v)


class ReportSummary(BaseModel):
    positive: Optional[str] = None
    negative: Optional[str] = None

    class Config:
        extra = "allow"
        frozen = True

    @validator('positive', 'negative', pre=True)
    def coerce_text(cls, v):
        return _optional_text(v)


class SnapshotEntry(BaseModel):
    """A citation backing a claim: source name, summary and link."""
    source: Optional[str] = None
    sentiment_summary: Optional[str] = None
    url: Optional[str] = None

    class Config:
        extra = "allow"
        frozen = True

    @validator('source', 'sentiment_summary', 'url', pre=True)
    def coerce_text(cls, v):
        return _optional_text(v)


class ReportBody(BaseModel):
    """Nested narrative report attached to a sentiment analysis."""
    positive_feedback: Optional[FeedbackSection] = None
    critical_feedback: Optional[FeedbackSection] = None
    summary: Optional[ReportSummary] = None
    positioning: Optional[Any] = None
    sentiment_snapshot: List[SnapshotEntry] = Field(default_factory=list)
    key_takeaways: List[str] = Field(default_factory=list)

    class Config:
        extra = "allow"
        frozen = True

    @validator('positive_feedback', 'critical_feedback', pre=True)
    def section_shape(cls, v):
        if isinstance(v, list):
            return {"items": v}
        return v if isinstance(v, dict) else None

    @validator('summary', pre=True)
    def summary_shape(cls, v):
        return v if isinstance(v, dict) else None

    @validator('sentiment_snapshot', pre=True)
    def snapshot_shape(cls, v):
        return _dict_list(v)

    @validator('key_takeaways', pre=True)
    def takeaways_shape(cls, v):
        return _text_list(v)


class SentimentReport(BaseModel):
    """Validated brand sentiment report."""
    overall_score: int = Field(0, ge=0, le=100, description="Overall sentiment score (0-100)")
    positive_percentage: int = Field(0, ge=0, le=100)
    negative_percentage: int = Field(0, ge=0, le=100)
    neutral_percentage: int = Field(0, ge=0, le=100)
    positive_themes: List[str] = Field(default_factory=list)
    negative_themes: List[str] = Field(default_factory=list)
    report: Optional[ReportBody] = Field(None, description="Narrative report with citations")

    class Config:
        extra = "allow"
        frozen = True

    @validator('overall_score', 'positive_percentage', 'negative_percentage', 'neutral_percentage', pre=True)
    def coerce_percentage(cls, v):
        return to_percentage(v)

    @validator('positive_themes', 'negative_themes', pre=True)
    def coerce_themes(cls, v):
        return _text_list(v)

    @validator('report', pre=True)
    def report_shape(cls, v):
        return v if isinstance(v, dict) else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-ready dict; absent optional fields are omitted."""
        return self.model_dump(exclude_none=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SentimentReport':
        return cls(**data)


class ErrorResponse(BaseModel):
    """Error payload a caller can return when normalization fails."""
    error_type: str = Field(description="Type of error")
    message: str = Field(description="Error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: float = Field(default_factory=time.time, description="Error timestamp")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()
