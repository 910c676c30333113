# SPDX-License-Identifier: AGPL-3.0-only

"""
Overall score reconciliation.

The generator is unreliable about its own arithmetic, so the overall score is
recomputed from the distribution and the model's value is trusted only when
the two agree.
"""

import math
from typing import Any

from .models import to_percentage

NEUTRAL_WEIGHT = 0.5
DEFAULT_DIVERGENCE_THRESHOLD = 10


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_score(positive: Any, neutral: Any) -> int:
    """Score implied by the distribution: positive plus half of neutral."""
    return round_half_up(to_percentage(positive) + to_percentage(neutral) * NEUTRAL_WEIGHT)


def reconcile_score(positive: Any = 0, neutral: Any = 0, provided: Any = 0,
                    threshold: int = DEFAULT_DIVERGENCE_THRESHOLD) -> int:
    """
    Pick the overall score to report.

    Args:
        positive: positive_percentage (0 when absent)
        neutral: neutral_percentage (0 when absent)
        provided: overall_score given by the model (0 when absent)
        threshold: Max tolerated divergence in points

    Returns:
        The calculated score when it diverges from the provided one by more
        than ``threshold``; otherwise the provided score if non-zero
    """
    calculated = calculate_score(positive, neutral)
    provided = to_percentage(provided)
    if abs(calculated - provided) > threshold:
        score = calculated
    else:
        score = provided or calculated
    return max(0, min(100, score))


def sentiment_label(score: int) -> str:
    """Dashboard band for an overall score."""
    if score > 70:
        return "positive"
    if score > 40:
        return "neutral"
    return "negative"
