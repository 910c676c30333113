# SPDX-License-Identifier: AGPL-3.0-only

"""
Tests for overall score reconciliation.
"""

import pytest

from sentiment.scoring import calculate_score, reconcile_score, round_half_up, sentiment_label


class TestCalculateScore:
    """Test calculate_score."""

    def test_positive_plus_half_neutral(self):
        assert calculate_score(58, 27) == 72

    def test_rounds_half_up(self):
        assert round_half_up(70.5) == 71
        assert round_half_up(2.5) == 3
        assert calculate_score(70, 1) == 71

    def test_string_inputs(self):
        assert calculate_score("58", "27%") == 72


class TestReconcileScore:
    """Test reconcile_score."""

    @pytest.mark.parametrize("provided, expected", [
        (72, 72),
        (40, 72),
        (0, 72),
        (65, 65),
        (82, 82),
        (83, 72),
    ])
    def test_threshold(self, provided, expected):
        assert reconcile_score(58, 27, provided) == expected

    def test_custom_threshold(self):
        assert reconcile_score(58, 27, 65, threshold=5) == 72

    def test_missing_values(self):
        assert reconcile_score() == 0
        assert reconcile_score(provided=5) == 5
        assert reconcile_score(provided=50) == 0

    def test_result_in_range(self):
        assert reconcile_score(150, 80, 300) == 100
        assert reconcile_score(-10, -10, -50) == 0

    def test_string_inputs(self):
        assert reconcile_score("58", "27", "72") == 72


class TestSentimentLabel:
    """Test sentiment_label bands."""

    @pytest.mark.parametrize("score, label", [
        (100, "positive"),
        (71, "positive"),
        (70, "neutral"),
        (41, "neutral"),
        (40, "negative"),
        (0, "negative"),
    ])
    def test_bands(self, score, label):
        assert sentiment_label(score) == label
