"""Confidence model tests."""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from painscope.confidence_model import assess_confidence, quality_score, volume_confidence, volume_factor
from painscope.lexicon import ConfidenceConfig, ConfidenceWeights, VolumeThreshold
from painscope.signal_types import CONFIDENCE_ORDER, ConfidenceLevel


class TestAssessConfidence:

    def test_no_signals(self):
        assessment = assess_confidence(total=0, high=0, medium=0, low=0, wtp=0)
        assert assessment.level == ConfidenceLevel.VERY_LOW
        assert assessment.reasoning == "No signals to assess"

    def test_single_signal_has_no_volume(self):
        assessment = assess_confidence(total=1, high=1, medium=0, low=0, wtp=1)
        assert assessment.volume_factor == 0.0
        assert assessment.level == ConfidenceLevel.VERY_LOW

    def test_many_strong_signals(self):
        assessment = assess_confidence(total=100, high=100, medium=0, low=0, wtp=0)
        assert assessment.score == pytest.approx(10.8)
        assert assessment.level == ConfidenceLevel.HIGH
        assert assessment.reasoning.startswith("High confidence: 100 signals")

    def test_many_weak_signals_penalized(self):
        assessment = assess_confidence(total=100, high=0, medium=0, low=100, wtp=0)
        assert assessment.score == pytest.approx(0.9)
        assert assessment.level == ConfidenceLevel.VERY_LOW
        assert "100% low-intensity" in assessment.reasoning

    def test_medium_bucket_boundary(self):
        assessment = assess_confidence(total=10, high=0, medium=10, low=0, wtp=0)
        assert assessment.score == pytest.approx(3.0)
        assert assessment.level == ConfidenceLevel.MEDIUM

    def test_fewer_strong_signals_beat_more_weak_ones(self):
        strong = assess_confidence(total=30, high=20, medium=10, low=0, wtp=2)
        weak = assess_confidence(total=300, high=0, medium=10, low=290, wtp=0)
        assert CONFIDENCE_ORDER.index(strong.level) > CONFIDENCE_ORDER.index(weak.level)

    def test_monotonic_in_high_intensity_share(self):
        total = 50
        previous = -1
        for high in range(total + 1):
            medium = (total - high) // 2
            low = total - high - medium
            level = assess_confidence(total=total, high=high, medium=medium, low=low, wtp=0).level
            rank = CONFIDENCE_ORDER.index(level)
            assert rank >= previous, f"confidence dropped at high={high}"
            previous = rank

    def test_monotonic_in_wtp(self):
        ranks = [
            CONFIDENCE_ORDER.index(assess_confidence(total=40, high=5, medium=10, low=25, wtp=wtp).level)
            for wtp in range(0, 41, 5)
        ]
        assert ranks == sorted(ranks)


class TestHelpers:

    def test_quality_weights(self):
        assert quality_score(high=1, medium=1, low=2, wtp=1) == 10.0

    @pytest.mark.parametrize("total, expected", [(1, 0.0), (10, 0.5), (100, 1.0), (10000, 1.0)])
    def test_volume_factor(self, total, expected):
        assert volume_factor(total) == pytest.approx(expected)

    @pytest.mark.parametrize(
        "total, expected",
        [
            (0, ConfidenceLevel.VERY_LOW),
            (49, ConfidenceLevel.VERY_LOW),
            (50, ConfidenceLevel.LOW),
            (100, ConfidenceLevel.MEDIUM),
            (199, ConfidenceLevel.MEDIUM),
            (200, ConfidenceLevel.HIGH),
        ],
    )
    def test_volume_confidence(self, total, expected):
        assert volume_confidence(total) == expected


class TestConfiguredConfidence:

    def test_defaults_match_bundled_lexicon(self):
        default = assess_confidence(total=10, high=0, medium=10, low=0, wtp=0)
        explicit = assess_confidence(total=10, high=0, medium=10, low=0, wtp=0, config=ConfidenceConfig())
        assert default == explicit

    def test_thresholds_move_the_bucket(self):
        strict = ConfidenceConfig(high_threshold=20.0, medium_threshold=10.0, low_threshold=5.0)
        assessment = assess_confidence(total=10, high=0, medium=10, low=0, wtp=0, config=strict)
        assert assessment.score == pytest.approx(3.0)
        assert assessment.level == ConfidenceLevel.VERY_LOW

    def test_weights_change_quality(self):
        config = ConfidenceConfig(weights=ConfidenceWeights(high=1.0, medium=1.0, low=1.0, wtp=0.0))
        assert quality_score(high=1, medium=1, low=2, wtp=1, config=config) == 4.0

    def test_penalty_can_be_disabled(self):
        config = ConfidenceConfig(low_dominance_multiplier=1.0)
        assessment = assess_confidence(total=100, high=0, medium=0, low=100, wtp=0, config=config)
        assert assessment.score == pytest.approx(1.5)
        assert assessment.level == ConfidenceLevel.LOW

    def test_volume_thresholds(self):
        config = ConfidenceConfig(volume_thresholds=(VolumeThreshold(min_signals=10, level=ConfidenceLevel.MEDIUM),))
        assert volume_confidence(10, config) == ConfidenceLevel.MEDIUM
        assert volume_confidence(200, config) == ConfidenceLevel.MEDIUM
        assert volume_confidence(9, config) == ConfidenceLevel.VERY_LOW

    def test_thresholds_must_descend(self):
        with pytest.raises(ValueError, match="thresholds"):
            ConfidenceConfig(medium_threshold=7.0)
