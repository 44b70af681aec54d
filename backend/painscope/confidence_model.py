"""
Confidence Model

Quality-weighted confidence for a corpus of pain signals.

Rules:
- NO I/O, NO embeddings
- Pure math over intensity counts
- A corpus of many weak signals must not out-rank a smaller corpus of
  strong ones, so quality is weighted before volume is applied

Weights, penalty, bonus and bucket thresholds come from the ``confidence``
section of the lexicon. Every function takes an optional ``config``; the
bundled lexicon's section is used when it is omitted.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from .lexicon import ConfidenceConfig, get_lexicon
from .signal_types import ConfidenceLevel


@dataclass(frozen=True)
class ConfidenceAssessment:
    level: ConfidenceLevel
    score: float
    quality_score: float
    quality_ratio: float
    volume_factor: float
    reasoning: str


def _resolve(config: Optional[ConfidenceConfig]) -> ConfidenceConfig:
    return config if config is not None else get_lexicon().confidence


def _bucket(score: float, config: ConfidenceConfig) -> ConfidenceLevel:
    if score >= config.high_threshold:
        return ConfidenceLevel.HIGH
    if score >= config.medium_threshold:
        return ConfidenceLevel.MEDIUM
    if score >= config.low_threshold:
        return ConfidenceLevel.LOW
    return ConfidenceLevel.VERY_LOW


def quality_score(high: int, medium: int, low: int, wtp: int, config: Optional[ConfidenceConfig] = None) -> float:
    weights = _resolve(config).weights
    return high * weights.high + medium * weights.medium + low * weights.low + wtp * weights.wtp


def volume_factor(total: int) -> float:
    """0 for a single signal, 1.0 from 100 signals upwards (log10 / 2)."""
    return min(1.0, math.log10(max(1, total)) / 2)


def assess_confidence(
    total: int,
    high: int,
    medium: int,
    low: int,
    wtp: int,
    config: Optional[ConfidenceConfig] = None,
) -> ConfidenceAssessment:
    """
    Combine signal quality with volume into a confidence bucket.

    With the bundled weights:

    qualityRatio = (high*3 + medium*2 + low*0.5 + wtp*4) / total
    score        = qualityRatio * 3 * min(1, log10(total) / 2)

    x0.6 when low-intensity signals exceed 70% and there are fewer than
    5 high-intensity ones; x1.2 when high-intensity signals exceed 30% or
    number more than 20.
    """
    config = _resolve(config)
    if total <= 0:
        return ConfidenceAssessment(
            level=ConfidenceLevel.VERY_LOW,
            score=0.0,
            quality_score=0.0,
            quality_ratio=0.0,
            volume_factor=0.0,
            reasoning="No signals to assess",
        )

    quality = quality_score(high, medium, low, wtp, config)
    ratio = quality / total
    volume = volume_factor(total)
    score = ratio * config.quality_scale * volume

    notes = [f"{total} signals", f"quality ratio {ratio:.2f}"]

    low_ratio = low / total
    high_ratio = high / total
    if low_ratio > config.low_dominance_ratio and high < config.low_dominance_max_high:
        score *= config.low_dominance_multiplier
        notes.append(f"{low_ratio:.0%} low-intensity")
    if high_ratio > config.high_share_ratio or high > config.high_absolute_count:
        score *= config.high_share_multiplier
        notes.append(f"{high} high-intensity ({high_ratio:.0%})")
    if wtp:
        notes.append(f"{wtp} willingness-to-pay")
    if volume < 1.0:
        notes.append("limited volume")

    level = _bucket(score, config)
    return ConfidenceAssessment(
        level=level,
        score=round(score, 2),
        quality_score=round(quality, 2),
        quality_ratio=round(ratio, 3),
        volume_factor=round(volume, 3),
        reasoning=f"{level.value.replace('_', ' ').capitalize()} confidence: " + ", ".join(notes),
    )


def volume_confidence(total: int, config: Optional[ConfidenceConfig] = None) -> ConfidenceLevel:
    """Volume-only rating (>=200 high, >=100 medium, >=50 low with the bundled thresholds)."""
    for threshold in _resolve(config).volume_thresholds:
        if total >= threshold.min_signals:
            return threshold.level
    return ConfidenceLevel.VERY_LOW
