"""
Score Normalizer & Bonus/Penalty Engine

Turns a weighted raw score into the final bounded 0-10 pain score.

Order matters:
1. clamp to max_score
2. exploratory-only fragments capped at 4.0
3. no high/medium pain but solution-seeking capped at 5.0
4. +1.0 for high-confidence WTP without an exclusion match
5. +0.5 when high-intensity pain and solution-seeking co-occur
6. negative context x0.6 on the assembled score
7. exploratory-only penalty -1.0, floored at 0
8. round half-up to one decimal

Caps run before bonuses so a WTP bonus cannot lift an exploratory
fragment into high pain.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from ..exceptions import ScoreInvariantError
from ..lexicon import NormalizationConfig
from ..signal_types import WtpConfidence
from .lexical_scorer import ScoreBreakdown


def clamp(value: float, lo: float = 0.0, hi: float = 10.0) -> float:
    """Clamp *value* to [lo, hi]."""
    return max(lo, min(hi, value))


def round_half_up(value: float, digits: int = 1) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


@dataclass(frozen=True)
class NormalizedScore:
    score: float
    adjustments: Tuple[str, ...] = ()


def check_score(score: float, max_score: float) -> float:
    """Raise when a score escaped the clamp steps. Never coerces."""
    if math.isnan(score) or not 0.0 <= score <= max_score:
        raise ScoreInvariantError(f"score {score!r} outside [0, {max_score}]")
    return score


def normalize_score(weighted: float, breakdown: ScoreBreakdown, config: NormalizationConfig) -> NormalizedScore:
    top = config.max_score
    adjustments = []

    score = min(weighted, top)

    if breakdown.is_low_only:
        score = min(score, config.low_only_cap)
    if not breakdown.has_pain_keywords and breakdown.solution_seeking_count > 0:
        score = min(score, config.solution_only_cap)

    if breakdown.wtp_confidence == WtpConfidence.HIGH and not breakdown.has_exclusion_match:
        score = min(top, score + config.wtp_high_bonus)
        adjustments.append("wtp_high_bonus")

    if breakdown.high_intensity_count > 0 and breakdown.solution_seeking_count > 0:
        score = min(top, score + config.pain_and_solution_bonus)
        adjustments.append("pain_and_solution_bonus")

    if breakdown.has_negative_context:
        score = max(0.0, score * config.negative_context_multiplier)
        adjustments.append("negative_context_penalty")

    if breakdown.is_low_only:
        score = max(0.0, score - config.low_only_penalty)
        adjustments.append("low_only_penalty")

    score = check_score(round_half_up(score, 1), top)
    return NormalizedScore(score=score, adjustments=tuple(adjustments))


def apply_title_only_weight(score: float, config: NormalizationConfig) -> float:
    """Down-weight a score computed from a title alone."""
    return check_score(clamp(round_half_up(score * config.title_only_weight, 1), 0.0, config.max_score), config.max_score)
