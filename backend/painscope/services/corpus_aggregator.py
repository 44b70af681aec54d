"""
Corpus Aggregator

Topline statistics over a set of pain signals plus the overall verdict.

Rules:
- NO I/O, NO embeddings
- Order of the input signals never changes the result
- ``Summary.confidence`` is derived by the confidence model, never set here
"""

from __future__ import annotations

import re
from collections import Counter
from datetime import datetime
from typing import List, Optional, Sequence

from ..lexicon import Lexicon, get_lexicon
from ..schemas.signal_schema import PainSignal
from ..schemas.summary_schema import (
    CommunityCount,
    DateRange,
    DiscussionVelocity,
    EmotionsBreakdown,
    KeywordCount,
    PainVerdict,
    Summary,
    TemporalDistribution,
    WtpQuote,
)
from ..signal_types import (
    AgeBucket,
    Intensity,
    VelocityConfidence,
    VelocityTrend,
    WtpConfidence,
)
from .score_normalizer import clamp, round_half_up
from .weighting import age_bucket, age_in_days, recency_multiplier_for_age, utc_now

TOP_N = 5

# Velocity
MIN_VELOCITY_BASE = 5
_TREND_THRESHOLD_PCT = 15
_VELOCITY_HIGH_VOLUME = 50
_VELOCITY_MEDIUM_VOLUME = 20

# Recency score: average multiplier 0.5 -> 0.0, 1.5 -> 1.0
_RECENCY_FLOOR = 0.5
_RECENCY_SPAN = 1.0

_QUOTE_CONFIDENCES = frozenset({WtpConfidence.HIGH, WtpConfidence.MEDIUM})
_PAYMENT_WORDS = re.compile(r"\b(?:pay|paid|paying|buy|purchase|worth|money|invest|cost)", re.IGNORECASE)

# Verdict adjustments
_WTP_RATIO_BONUS = (0.05, 1.0)
_HIGH_RATIO_BONUS = (0.3, 0.5)
_SOLUTION_RATIO_BONUS = (0.2, 0.5)
_LOW_DOMINANCE = (0.6, 0.1, 1.5)
_NO_PAIN_MULTIPLIER = 0.5


# ---------------------------------------------------------------------------
# Pieces
# ---------------------------------------------------------------------------

def temporal_distribution(signals: Sequence[PainSignal], now: datetime) -> TemporalDistribution:
    counts = Counter(age_bucket(signal.source.created_at, now) for signal in signals)
    return TemporalDistribution(
        last_30_days=counts[AgeBucket.LAST_30_DAYS],
        last_90_days=counts[AgeBucket.LAST_90_DAYS],
        last_180_days=counts[AgeBucket.LAST_180_DAYS],
        older=counts[AgeBucket.OLDER],
    )


def discussion_velocity(distribution: TemporalDistribution) -> DiscussionVelocity:
    """
    Compare the last 90 days with the 90 days before.

    recent   = <=30d + 31-90d buckets
    previous = 91-180d bucket
    Fewer than 5 previous signals is too small a base for a percentage.
    """
    recent = distribution.last_30_days + distribution.last_90_days
    previous = distribution.last_180_days

    if previous < MIN_VELOCITY_BASE:
        return DiscussionVelocity(
            recent_count=recent,
            previous_count=previous,
            percentage_change=None,
            trend=VelocityTrend.INSUFFICIENT_DATA,
            confidence=VelocityConfidence.NONE,
            insufficient_data=True,
        )

    change = int(round_half_up((recent - previous) / previous * 100, 0))
    if change > _TREND_THRESHOLD_PCT:
        trend = VelocityTrend.RISING
    elif change < -_TREND_THRESHOLD_PCT:
        trend = VelocityTrend.DECLINING
    else:
        trend = VelocityTrend.STABLE

    volume = recent + previous
    if volume >= _VELOCITY_HIGH_VOLUME:
        confidence = VelocityConfidence.HIGH
    elif volume >= _VELOCITY_MEDIUM_VOLUME:
        confidence = VelocityConfidence.MEDIUM
    else:
        confidence = VelocityConfidence.LOW

    return DiscussionVelocity(
        recent_count=recent,
        previous_count=previous,
        percentage_change=change,
        trend=trend,
        confidence=confidence,
        insufficient_data=False,
    )


def recency_score(signals: Sequence[PainSignal], now: datetime, lexicon: Lexicon) -> float:
    """Average recency multiplier rescaled to 0-1. Undated signals count at the unknown-age multiplier."""
    if not signals:
        return 0.0
    total = sum(
        recency_multiplier_for_age(age_in_days(signal.source.created_at, now), lexicon.recency)
        for signal in signals
    )
    average = total / len(signals)
    return clamp(round_half_up((average - _RECENCY_FLOOR) / _RECENCY_SPAN, 2), 0.0, 1.0)


def date_range(signals: Sequence[PainSignal]) -> Optional[DateRange]:
    stamps = [signal.source.created_at for signal in signals if signal.source.created_at is not None]
    if not stamps:
        return None
    return DateRange(oldest=min(stamps).date(), newest=max(stamps).date())


def top_communities(signals: Sequence[PainSignal], limit: int = TOP_N) -> List[CommunityCount]:
    counts = Counter(signal.source.community for signal in signals if signal.source.community)
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [CommunityCount(name=name, count=count) for name, count in ranked[:limit]]


def strongest_signals(signals: Sequence[PainSignal], limit: int = TOP_N) -> List[KeywordCount]:
    """Most frequent matched keywords across all signals."""
    counts = Counter(tag for signal in signals for tag in signal.tags)
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [KeywordCount(keyword=keyword, count=count) for keyword, count in ranked[:limit]]


def wtp_quotes(signals: Sequence[PainSignal], limit: int = TOP_N) -> List[WtpQuote]:
    """Highest-scoring explicit payment statements with high or medium WTP confidence."""
    candidates = [
        signal for signal in signals
        if signal.willingness_to_pay
        and signal.wtp_confidence in _QUOTE_CONFIDENCES
        and _PAYMENT_WORDS.search(signal.text)
    ]
    candidates.sort(key=lambda signal: (-signal.score, signal.text))
    return [
        WtpQuote(
            text=signal.text,
            community=signal.source.community,
            url=signal.source.url,
            confidence=signal.wtp_confidence,
            source_reliability=signal.wtp_source_reliability,
        )
        for signal in candidates[:limit]
    ]


def emotions_breakdown(signals: Sequence[PainSignal]) -> EmotionsBreakdown:
    counts = Counter(signal.emotion.value for signal in signals)
    return EmotionsBreakdown(**counts)


# ---------------------------------------------------------------------------
# Summary + verdict
# ---------------------------------------------------------------------------

def build_summary(
    signals: Sequence[PainSignal],
    now: Optional[datetime] = None,
    lexicon: Optional[Lexicon] = None,
) -> Summary:
    now = now or utc_now()
    lexicon = lexicon or get_lexicon()
    total = len(signals)
    intensities = Counter(signal.intensity for signal in signals)
    average = round_half_up(sum(signal.score for signal in signals) / total, 1) if total else 0.0
    distribution = temporal_distribution(signals, now)

    return Summary(
        total_signals=total,
        average_score=average,
        high_intensity_count=intensities[Intensity.HIGH],
        medium_intensity_count=intensities[Intensity.MEDIUM],
        low_intensity_count=intensities[Intensity.LOW],
        solution_seeking_count=sum(1 for signal in signals if signal.solution_seeking),
        willingness_to_pay_count=sum(1 for signal in signals if signal.willingness_to_pay),
        top_communities=top_communities(signals),
        strongest_signals=strongest_signals(signals),
        wtp_quotes=wtp_quotes(signals),
        emotions_breakdown=emotions_breakdown(signals),
        temporal_distribution=distribution,
        date_range=date_range(signals),
        recency_score=recency_score(signals, now, lexicon),
        discussion_velocity=discussion_velocity(distribution),
    ).with_confidence_config(lexicon.confidence)


def pain_verdict(summary: Summary) -> PainVerdict:
    """
    Overall pain score for a corpus.

    Starts at the average signal score, then:
    +1.0 when more than 5% of signals show willingness to pay
    +0.5 when more than 30% are high intensity
    +0.5 when more than 20% are solution-seeking
    -1.5 when more than 60% are low intensity and under 10% high
    x0.5 when there is no high or medium signal at all
    """
    assessment = summary.confidence_assessment()
    total = summary.total_signals
    if total == 0:
        return PainVerdict(
            score=0.0,
            confidence=assessment.level,
            quality_score=0.0,
            reasoning="No pain signals found",
        )

    high_ratio = summary.high_intensity_count / total
    low_ratio = summary.low_intensity_count / total
    wtp_ratio = summary.willingness_to_pay_count / total
    solution_ratio = summary.solution_seeking_count / total

    score = summary.average_score
    adjustments = []

    if wtp_ratio > _WTP_RATIO_BONUS[0]:
        score += _WTP_RATIO_BONUS[1]
        adjustments.append(f"+{_WTP_RATIO_BONUS[1]} willingness to pay in {wtp_ratio:.0%} of signals")
    if high_ratio > _HIGH_RATIO_BONUS[0]:
        score += _HIGH_RATIO_BONUS[1]
        adjustments.append(f"+{_HIGH_RATIO_BONUS[1]} high intensity in {high_ratio:.0%} of signals")
    if solution_ratio > _SOLUTION_RATIO_BONUS[0]:
        score += _SOLUTION_RATIO_BONUS[1]
        adjustments.append(f"+{_SOLUTION_RATIO_BONUS[1]} solution-seeking in {solution_ratio:.0%} of signals")
    if low_ratio > _LOW_DOMINANCE[0] and high_ratio < _LOW_DOMINANCE[1]:
        score -= _LOW_DOMINANCE[2]
        adjustments.append(f"-{_LOW_DOMINANCE[2]} mostly low-intensity signals")
    if summary.high_intensity_count == 0 and summary.medium_intensity_count == 0:
        score *= _NO_PAIN_MULTIPLIER
        adjustments.append(f"x{_NO_PAIN_MULTIPLIER} no high or medium intensity signals")

    score = round_half_up(clamp(score, 0.0, 10.0), 1)
    return PainVerdict(
        score=score,
        confidence=assessment.level,
        quality_score=assessment.quality_score,
        reasoning=assessment.reasoning,
        adjustments=adjustments,
    )
