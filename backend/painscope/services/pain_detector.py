"""
Pain Detector

Deterministic per-fragment scoring:

    RawFragment -> Lexical Scorer + Context Filter -> Weighting -> Normalizer -> PainSignal

Rules:
- NO API calls, NO embeddings (see ``semantic_classifier`` for those)
- Same (text, engagement, createdAt, now) always gives the same signal
- Never drops a fragment unless the caller asks for ``include_empty=False``
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Iterable, List, Optional, Sequence, Tuple

from ..lexicon import Lexicon, get_lexicon
from ..schemas.fragment_schema import RawFragment
from ..schemas.signal_schema import PainSignal, SourceMetadata
from ..signal_types import (
    MEDIUM_RELIABILITY_COMMUNITIES,
    Emotion,
    REVIEW_SOURCE_TYPES,
    Intensity,
    SourceReliability,
    SourceType,
    intensity_for_score,
)
from .context_filter import ContextFilter
from .emotion import EmotionDetector
from .lexical_scorer import LexicalScorer, ScoreBreakdown, fold_text
from .score_normalizer import apply_title_only_weight, normalize_score
from .weighting import engagement_multiplier, engagement_score, recency_multiplier, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreResult:
    """Full trace of one scoring call."""

    breakdown: ScoreBreakdown
    raw_score: float
    engagement_multiplier: float
    recency_multiplier: float
    weighted_score: float
    score: float
    adjustments: Tuple[str, ...] = ()

    @property
    def intensity(self) -> Intensity:
        return intensity_for_score(self.score)

    @property
    def willingness_to_pay(self) -> bool:
        return self.breakdown.willingness_to_pay_count > 0


def wtp_source_reliability(source: SourceType, community: Optional[str] = None) -> SourceReliability:
    """Reviews are deliberate, Hacker News is considered, general forums are chatter."""
    if source in REVIEW_SOURCE_TYPES:
        return SourceReliability.HIGH
    if community and community.strip().lower() in MEDIUM_RELIABILITY_COMMUNITIES:
        return SourceReliability.MEDIUM
    return SourceReliability.LOW


def signal_sort_key(signal: PainSignal) -> Tuple[float, float]:
    return (signal.score, signal.source.engagement_score)


class PainDetector:
    """Lexical pain scorer bound to one lexicon."""

    def __init__(self, lexicon: Optional[Lexicon] = None):
        self.lexicon = lexicon or get_lexicon()
        self.context_filter = ContextFilter(self.lexicon)
        self.scorer = LexicalScorer(self.lexicon)
        self.emotions = EmotionDetector(self.lexicon)

    def calculate_pain_score(
        self,
        text: str,
        engagement: int = 0,
        created_at: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> ScoreResult:
        folded = fold_text(text)
        context = self.context_filter.evaluate(folded)
        breakdown = self.scorer.scan(folded, context)

        raw = breakdown.raw_score(self.lexicon.weights)
        engagement_mult = engagement_multiplier(max(0, engagement), self.lexicon.engagement)
        recency_mult = recency_multiplier(created_at, self.lexicon.recency, now)
        weighted = raw * engagement_mult * recency_mult

        normalized = normalize_score(weighted, breakdown, self.lexicon.normalization)
        return ScoreResult(
            breakdown=breakdown,
            raw_score=raw,
            engagement_multiplier=engagement_mult,
            recency_multiplier=recency_mult,
            weighted_score=weighted,
            score=normalized.score,
            adjustments=normalized.adjustments,
        )

    def detect_emotion(self, text: str) -> Emotion:
        return self.emotions.detect(text)

    def score_fragment(self, fragment: RawFragment, now: Optional[datetime] = None) -> PainSignal:
        text = fragment.scoring_text()
        result = self.calculate_pain_score(
            text,
            engagement=fragment.engagement_raw,
            created_at=fragment.created_at,
            now=now,
        )
        score = result.score
        if fragment.is_title_only:
            score = apply_title_only_weight(score, self.lexicon.normalization)

        breakdown = result.breakdown
        wtp = result.willingness_to_pay
        return PainSignal(
            text=text if fragment.is_title_only else fragment.text,
            title=fragment.title,
            score=score,
            tags=list(breakdown.matched_keywords),
            strongest_signal=breakdown.strongest_signal,
            solution_seeking=breakdown.solution_seeking_count > 0,
            willingness_to_pay=wtp,
            wtp_confidence=breakdown.wtp_confidence,
            wtp_source_reliability=wtp_source_reliability(fragment.source, fragment.community) if wtp else None,
            emotion=self.emotions.detect(text),
            tier=fragment.tier,
            source=SourceMetadata(
                type=fragment.source,
                id=fragment.id,
                community=fragment.community,
                url=fragment.url,
                author=fragment.author,
                created_at=fragment.created_at,
                engagement=fragment.engagement_raw,
                comment_count=fragment.comment_count,
                engagement_score=engagement_score(fragment.engagement_raw, fragment.comment_count),
                rating=fragment.rating,
                title_only=fragment.is_title_only,
            ),
        )

    def analyze_fragments(
        self,
        fragments: Iterable[RawFragment],
        now: Optional[datetime] = None,
        include_empty: bool = True,
    ) -> List[PainSignal]:
        """Score a batch against one reference time, strongest first."""
        now = now or utc_now()
        signals = [self.score_fragment(fragment, now) for fragment in fragments]
        if not include_empty:
            signals = [signal for signal in signals if signal.tags]
        signals.sort(key=signal_sort_key, reverse=True)

        counts = Counter(signal.intensity for signal in signals)
        logger.info(
            "[SCORER] Scored %d fragments (high=%d medium=%d low=%d)",
            len(signals),
            counts[Intensity.HIGH],
            counts[Intensity.MEDIUM],
            counts[Intensity.LOW],
        )
        return signals


def combine_pain_signals(*groups: Sequence[PainSignal]) -> List[PainSignal]:
    """Merge signal lists (e.g. posts and comments), strongest first."""
    combined = [signal for group in groups for signal in group]
    combined.sort(key=signal_sort_key, reverse=True)
    return combined


@lru_cache(maxsize=1)
def default_detector() -> PainDetector:
    """Detector over the bundled lexicon. Immutable, so safe to share."""
    return PainDetector()
