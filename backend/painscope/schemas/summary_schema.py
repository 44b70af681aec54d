"""Corpus Summary and Pain Verdict schemas.

``Summary.confidence`` is a computed field: it is recomputed from the
summary's own counts every time it is read or serialized, so no caller can
set it independently.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field, PrivateAttr, computed_field

from ..confidence_model import ConfidenceAssessment, assess_confidence, volume_confidence
from ..lexicon import ConfidenceConfig
from ..signal_types import (
    ConfidenceLevel,
    Emotion,
    SourceReliability,
    VelocityConfidence,
    VelocityTrend,
    WtpConfidence,
)
from .signal_schema import OUTPUT_MODEL_CONFIG as _OUTPUT_CONFIG


class CommunityCount(BaseModel):
    model_config = _OUTPUT_CONFIG

    name: str
    count: int = Field(..., ge=1)


class KeywordCount(BaseModel):
    model_config = _OUTPUT_CONFIG

    keyword: str
    count: int = Field(..., ge=1)


class WtpQuote(BaseModel):
    """Verbatim purchase-intent statement surfaced for review."""

    model_config = _OUTPUT_CONFIG

    text: str
    community: Optional[str] = None
    url: Optional[str] = None
    confidence: WtpConfidence
    source_reliability: Optional[SourceReliability] = None


class EmotionsBreakdown(BaseModel):
    model_config = _OUTPUT_CONFIG

    frustration: int = Field(0, ge=0)
    anxiety: int = Field(0, ge=0)
    disappointment: int = Field(0, ge=0)
    confusion: int = Field(0, ge=0)
    hope: int = Field(0, ge=0)
    neutral: int = Field(0, ge=0)

    def dominant(self) -> Emotion:
        """Most frequent non-neutral emotion, or neutral when none was detected."""
        counts = {emotion: getattr(self, emotion.value) for emotion in Emotion if emotion != Emotion.NEUTRAL}
        best = max(counts, key=counts.get)
        return best if counts[best] > 0 else Emotion.NEUTRAL


class TemporalDistribution(BaseModel):
    """Signal counts per age bucket. Undated signals are not bucketed."""

    model_config = _OUTPUT_CONFIG

    last_30_days: int = Field(0, ge=0)
    last_90_days: int = Field(0, ge=0, description="Older than 30 days, up to 90")
    last_180_days: int = Field(0, ge=0, description="Older than 90 days, up to 180")
    older: int = Field(0, ge=0)

    @property
    def dated_total(self) -> int:
        return self.last_30_days + self.last_90_days + self.last_180_days + self.older


class DateRange(BaseModel):
    model_config = _OUTPUT_CONFIG

    oldest: date
    newest: date


class DiscussionVelocity(BaseModel):
    """Recent (<=90 days) volume compared with the preceding 90 days."""

    model_config = _OUTPUT_CONFIG

    recent_count: int = Field(..., ge=0)
    previous_count: int = Field(..., ge=0)
    percentage_change: Optional[int] = Field(
        None,
        description="Rounded percent change; null when the comparison base is too small",
    )
    trend: VelocityTrend
    confidence: VelocityConfidence
    insufficient_data: bool


class Summary(BaseModel):
    """Topline statistics over a set of pain signals."""

    model_config = _OUTPUT_CONFIG

    total_signals: int = Field(..., ge=0)
    average_score: float = Field(..., ge=0.0, le=10.0)
    high_intensity_count: int = Field(0, ge=0)
    medium_intensity_count: int = Field(0, ge=0)
    low_intensity_count: int = Field(0, ge=0)
    solution_seeking_count: int = Field(0, ge=0)
    willingness_to_pay_count: int = Field(0, ge=0)

    top_communities: List[CommunityCount] = Field(default_factory=list)
    strongest_signals: List[KeywordCount] = Field(default_factory=list)
    wtp_quotes: List[WtpQuote] = Field(default_factory=list)
    emotions_breakdown: EmotionsBreakdown = Field(default_factory=EmotionsBreakdown)

    temporal_distribution: TemporalDistribution = Field(default_factory=TemporalDistribution)
    date_range: Optional[DateRange] = None
    recency_score: float = Field(
        0.0,
        ge=0.0,
        le=1.0,
        description="Average recency multiplier rescaled to 0-1",
    )
    discussion_velocity: DiscussionVelocity

    # Lexicon confidence section this summary was built with; bundled one when unset
    _confidence_config: Optional[ConfidenceConfig] = PrivateAttr(default=None)

    def with_confidence_config(self, config: ConfidenceConfig) -> "Summary":
        self._confidence_config = config
        return self

    def confidence_assessment(self) -> ConfidenceAssessment:
        return assess_confidence(
            total=self.total_signals,
            high=self.high_intensity_count,
            medium=self.medium_intensity_count,
            low=self.low_intensity_count,
            wtp=self.willingness_to_pay_count,
            config=self._confidence_config,
        )

    @computed_field
    @property
    def confidence(self) -> ConfidenceLevel:
        return self.confidence_assessment().level

    @computed_field
    @property
    def data_confidence(self) -> ConfidenceLevel:
        """Volume-only rating, reported alongside the quality-weighted one."""
        return volume_confidence(self.total_signals, self._confidence_config)


class PainVerdict(BaseModel):
    """Overall confidence-scored verdict for a corpus."""

    model_config = _OUTPUT_CONFIG

    score: float = Field(..., ge=0.0, le=10.0)
    confidence: ConfidenceLevel
    quality_score: float = Field(..., ge=0.0)
    reasoning: str
    adjustments: List[str] = Field(
        default_factory=list,
        description="Bonuses and penalties applied to the average score",
    )
