"""Pain Signal: the per-fragment output of the scoring core."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

from ..signal_types import (
    MAX_SCORE,
    Emotion,
    FeedbackCategory,
    Intensity,
    RelevanceTier,
    SourceReliability,
    SourceType,
    WtpConfidence,
    intensity_for_score,
)

OUTPUT_MODEL_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
)


class SourceMetadata(BaseModel):
    """Fragment metadata carried through scoring unchanged."""

    model_config = OUTPUT_MODEL_CONFIG

    type: SourceType
    id: Optional[str] = None
    community: Optional[str] = None
    url: Optional[str] = None
    author: Optional[str] = None
    created_at: Optional[datetime] = None
    engagement: int = Field(0, ge=0, description="Raw upvotes / likes")
    comment_count: int = Field(0, ge=0)
    engagement_score: float = Field(
        0.0,
        ge=0.0,
        description="Log-scaled blend of upvotes and replies, used for ordering",
    )
    rating: Optional[int] = Field(None, ge=1, le=5)
    title_only: bool = Field(
        False,
        description="Body was missing so only the title was scored",
    )


class PainSignal(BaseModel):
    """Scored fragment.

    Immutable: classification and re-scoring return new instances via
    ``model_copy(update=...)``. ``intensity`` is computed from ``score``
    and cannot be supplied.
    """

    model_config = OUTPUT_MODEL_CONFIG

    text: str
    title: Optional[str] = None
    score: float = Field(
        ...,
        ge=0.0,
        le=MAX_SCORE,
        description="Final pain score, one decimal",
    )
    tags: List[str] = Field(
        default_factory=list,
        description="Matched keywords, deduplicated",
    )
    strongest_signal: Optional[str] = Field(
        None,
        description="First high-intensity match, else first medium match",
    )
    solution_seeking: bool = False
    willingness_to_pay: bool = False
    wtp_confidence: WtpConfidence = WtpConfidence.NONE
    wtp_source_reliability: Optional[SourceReliability] = None
    emotion: Emotion = Emotion.NEUTRAL
    tier: Optional[RelevanceTier] = None
    category: Optional[FeedbackCategory] = None
    category_confidence: Optional[float] = Field(None, ge=0.0, le=1.0)
    source: SourceMetadata

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, tags: List[str]) -> List[str]:
        return list(dict.fromkeys(tags))

    @computed_field
    @property
    def intensity(self) -> Intensity:
        return intensity_for_score(self.score)
