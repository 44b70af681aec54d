"""
Lexicon loader.

The keyword tiers, context patterns, emotion lexicon, anchor texts and
scoring constants live in a versioned YAML document
(``painscope/config/lexicon.yaml``). It is read once, validated into frozen
pydantic models and shared read-only by every scorer.

If required keys are missing or a pattern does not compile, loading fails
fast with ``LexiconError``.
"""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .exceptions import LexiconError
from .signal_types import ConfidenceLevel, Emotion, FeedbackCategory

DEFAULT_LEXICON_PATH = Path(__file__).parent / "config" / "lexicon.yaml"


def normalize_keyword(keyword: str) -> str:
    """Lower-case, trim and straighten curly apostrophes."""
    return keyword.replace("’", "'").replace("‘", "'").strip().lower()


def _unique_keywords(values: Any) -> Tuple[str, ...]:
    seen: dict[str, None] = {}
    for value in values or ():
        keyword = normalize_keyword(str(value))
        if keyword:
            seen.setdefault(keyword, None)
    return tuple(seen)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

class TierWeights(_Frozen):
    high: float = Field(3.0, gt=0)
    medium: float = Field(2.0, gt=0)
    low: float = Field(1.0, gt=0)
    solution: float = Field(2.0, gt=0)
    wtp: float = Field(4.0, gt=0)


class KeywordTiers(_Frozen):
    high: Tuple[str, ...]
    medium: Tuple[str, ...]
    low: Tuple[str, ...]
    solution: Tuple[str, ...]

    @field_validator("high", "medium", "low", "solution", mode="before")
    @classmethod
    def _clean(cls, value: Any) -> Tuple[str, ...]:
        return _unique_keywords(value)


class WtpKeywords(_Frozen):
    """Willingness-to-pay keywords. Sub-tiers only affect the confidence label."""
    strong: Tuple[str, ...]
    enterprise: Tuple[str, ...] = ()
    financial: Tuple[str, ...] = ()
    purchase: Tuple[str, ...] = ()
    value: Tuple[str, ...] = ()

    @field_validator("strong", "enterprise", "financial", "purchase", "value", mode="before")
    @classmethod
    def _clean(cls, value: Any) -> Tuple[str, ...]:
        return _unique_keywords(value)


class NormalizationConfig(_Frozen):
    max_score: float = Field(10.0, gt=0, le=10.0)
    low_only_cap: float = Field(4.0, ge=0)
    low_only_penalty: float = Field(1.0, ge=0)
    solution_only_cap: float = Field(5.0, ge=0)
    wtp_high_bonus: float = Field(1.0, ge=0)
    pain_and_solution_bonus: float = Field(0.5, ge=0)
    negative_context_multiplier: float = Field(0.6, ge=0, le=1)
    title_only_weight: float = Field(0.7, ge=0, le=1)

    @model_validator(mode="after")
    def _check_caps(self) -> "NormalizationConfig":
        if not self.low_only_cap <= self.solution_only_cap <= self.max_score:
            raise ValueError("caps must satisfy low_only_cap <= solution_only_cap <= max_score")
        return self


class EngagementConfig(_Frozen):
    max_multiplier: float = Field(1.2, ge=1.0)
    log_factor: float = Field(0.05, ge=0)


class RecencyBand(_Frozen):
    max_age_days: float = Field(..., gt=0)
    multiplier: float = Field(..., ge=0)


class RecencyConfig(_Frozen):
    bands: Tuple[RecencyBand, ...]
    older_multiplier: float = Field(0.5, ge=0)
    unknown_multiplier: float = Field(1.0, ge=0)

    @field_validator("bands")
    @classmethod
    def _ascending(cls, bands: Tuple[RecencyBand, ...]) -> Tuple[RecencyBand, ...]:
        ages = [band.max_age_days for band in bands]
        if ages != sorted(ages):
            raise ValueError("recency bands must be ordered by max_age_days")
        return bands


class ConfidenceWeights(_Frozen):
    """Quality weight per signal kind."""
    high: float = Field(3.0, ge=0)
    medium: float = Field(2.0, ge=0)
    low: float = Field(0.5, ge=0)
    wtp: float = Field(4.0, ge=0)


class VolumeThreshold(_Frozen):
    min_signals: int = Field(..., ge=1)
    level: ConfidenceLevel


_DEFAULT_VOLUME_THRESHOLDS = (
    VolumeThreshold(min_signals=200, level=ConfidenceLevel.HIGH),
    VolumeThreshold(min_signals=100, level=ConfidenceLevel.MEDIUM),
    VolumeThreshold(min_signals=50, level=ConfidenceLevel.LOW),
)


class ConfidenceConfig(_Frozen):
    weights: ConfidenceWeights = ConfidenceWeights()
    quality_scale: float = Field(3.0, gt=0)

    # Weak corpus: mostly low-intensity and few high-intensity signals
    low_dominance_ratio: float = Field(0.7, ge=0, le=1)
    low_dominance_max_high: int = Field(5, ge=0)
    low_dominance_multiplier: float = Field(0.6, ge=0)

    # Strong corpus
    high_share_ratio: float = Field(0.3, ge=0, le=1)
    high_absolute_count: int = Field(20, ge=0)
    high_share_multiplier: float = Field(1.2, ge=0)

    high_threshold: float = Field(6.0, gt=0)
    medium_threshold: float = Field(3.0, gt=0)
    low_threshold: float = Field(1.0, gt=0)

    volume_thresholds: Tuple[VolumeThreshold, ...] = _DEFAULT_VOLUME_THRESHOLDS

    @model_validator(mode="after")
    def _check_thresholds(self) -> "ConfidenceConfig":
        if not self.high_threshold >= self.medium_threshold >= self.low_threshold:
            raise ValueError("thresholds must satisfy high_threshold >= medium_threshold >= low_threshold")
        minimums = [threshold.min_signals for threshold in self.volume_thresholds]
        if minimums != sorted(minimums, reverse=True):
            raise ValueError("volume thresholds must be ordered by min_signals, largest first")
        return self


class CategoryAnchor(_Frozen):
    label: str
    description: str = Field(..., min_length=1)


class AnchorTexts(_Frozen):
    praise: str = Field(..., min_length=1)
    complaint: str = Field(..., min_length=1)
    categories: Dict[FeedbackCategory, CategoryAnchor]

    @field_validator("praise", "complaint")
    @classmethod
    def _squash_whitespace(cls, value: str) -> str:
        return " ".join(value.split())


class Lexicon(_Frozen):
    version: int = Field(..., ge=1)
    weights: TierWeights = TierWeights()
    keywords: KeywordTiers
    wtp_keywords: WtpKeywords
    negative_context_patterns: Tuple[str, ...] = ()
    wtp_exclusion_patterns: Tuple[str, ...] = ()
    emotion_keywords: Dict[Emotion, Tuple[str, ...]] = Field(default_factory=dict)
    normalization: NormalizationConfig = NormalizationConfig()
    engagement: EngagementConfig = EngagementConfig()
    recency: RecencyConfig
    confidence: ConfidenceConfig = ConfidenceConfig()
    anchors: AnchorTexts

    @field_validator("negative_context_patterns", "wtp_exclusion_patterns")
    @classmethod
    def _compiles(cls, patterns: Tuple[str, ...]) -> Tuple[str, ...]:
        for pattern in patterns:
            try:
                re.compile(pattern, re.IGNORECASE)
            except re.error as exc:
                raise ValueError(f"invalid pattern {pattern!r}: {exc}") from exc
        return patterns

    @field_validator("emotion_keywords", mode="before")
    @classmethod
    def _clean_emotions(cls, value: Any) -> Dict[str, Tuple[str, ...]]:
        return {emotion: _unique_keywords(words) for emotion, words in (value or {}).items()}

    @field_validator("emotion_keywords")
    @classmethod
    def _no_neutral_keywords(cls, value: Dict[Emotion, Tuple[str, ...]]) -> Dict[Emotion, Tuple[str, ...]]:
        if value.get(Emotion.NEUTRAL):
            raise ValueError("neutral is the fallback emotion and takes no keywords")
        return value


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise LexiconError(f"Lexicon file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise LexiconError(f"Lexicon file {path} is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise LexiconError(f"Expected mapping in {path}, got {type(data).__name__}")
    return data


def load_lexicon(path: Optional[Path | str] = None) -> Lexicon:
    """Read and validate a lexicon document. Uncached; prefer ``get_lexicon``."""
    source = Path(path) if path else DEFAULT_LEXICON_PATH
    data = _read_yaml(source)
    try:
        return Lexicon.model_validate(data)
    except ValidationError as exc:
        raise LexiconError(f"Invalid lexicon {source}:\n{exc}") from exc


@lru_cache(maxsize=4)
def get_lexicon(path: Optional[str] = None) -> Lexicon:
    """Load a lexicon once per path for the lifetime of the process."""
    return load_lexicon(path)
