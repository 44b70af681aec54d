"""
Signal Types Module

Closed vocabularies shared by the scorer, the semantic classifier and the
aggregator. Every enum is a ``str`` subclass so values serialize as plain
strings in API responses.
"""

from enum import Enum


# =============================================================================
# Fragment source
# =============================================================================

class SourceType(str, Enum):
    """Where a raw fragment was collected from."""
    FORUM_POST = "forum-post"
    FORUM_COMMENT = "forum-comment"
    APP_REVIEW = "app-review"
    BUSINESS_REVIEW = "business-review"


REVIEW_SOURCE_TYPES = frozenset({
    SourceType.APP_REVIEW,
    SourceType.BUSINESS_REVIEW,
})

# Communities whose purchase talk is more considered than a general forum's
MEDIUM_RELIABILITY_COMMUNITIES = frozenset({
    "hackernews",
    "hacker news",
    "askhn",
    "showhn",
})


# =============================================================================
# Per-signal labels
# =============================================================================

class Intensity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class WtpConfidence(str, Enum):
    """
    Confidence that a fragment expresses purchase intent.

    - high: explicit intent ("would pay", "take my money")
    - medium: enterprise, financial or purchase discussion
    - low: value language only ("save time", "worth it")
    - none: no willingness-to-pay keyword matched
    """
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SourceReliability(str, Enum):
    """How much a WTP statement from this source should be trusted."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Emotion(str, Enum):
    FRUSTRATION = "frustration"
    ANXIETY = "anxiety"
    DISAPPOINTMENT = "disappointment"
    CONFUSION = "confusion"
    HOPE = "hope"
    NEUTRAL = "neutral"


class RelevanceTier(str, Enum):
    """Upstream relevance of a fragment to the analysis subject. Carried, never computed."""
    CORE = "CORE"
    RELATED = "RELATED"


class FeedbackCategory(str, Enum):
    PRICING = "pricing"
    ADS = "ads"
    CONTENT = "content"
    PERFORMANCE = "performance"
    FEATURES = "features"


DEFAULT_FEEDBACK_CATEGORY = FeedbackCategory.FEATURES


# =============================================================================
# Corpus-level labels
# =============================================================================

class ConfidenceLevel(str, Enum):
    VERY_LOW = "very_low"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


CONFIDENCE_ORDER = (
    ConfidenceLevel.VERY_LOW,
    ConfidenceLevel.LOW,
    ConfidenceLevel.MEDIUM,
    ConfidenceLevel.HIGH,
)


class VelocityTrend(str, Enum):
    RISING = "rising"
    STABLE = "stable"
    DECLINING = "declining"
    INSUFFICIENT_DATA = "insufficient_data"


class VelocityConfidence(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AgeBucket(str, Enum):
    """Temporal histogram buckets, newest first."""
    LAST_30_DAYS = "last_30_days"
    LAST_90_DAYS = "last_90_days"
    LAST_180_DAYS = "last_180_days"
    OLDER = "older"


# =============================================================================
# Intensity thresholds
# =============================================================================

MAX_SCORE = 10.0
HIGH_INTENSITY_THRESHOLD = 7.0
MEDIUM_INTENSITY_THRESHOLD = 4.0


def intensity_for_score(score: float) -> Intensity:
    """Bucket a final 0-10 score. The only place intensity is derived."""
    if score >= HIGH_INTENSITY_THRESHOLD:
        return Intensity.HIGH
    if score >= MEDIUM_INTENSITY_THRESHOLD:
        return Intensity.MEDIUM
    return Intensity.LOW
