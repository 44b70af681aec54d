"""Temporal & engagement weighting.

Two independent multipliers applied to the raw lexical score:

- engagement: 1.0 up to one upvote, then 1 + log10(n) * 0.05, capped at 1.2
  so a viral post cannot dominate the corpus
- recency: banded by age in days (<=30 -> 1.5 ... older -> 0.5), 1.0 when
  the fragment has no timestamp
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Optional

from ..lexicon import EngagementConfig, RecencyConfig
from ..signal_types import AgeBucket

SECONDS_PER_DAY = 86400.0

# Histogram edges (days), newest first; anything beyond is OLDER
_AGE_BUCKET_EDGES = (
    (30, AgeBucket.LAST_30_DAYS),
    (90, AgeBucket.LAST_90_DAYS),
    (180, AgeBucket.LAST_180_DAYS),
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def age_in_days(created_at: Optional[datetime], now: Optional[datetime] = None) -> Optional[float]:
    """Fractional age in days; ``None`` when unknown. Future timestamps count as age 0."""
    if created_at is None:
        return None
    now = now or utc_now()
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return max(0.0, (now - created_at).total_seconds() / SECONDS_PER_DAY)


def engagement_multiplier(engagement: int, config: EngagementConfig) -> float:
    if engagement <= 1:
        return 1.0
    return min(config.max_multiplier, 1.0 + math.log10(engagement) * config.log_factor)


def recency_multiplier_for_age(age_days: Optional[float], config: RecencyConfig) -> float:
    if age_days is None:
        return config.unknown_multiplier
    for band in config.bands:
        if age_days <= band.max_age_days:
            return band.multiplier
    return config.older_multiplier


def recency_multiplier(
    created_at: Optional[datetime],
    config: RecencyConfig,
    now: Optional[datetime] = None,
) -> float:
    return recency_multiplier_for_age(age_in_days(created_at, now), config)


def age_bucket(created_at: Optional[datetime], now: Optional[datetime] = None) -> Optional[AgeBucket]:
    """Temporal histogram bucket, or ``None`` for undated fragments."""
    age = age_in_days(created_at, now)
    if age is None:
        return None
    for max_days, bucket in _AGE_BUCKET_EDGES:
        if age <= max_days:
            return bucket
    return AgeBucket.OLDER


def engagement_score(upvotes: int, comments: int) -> float:
    """Log-scaled blend of upvotes and replies. Replies weigh more than votes."""
    score = math.log10(max(1, upvotes + 1)) * 2 + math.log10(max(1, comments + 1)) * 3
    return round(score, 1)
