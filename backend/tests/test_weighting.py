"""Recency and engagement multiplier tests."""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import timedelta

import pytest

from painscope.lexicon import get_lexicon
from painscope.services.weighting import (
    age_bucket,
    age_in_days,
    engagement_multiplier,
    engagement_score,
    recency_multiplier,
)
from painscope.signal_types import AgeBucket


@pytest.fixture(scope="module")
def lexicon():
    return get_lexicon()


class TestEngagementMultiplier:

    @pytest.mark.parametrize("engagement", [0, 1])
    def test_no_boost_up_to_one(self, lexicon, engagement):
        assert engagement_multiplier(engagement, lexicon.engagement) == 1.0

    @pytest.mark.parametrize("engagement, expected", [(10, 1.05), (100, 1.1), (1000, 1.15)])
    def test_log_scaled(self, lexicon, engagement, expected):
        assert engagement_multiplier(engagement, lexicon.engagement) == pytest.approx(expected)

    def test_capped_for_viral_posts(self, lexicon):
        assert engagement_multiplier(10 ** 6, lexicon.engagement) == pytest.approx(1.2)


class TestRecencyMultiplier:

    @pytest.mark.parametrize(
        "days, expected",
        [
            (0, 1.5),
            (30, 1.5),
            (31, 1.25),
            (90, 1.25),
            (91, 1.0),
            (180, 1.0),
            (181, 0.75),
            (365, 0.75),
            (400, 0.5),
        ],
    )
    def test_band_boundaries(self, lexicon, now, days, expected):
        created_at = now - timedelta(days=days)
        assert recency_multiplier(created_at, lexicon.recency, now) == expected

    def test_unknown_age_is_neutral(self, lexicon, now):
        assert recency_multiplier(None, lexicon.recency, now) == 1.0

    def test_future_timestamp_counts_as_fresh(self, lexicon, now):
        assert age_in_days(now + timedelta(days=2), now) == 0.0
        assert recency_multiplier(now + timedelta(days=2), lexicon.recency, now) == 1.5

    def test_naive_timestamp_read_as_utc(self, now):
        naive = (now - timedelta(days=3)).replace(tzinfo=None)
        assert age_in_days(naive, now) == pytest.approx(3.0)


class TestAgeBucket:

    @pytest.mark.parametrize(
        "days, expected",
        [
            (10, AgeBucket.LAST_30_DAYS),
            (30, AgeBucket.LAST_30_DAYS),
            (45, AgeBucket.LAST_90_DAYS),
            (120, AgeBucket.LAST_180_DAYS),
            (200, AgeBucket.OLDER),
        ],
    )
    def test_buckets(self, now, days, expected):
        assert age_bucket(now - timedelta(days=days), now) == expected

    def test_undated_is_not_bucketed(self, now):
        assert age_bucket(None, now) is None


class TestEngagementScore:

    def test_zero_engagement(self):
        assert engagement_score(0, 0) == 0.0

    def test_comments_weigh_more_than_votes(self):
        assert engagement_score(9, 9) == 5.0
        assert engagement_score(0, 99) > engagement_score(99, 0)
