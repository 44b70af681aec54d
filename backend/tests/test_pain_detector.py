"""Pain detector tests: per-fragment scoring, caps, bonuses and ordering."""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import timedelta

import pytest

from painscope.exceptions import ScoreInvariantError
from painscope.schemas import RawFragment
from painscope.services.pain_detector import (
    PainDetector,
    combine_pain_signals,
    wtp_source_reliability,
)
from painscope.services.score_normalizer import check_score, round_half_up
from painscope.signal_types import (
    Emotion,
    Intensity,
    SourceReliability,
    SourceType,
    WtpConfidence,
    intensity_for_score,
)


@pytest.fixture(scope="module")
def detector():
    return PainDetector()


# ---------------------------------------------------------------------------
# Single fragments
# ---------------------------------------------------------------------------

class TestScoreFragment:

    def test_angry_paying_user_scores_maximum(self, detector, now):
        fragment = RawFragment(
            text="I hate how this app crashes every time, I'd honestly pay for a fix",
            engagement_raw=50,
            created_at=now - timedelta(days=10),
        )

        result = detector.calculate_pain_score(
            fragment.text, engagement=50, created_at=fragment.created_at, now=now
        )
        signal = detector.score_fragment(fragment, now)

        assert result.raw_score == pytest.approx(11.0)
        assert result.engagement_multiplier == pytest.approx(1.0849, abs=1e-4)
        assert result.recency_multiplier == 1.5
        assert "wtp_high_bonus" in result.adjustments
        assert signal.score == 10.0
        assert signal.intensity == Intensity.HIGH
        assert signal.willingness_to_pay
        assert signal.wtp_confidence == WtpConfidence.HIGH
        assert signal.emotion == Emotion.FRUSTRATION
        assert signal.strongest_signal == "hate"
        assert {"hate", "i'd honestly pay", "pay for a fix"} <= set(signal.tags)

    def test_company_budget_is_not_purchase_intent(self, detector, now):
        signal = detector.score_fragment(RawFragment(text="my company budget was cut this quarter"), now)
        assert not signal.willingness_to_pay
        assert signal.wtp_confidence == WtpConfidence.NONE
        assert signal.wtp_source_reliability is None
        assert signal.score == 0.0

    def test_hardly_is_not_pain(self, detector, now):
        signal = detector.score_fragment(RawFragment(text="I can hardly wait"), now)
        assert signal.score == 0.0
        assert signal.tags == []
        assert signal.intensity == Intensity.LOW

    @pytest.mark.parametrize("text", ["", "   ", "[removed]"])
    def test_empty_text_scores_zero(self, detector, now, text):
        signal = detector.score_fragment(RawFragment(text=text), now)
        assert signal.score == 0.0
        assert signal.emotion == Emotion.NEUTRAL

    def test_negative_context_reduces_score(self, detector, now):
        first_person = detector.score_fragment(RawFragment(text="I am frustrated with this app"), now)
        someone_else = detector.calculate_pain_score("Anyone else frustrated with this app", now=now)

        assert first_person.score == 3.0
        assert "negative_context_penalty" in someone_else.adjustments
        assert someone_else.score < first_person.score
        assert someone_else.score <= 0.6 * first_person.score + 1e-9

    def test_exploratory_only_is_capped_and_penalized(self, detector, now):
        result = detector.calculate_pain_score("I was wondering, maybe there is something", now=now)
        assert result.breakdown.is_low_only
        assert result.score == 1.0
        assert "low_only_penalty" in result.adjustments

    def test_exploratory_fragment_cannot_reach_high_pain(self, detector, now):
        result = detector.calculate_pain_score(
            "I was wondering, maybe, perhaps, sometimes, shut up and take my money",
            engagement=500,
            created_at=now - timedelta(days=5),
            now=now,
        )
        assert result.weighted_score > 10
        assert result.score == 4.0
        assert result.intensity != Intensity.HIGH

    def test_solution_seeking_without_pain_is_capped(self, detector, now):
        result = detector.calculate_pain_score(
            "Does anyone know a good alternative to this? Looking for recommendations", now=now
        )
        assert result.breakdown.solution_seeking_count == 5
        assert result.raw_score == pytest.approx(10.0)
        assert result.score == 5.0

    def test_pain_and_solution_bonus(self, detector, now):
        result = detector.calculate_pain_score("This is a nightmare, need help", now=now)
        assert result.raw_score == pytest.approx(5.0)
        assert result.score == 5.5
        assert "pain_and_solution_bonus" in result.adjustments

    def test_title_only_fragment_is_down_weighted(self, detector, now):
        signal = detector.score_fragment(RawFragment(text="[removed]", title="I hate this app"), now)
        assert signal.text == "I hate this app"
        assert signal.source.title_only
        assert signal.score == 2.1

    def test_title_and_body_are_scored_together(self, detector, now):
        signal = detector.score_fragment(RawFragment(text="it keeps crashing", title="Terrible sync"), now)
        assert signal.text == "it keeps crashing"
        assert signal.title == "Terrible sync"
        assert signal.tags == ["terrible"]
        assert signal.score == 3.0
        assert not signal.source.title_only

    def test_metadata_carried_through(self, detector, now):
        fragment = RawFragment(
            text="Sync is broken",
            source=SourceType.FORUM_COMMENT,
            engagement_raw=9,
            comment_count=9,
            id="c1",
            community="r/notes",
            url="https://example.com/c1",
            author="someone",
            created_at=now - timedelta(days=1),
        )
        source = detector.score_fragment(fragment, now).source
        assert source.type == SourceType.FORUM_COMMENT
        assert source.id == "c1"
        assert source.community == "r/notes"
        assert source.engagement == 9
        assert source.engagement_score == 5.0
        assert source.created_at == fragment.created_at

    def test_same_input_gives_same_signal(self, detector, now):
        fragment = RawFragment(
            text="Terrible, need help, would pay",
            engagement_raw=42,
            created_at=now - timedelta(days=60),
        )
        assert detector.score_fragment(fragment, now) == detector.score_fragment(fragment, now)


# ---------------------------------------------------------------------------
# Bounds and intensity
# ---------------------------------------------------------------------------

SWEEP_TEXTS = [
    "Anyone else tired of this? I would pay, take my money, worth every penny",
    "Terrible awful horrible broken useless nightmare, need help, any suggestions",
    "maybe perhaps sometimes wondering curious considering",
    "It was frustrated but not anymore, the price is too high for me",
    "I love it but the export is confusing and complicated",
    "How do I export? Looking for alternatives, recommendations welcome",
    "",
]


class TestBounds:

    @pytest.mark.parametrize("text", SWEEP_TEXTS)
    @pytest.mark.parametrize("engagement", [0, 5, 10 ** 6])
    @pytest.mark.parametrize("age_days", [None, 0, 45, 500])
    def test_score_in_range_with_matching_intensity(self, detector, now, text, engagement, age_days):
        created_at = None if age_days is None else now - timedelta(days=age_days)
        signal = detector.score_fragment(
            RawFragment(text=text, engagement_raw=engagement, created_at=created_at), now
        )
        assert 0.0 <= signal.score <= 10.0
        assert signal.score == round_half_up(signal.score, 1)
        assert signal.intensity == intensity_for_score(signal.score)

    @pytest.mark.parametrize(
        "score, expected",
        [(10.0, Intensity.HIGH), (7.0, Intensity.HIGH), (6.9, Intensity.MEDIUM), (4.0, Intensity.MEDIUM), (3.9, Intensity.LOW), (0.0, Intensity.LOW)],
    )
    def test_intensity_thresholds(self, score, expected):
        assert intensity_for_score(score) == expected

    @pytest.mark.parametrize("bad", [-0.1, 10.01, float("nan")])
    def test_out_of_range_score_raises(self, bad):
        with pytest.raises(ScoreInvariantError):
            check_score(bad, 10.0)

    def test_round_half_up(self):
        assert round_half_up(2.25, 1) == 2.3
        assert round_half_up(2.35, 1) == 2.4


# ---------------------------------------------------------------------------
# Batches
# ---------------------------------------------------------------------------

class TestAnalyzeFragments:

    def _fragments(self, now):
        return [
            RawFragment(text="Lovely weather today", id="neutral"),
            RawFragment(text="This is confusing", id="medium", created_at=now - timedelta(days=200)),
            RawFragment(text="Terrible and broken, I would pay for a fix", id="high", engagement_raw=30),
        ]

    def test_sorted_strongest_first(self, detector, now):
        signals = detector.analyze_fragments(self._fragments(now), now=now)
        assert [signal.source.id for signal in signals] == ["high", "medium", "neutral"]
        assert [signal.score for signal in signals] == sorted((s.score for s in signals), reverse=True)

    def test_empty_fragments_kept_by_default(self, detector, now):
        assert len(detector.analyze_fragments(self._fragments(now), now=now)) == 3

    def test_empty_fragments_dropped_on_request(self, detector, now):
        signals = detector.analyze_fragments(self._fragments(now), now=now, include_empty=False)
        assert [signal.source.id for signal in signals] == ["high", "medium"]

    def test_ties_broken_by_engagement(self, detector, now):
        quiet = RawFragment(text="This is broken", id="quiet")
        loud = RawFragment(text="This is broken", id="loud", comment_count=50)
        signals = detector.analyze_fragments([quiet, loud], now=now)
        assert signals[0].score == signals[1].score
        assert signals[0].source.id == "loud"

    def test_combine_merges_and_sorts(self, detector, now):
        posts = detector.analyze_fragments([RawFragment(text="This is confusing")], now=now)
        comments = detector.analyze_fragments(
            [RawFragment(text="Awful, broken", source=SourceType.FORUM_COMMENT)], now=now
        )
        combined = combine_pain_signals(posts, comments)
        assert len(combined) == 2
        assert combined[0].source.type == SourceType.FORUM_COMMENT


# ---------------------------------------------------------------------------
# WTP reliability and emotion
# ---------------------------------------------------------------------------

class TestSignalExtras:

    @pytest.mark.parametrize(
        "source, community, expected",
        [
            (SourceType.APP_REVIEW, None, SourceReliability.HIGH),
            (SourceType.BUSINESS_REVIEW, "yelp", SourceReliability.HIGH),
            (SourceType.FORUM_POST, "HackerNews", SourceReliability.MEDIUM),
            (SourceType.FORUM_COMMENT, "r/saas", SourceReliability.LOW),
            (SourceType.FORUM_POST, None, SourceReliability.LOW),
        ],
    )
    def test_wtp_source_reliability(self, source, community, expected):
        assert wtp_source_reliability(source, community) == expected

    def test_reliability_only_set_with_wtp(self, detector, now):
        paying = detector.score_fragment(
            RawFragment(text="I would pay for this", source=SourceType.APP_REVIEW, rating=4), now
        )
        not_paying = detector.score_fragment(
            RawFragment(text="This is broken", source=SourceType.APP_REVIEW, rating=1), now
        )
        assert paying.wtp_source_reliability == SourceReliability.HIGH
        assert not_paying.wtp_source_reliability is None

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("I'm so worried and anxious about the deadline", Emotion.ANXIETY),
            ("Really disappointed, expected more", Emotion.DISAPPOINTMENT),
            ("frustrated and worried", Emotion.FRUSTRATION),
            ("The export button is blue", Emotion.NEUTRAL),
        ],
    )
    def test_emotion(self, detector, text, expected):
        assert detector.detect_emotion(text) == expected
