"""
Lexical Scorer

Tiered keyword matcher. Produces per-tier counts, the matched keywords and
the strongest signal for one fragment.

Matching rule:
- phrases (contain whitespace) match by substring containment
- single words match on word boundaries only, so "hard" never matches
  inside "hardly"

Pure: no I/O, no shared mutable state.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Pattern, Sequence, Tuple

from ..lexicon import Lexicon, TierWeights, get_lexicon, normalize_keyword
from ..signal_types import WtpConfidence
from .context_filter import NO_CONTEXT, ContextFlags


def fold_text(text: str) -> str:
    """Case-fold and straighten quotes so keywords with apostrophes match."""
    return normalize_keyword(text or "")


def is_phrase(keyword: str) -> bool:
    return any(ch.isspace() for ch in keyword)


def match_keyword(folded_text: str, keyword: str) -> bool:
    """One-off match of a single keyword against already-folded text."""
    if is_phrase(keyword):
        return keyword in folded_text
    return re.search(rf"\b{re.escape(keyword)}\b", folded_text) is not None


class KeywordMatcher:
    """Pre-compiled matcher for one keyword list. Preserves list order."""

    def __init__(self, keywords: Sequence[str]):
        self._entries: Tuple[Tuple[str, Optional[Pattern[str]]], ...] = tuple(
            (keyword, None if is_phrase(keyword) else re.compile(rf"\b{re.escape(keyword)}\b"))
            for keyword in keywords
        )

    def matches(self, folded_text: str) -> List[str]:
        found = []
        for keyword, pattern in self._entries:
            if pattern is None:
                if keyword in folded_text:
                    found.append(keyword)
            elif pattern.search(folded_text):
                found.append(keyword)
        return found


@dataclass(frozen=True)
class ScoreBreakdown:
    """Intermediate per-fragment counts. Not persisted."""

    high_intensity_count: int = 0
    medium_intensity_count: int = 0
    low_intensity_count: int = 0
    solution_seeking_count: int = 0
    wtp_strong_count: int = 0
    wtp_medium_count: int = 0
    wtp_low_count: int = 0
    has_negative_context: bool = False
    has_exclusion_match: bool = False
    matched_keywords: Tuple[str, ...] = field(default_factory=tuple)
    strongest_signal: Optional[str] = None

    @property
    def willingness_to_pay_count(self) -> int:
        return self.wtp_strong_count + self.wtp_medium_count + self.wtp_low_count

    @property
    def wtp_confidence(self) -> WtpConfidence:
        if self.wtp_strong_count:
            return WtpConfidence.HIGH
        if self.wtp_medium_count:
            return WtpConfidence.MEDIUM
        if self.wtp_low_count:
            return WtpConfidence.LOW
        return WtpConfidence.NONE

    @property
    def has_pain_keywords(self) -> bool:
        return bool(self.high_intensity_count or self.medium_intensity_count)

    @property
    def is_low_only(self) -> bool:
        """Only exploratory keywords, no high or medium pain."""
        return not self.has_pain_keywords and self.low_intensity_count > 0

    @property
    def is_empty(self) -> bool:
        return not self.matched_keywords

    def raw_score(self, weights: TierWeights) -> float:
        return (
            self.high_intensity_count * weights.high
            + self.medium_intensity_count * weights.medium
            + self.low_intensity_count * weights.low
            + self.solution_seeking_count * weights.solution
            + self.willingness_to_pay_count * weights.wtp
        )


class LexicalScorer:
    def __init__(self, lexicon: Optional[Lexicon] = None):
        lexicon = lexicon or get_lexicon()
        self.weights = lexicon.weights
        self._high = KeywordMatcher(lexicon.keywords.high)
        self._medium = KeywordMatcher(lexicon.keywords.medium)
        self._low = KeywordMatcher(lexicon.keywords.low)
        self._solution = KeywordMatcher(lexicon.keywords.solution)
        wtp = lexicon.wtp_keywords
        self._wtp_strong = KeywordMatcher(wtp.strong)
        # enterprise, financial and purchase talk share the medium label
        self._wtp_medium = KeywordMatcher(wtp.enterprise + wtp.financial + wtp.purchase)
        self._wtp_low = KeywordMatcher(wtp.value)

    def scan(self, text: str, context: ContextFlags = NO_CONTEXT) -> ScoreBreakdown:
        """Scan every tier independently. WTP tiers are skipped on an exclusion match."""
        folded = fold_text(text)
        if not folded:
            return ScoreBreakdown(
                has_negative_context=context.has_negative_context,
                has_exclusion_match=context.has_exclusion_match,
            )

        high = self._high.matches(folded)
        medium = self._medium.matches(folded)
        low = self._low.matches(folded)
        solution = self._solution.matches(folded)
        if context.has_exclusion_match:
            strong, wtp_medium, wtp_low = [], [], []
        else:
            strong = self._wtp_strong.matches(folded)
            wtp_medium = self._wtp_medium.matches(folded)
            wtp_low = self._wtp_low.matches(folded)

        matched = dict.fromkeys(high + medium + low + solution + strong + wtp_medium + wtp_low)
        strongest = high[0] if high else (medium[0] if medium else None)

        return ScoreBreakdown(
            high_intensity_count=len(high),
            medium_intensity_count=len(medium),
            low_intensity_count=len(low),
            solution_seeking_count=len(solution),
            wtp_strong_count=len(strong),
            wtp_medium_count=len(wtp_medium),
            wtp_low_count=len(wtp_low),
            has_negative_context=context.has_negative_context,
            has_exclusion_match=context.has_exclusion_match,
            matched_keywords=tuple(matched),
            strongest_signal=strongest,
        )
