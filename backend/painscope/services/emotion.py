"""Primary emotion of a fragment, by keyword counts."""

from __future__ import annotations

from typing import Dict, Optional

from ..lexicon import Lexicon, get_lexicon
from ..signal_types import Emotion
from .lexical_scorer import KeywordMatcher, fold_text


class EmotionDetector:
    def __init__(self, lexicon: Optional[Lexicon] = None):
        lexicon = lexicon or get_lexicon()
        # dict order is the tie-break order
        self._matchers: Dict[Emotion, KeywordMatcher] = {
            emotion: KeywordMatcher(keywords)
            for emotion, keywords in lexicon.emotion_keywords.items()
            if emotion != Emotion.NEUTRAL
        }

    def scores(self, text: str) -> Dict[Emotion, int]:
        folded = fold_text(text)
        return {emotion: len(matcher.matches(folded)) for emotion, matcher in self._matchers.items()}

    def detect(self, text: str) -> Emotion:
        """Emotion with the most keyword hits; earlier emotions win ties; neutral on zero."""
        best, best_count = Emotion.NEUTRAL, 0
        for emotion, count in self.scores(text).items():
            if count > best_count:
                best, best_count = emotion, count
        return best
