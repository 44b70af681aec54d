"""Context Filter.

Two pattern families, each evaluated once per fragment:

- negative context: the pain words describe someone else, a hypothetical,
  an issue that is already resolved, or a competitor
- WTP exclusion: money words are budgeting, price complaints, refunds,
  regret or ROI doubt rather than purchase intent

Neither family removes counted pain keywords. Negative context drives the
x0.6 penalty in the normalizer; an exclusion match turns WTP scanning off.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Pattern, Sequence, Tuple

from ..lexicon import Lexicon, get_lexicon


@dataclass(frozen=True)
class ContextFlags:
    has_negative_context: bool = False
    has_exclusion_match: bool = False
    negative_context_match: Optional[str] = None
    exclusion_match: Optional[str] = None


NO_CONTEXT = ContextFlags()


def _compile_all(patterns: Sequence[str]) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(pattern, re.IGNORECASE) for pattern in patterns)


def _first_match(patterns: Sequence[Pattern[str]], text: str) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(0)
    return None


class ContextFilter:
    def __init__(self, lexicon: Optional[Lexicon] = None):
        lexicon = lexicon or get_lexicon()
        self._negative = _compile_all(lexicon.negative_context_patterns)
        self._exclusion = _compile_all(lexicon.wtp_exclusion_patterns)

    def negative_context(self, text: str) -> Optional[str]:
        """Matched span of the first negative-context pattern, if any."""
        return _first_match(self._negative, text)

    def wtp_exclusion(self, text: str) -> Optional[str]:
        """Matched span of the first WTP exclusion pattern, if any."""
        return _first_match(self._exclusion, text)

    def evaluate(self, text: str) -> ContextFlags:
        if not text:
            return NO_CONTEXT
        negative = self.negative_context(text)
        exclusion = self.wtp_exclusion(text)
        return ContextFlags(
            has_negative_context=negative is not None,
            has_exclusion_match=exclusion is not None,
            negative_context_match=negative,
            exclusion_match=exclusion,
        )
