from __future__ import annotations


class PainscopeError(Exception):
    """Base typed exception for painscope scoring and classification errors."""


class ScoreInvariantError(PainscopeError):
    """A score left [0, max_score] after the clamp steps. Always a programming error."""


class DimensionMismatchError(PainscopeError, ValueError):
    """Two embedding vectors of different length were compared."""

    def __init__(self, left: int, right: int):
        super().__init__(f"Cannot compare vectors of dimension {left} and {right}")
        self.left = left
        self.right = right


class LexiconError(PainscopeError):
    """The lexicon document is missing or malformed."""
