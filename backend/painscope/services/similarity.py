"""Vector similarity for anchor comparison."""

from __future__ import annotations

import math
from typing import Sequence

from ..exceptions import DimensionMismatchError


def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """Cosine similarity of two equal-length vectors.

    Raises ``DimensionMismatchError`` on a length mismatch; callers skip
    the item rather than compare truncated vectors. Zero vectors give 0.0.
    """
    if len(vec1) != len(vec2):
        raise DimensionMismatchError(len(vec1), len(vec2))

    dot_product = sum(a * b for a, b in zip(vec1, vec2))
    magnitude1 = math.sqrt(sum(a * a for a in vec1))
    magnitude2 = math.sqrt(sum(b * b for b in vec2))

    if magnitude1 == 0 or magnitude2 == 0:
        return 0.0

    return dot_product / (magnitude1 * magnitude2)
