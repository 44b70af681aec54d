"""
Semantic Classifier

Embedding-based second pass over scored signals:

1. Praise filter: drops pure testimonials. A text is praise only when
   praiseSim > 0.45 AND praiseSim > complaintSim + 0.10, and never when
   its rating is 3 stars or lower.
2. Category classifier: tags the remaining signals with the closest of
   pricing / ads / content / performance / features.

Both fail OPEN. A missing embedding, a disabled anchor set or a dimension
mismatch keeps the signal (praise filter) or assigns ``features`` at
confidence 0 (categorizer). Nothing here aborts a batch.

Anchor vectors are cached per instance (see ``AnchorCache``); build one
``SemanticClassifier`` per process and inject it where needed.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..exceptions import DimensionMismatchError
from ..lexicon import AnchorTexts, Lexicon, get_lexicon
from ..schemas.signal_schema import PainSignal
from ..settings import Settings
from ..signal_types import DEFAULT_FEEDBACK_CATEGORY, FeedbackCategory
from .anchor_cache import AnchorCache, AnchorVectors
from .embedding_client import EmbeddingClient, EmbeddingResult, OpenAIEmbeddingClient
from .similarity import cosine_similarity

logger = logging.getLogger(__name__)

PRAISE_KEY = "praise"
COMPLAINT_KEY = "complaint"

DEFAULT_MIN_PRAISE_SIMILARITY = 0.45
DEFAULT_PRAISE_MARGIN = 0.10

# Ratings at or below this are complaints by definition
MAX_NON_PRAISE_RATING = 3


def embedding_text(signal: PainSignal) -> str:
    """Text sent to the embedding model for a signal."""
    if signal.title and not signal.source.title_only:
        return f"{signal.title.strip()} {signal.text.strip()}".strip()
    return signal.text.strip()


async def embed_all(client: EmbeddingClient, texts: Sequence[str], tag: str) -> List[EmbeddingResult]:
    """One result per text, in order. A raising client or a short response leaves every item unembedded."""
    try:
        results = list(await client.embed_batch(list(texts)))
    except Exception as exc:
        logger.warning("[%s] Embedding batch of %d raised %s; items left unclassified", tag, len(texts), exc)
        return [EmbeddingResult() for _ in texts]
    if len(results) != len(texts):
        logger.warning("[%s] Expected %d embeddings, got %d; items left unclassified", tag, len(texts), len(results))
        return [EmbeddingResult() for _ in texts]
    return results


# =============================================================================
# Praise filter
# =============================================================================

@dataclass(frozen=True)
class PraiseDecision:
    is_praise: bool
    confidence: float = 0.0
    praise_similarity: Optional[float] = None
    complaint_similarity: Optional[float] = None
    reason: str = "unclassified"


class PraiseFilter:
    def __init__(
        self,
        client: EmbeddingClient,
        anchors: Optional[AnchorTexts] = None,
        min_similarity: float = DEFAULT_MIN_PRAISE_SIMILARITY,
        margin: float = DEFAULT_PRAISE_MARGIN,
    ):
        anchors = anchors or get_lexicon().anchors
        self.client = client
        self.min_similarity = min_similarity
        self.margin = margin
        self.cache = AnchorCache(
            "praise",
            client,
            {PRAISE_KEY: anchors.praise, COMPLAINT_KEY: anchors.complaint},
        )

    async def anchors(self) -> Optional[AnchorVectors]:
        return await self.cache.get()

    def reset(self):
        self.cache.reset()

    def decide(
        self,
        embedding: Optional[Sequence[float]],
        anchors: Optional[AnchorVectors],
        rating: Optional[int] = None,
    ) -> PraiseDecision:
        """Apply the threshold rule to one embedding. Pure."""
        if rating is not None and rating <= MAX_NON_PRAISE_RATING:
            return PraiseDecision(is_praise=False, reason="low_rating")
        if anchors is None:
            return PraiseDecision(is_praise=False, reason="anchors_unavailable")
        if not embedding:
            return PraiseDecision(is_praise=False, reason="embedding_unavailable")

        try:
            praise_sim = cosine_similarity(embedding, anchors[PRAISE_KEY])
            complaint_sim = cosine_similarity(embedding, anchors[COMPLAINT_KEY])
        except DimensionMismatchError as exc:
            logger.warning("[PRAISE] Skipping item: %s", exc)
            return PraiseDecision(is_praise=False, reason="dimension_mismatch")

        is_praise = praise_sim > self.min_similarity and praise_sim > complaint_sim + self.margin
        return PraiseDecision(
            is_praise=is_praise,
            confidence=round(max(0.0, praise_sim - complaint_sim), 4) if is_praise else 0.0,
            praise_similarity=round(praise_sim, 4),
            complaint_similarity=round(complaint_sim, 4),
            reason="praise" if is_praise else "complaint",
        )

    async def is_praise(self, text: str, rating: Optional[int] = None) -> PraiseDecision:
        decisions = await self.evaluate_many([text], [rating])
        return decisions[0]

    async def evaluate_many(
        self,
        texts: Sequence[str],
        ratings: Optional[Sequence[Optional[int]]] = None,
    ) -> List[PraiseDecision]:
        """Decide many texts with one batched embedding request.

        Items rated 3 stars or lower are decided without being embedded.
        """
        ratings = list(ratings) if ratings is not None else [None] * len(texts)
        if len(ratings) != len(texts):
            raise ValueError("texts and ratings must have the same length")

        candidates = [
            i for i, rating in enumerate(ratings)
            if rating is None or rating > MAX_NON_PRAISE_RATING
        ]
        anchors = await self.anchors() if candidates else None
        embeddings: Dict[int, Optional[List[float]]] = {}
        if anchors is not None:
            results = await embed_all(self.client, [texts[i] for i in candidates], "PRAISE")
            embeddings = {i: result.embedding for i, result in zip(candidates, results)}

        return [self.decide(embeddings.get(i), anchors, rating) for i, rating in enumerate(ratings)]

    async def filter_signals(self, signals: Sequence[PainSignal]) -> Tuple[List[PainSignal], int]:
        """Drop praise signals. Returns (kept, removed_count)."""
        decisions = await self.evaluate_many(
            [embedding_text(signal) for signal in signals],
            [signal.source.rating for signal in signals],
        )
        kept = [signal for signal, decision in zip(signals, decisions) if not decision.is_praise]
        removed = len(signals) - len(kept)
        if removed:
            logger.info("[PRAISE] Filtered %d of %d signals as praise", removed, len(signals))
        return kept, removed


# =============================================================================
# Category classifier
# =============================================================================

@dataclass(frozen=True)
class CategorizationResult:
    category: FeedbackCategory = DEFAULT_FEEDBACK_CATEGORY
    confidence: float = 0.0
    label: str = "Features"


class SignalCategorizer:
    def __init__(self, client: EmbeddingClient, anchors: Optional[AnchorTexts] = None):
        anchors = anchors or get_lexicon().anchors
        self.client = client
        self.labels: Dict[FeedbackCategory, str] = {
            category: anchor.label for category, anchor in anchors.categories.items()
        }
        self.cache = AnchorCache(
            "category",
            client,
            {category.value: anchor.description for category, anchor in anchors.categories.items()},
            # any subset of categories is usable
            required=(),
        )

    async def anchors(self) -> Optional[AnchorVectors]:
        return await self.cache.get()

    def reset(self):
        self.cache.reset()

    def _default(self) -> CategorizationResult:
        return CategorizationResult(
            category=DEFAULT_FEEDBACK_CATEGORY,
            confidence=0.0,
            label=self.labels.get(DEFAULT_FEEDBACK_CATEGORY, "Features"),
        )

    def decide(self, embedding: Optional[Sequence[float]], anchors: Optional[AnchorVectors]) -> CategorizationResult:
        """Closest category by cosine similarity. Pure."""
        if not embedding or not anchors:
            return self._default()

        best_category, best_similarity = DEFAULT_FEEDBACK_CATEGORY, 0.0
        for key, vector in anchors.items():
            try:
                similarity = cosine_similarity(embedding, vector)
            except DimensionMismatchError as exc:
                logger.warning("[CATEGORY] Skipping item: %s", exc)
                return self._default()
            if similarity > best_similarity:
                best_category, best_similarity = FeedbackCategory(key), similarity

        return CategorizationResult(
            category=best_category,
            confidence=round(min(1.0, best_similarity), 4),
            label=self.labels.get(best_category, best_category.value.capitalize()),
        )

    async def categorize(self, text: str) -> CategorizationResult:
        results = await self.categorize_many([text])
        return results[0]

    async def categorize_many(self, texts: Sequence[str]) -> List[CategorizationResult]:
        if not texts:
            return []
        anchors = await self.anchors()
        if anchors is None:
            return [self._default() for _ in texts]
        results = await embed_all(self.client, texts, "CATEGORY")
        return [self.decide(result.embedding, anchors) for result in results]

    async def categorize_signals(self, signals: Sequence[PainSignal]) -> List[PainSignal]:
        results = await self.categorize_many([embedding_text(signal) for signal in signals])
        return [apply_category(signal, result) for signal, result in zip(signals, results)]


def apply_category(signal: PainSignal, result: CategorizationResult) -> PainSignal:
    return signal.model_copy(update={"category": result.category, "category_confidence": result.confidence})


# =============================================================================
# Combined service
# =============================================================================

@dataclass(frozen=True)
class ClassificationOutcome:
    signals: List[PainSignal] = field(default_factory=list)
    praise_removed: int = 0
    embedded: int = 0
    embedding_failures: int = 0


class SemanticClassifier:
    """Praise filter + categorizer sharing one embedding client.

    ``classify`` embeds each signal once and reuses the vector for both
    decisions.
    """

    def __init__(
        self,
        client: EmbeddingClient,
        anchors: Optional[AnchorTexts] = None,
        min_praise_similarity: float = DEFAULT_MIN_PRAISE_SIMILARITY,
        praise_margin: float = DEFAULT_PRAISE_MARGIN,
    ):
        self.client = client
        self.praise_filter = PraiseFilter(client, anchors, min_praise_similarity, praise_margin)
        self.categorizer = SignalCategorizer(client, anchors)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        lexicon: Optional[Lexicon] = None,
        client: Optional[EmbeddingClient] = None,
    ) -> "SemanticClassifier":
        lexicon = lexicon or get_lexicon(settings.lexicon_path)
        return cls(
            client or OpenAIEmbeddingClient.from_settings(settings),
            anchors=lexicon.anchors,
            min_praise_similarity=settings.praise_min_similarity,
            praise_margin=settings.praise_margin,
        )

    async def warm_up(self) -> bool:
        """Initialize both anchor sets now. True when both are usable."""
        praise, categories = await asyncio.gather(self.praise_filter.anchors(), self.categorizer.anchors())
        return praise is not None and categories is not None

    def reset(self):
        self.praise_filter.reset()
        self.categorizer.reset()

    async def classify(self, signals: Sequence[PainSignal]) -> ClassificationOutcome:
        if not signals:
            return ClassificationOutcome()

        praise_anchors, category_anchors = await asyncio.gather(
            self.praise_filter.anchors(),
            self.categorizer.anchors(),
        )
        if praise_anchors is None and category_anchors is None:
            logger.info("[CLASSIFIER] Anchors unavailable; passing %d signals through", len(signals))
            default = self.categorizer.decide(None, None)
            return ClassificationOutcome(signals=[apply_category(signal, default) for signal in signals])

        results = await embed_all(self.client, [embedding_text(signal) for signal in signals], "CLASSIFIER")

        kept: List[PainSignal] = []
        removed = 0
        for signal, result in zip(signals, results):
            decision = self.praise_filter.decide(result.embedding, praise_anchors, signal.source.rating)
            if decision.is_praise:
                removed += 1
                continue
            kept.append(apply_category(signal, self.categorizer.decide(result.embedding, category_anchors)))

        failures = sum(1 for result in results if not result.ok)
        logger.info(
            "[CLASSIFIER] %d signals in, %d praise removed, %d embedding failures",
            len(signals),
            removed,
            failures,
        )
        return ClassificationOutcome(
            signals=kept,
            praise_removed=removed,
            embedded=len(results) - failures,
            embedding_failures=failures,
        )

    async def aclose(self):
        close = getattr(self.client, "aclose", None)
        if close is not None:
            await close()
