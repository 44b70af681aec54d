"""
Anchor Cache

Lazily embeds a fixed set of anchor texts once and serves the vectors
read-only afterwards.

- First use starts ONE initialization task; concurrent callers await the
  same task, so the anchors cost a single embedding round trip.
- If required anchors cannot be embedded the cache disables itself, logs
  once and returns ``None`` to every later caller without retrying.
- ``reset()`` drops vectors and the disabled flag; the next ``get()``
  recomputes.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from types import MappingProxyType
from typing import Collection, Dict, Mapping, Optional, Tuple

from .embedding_client import EmbeddingClient

logger = logging.getLogger(__name__)

AnchorVectors = Mapping[str, Tuple[float, ...]]


class AnchorCache:
    def __init__(
        self,
        name: str,
        client: EmbeddingClient,
        texts: Mapping[str, str],
        required: Optional[Collection[str]] = None,
    ):
        if not texts:
            raise ValueError(f"anchor set {name!r} has no texts")
        self.name = name
        self._client = client
        self._texts: Dict[str, str] = dict(texts)
        self._required = frozenset(required if required is not None else self._texts)
        self._vectors: Optional[AnchorVectors] = None
        self._disabled = False
        self._pending: Optional[asyncio.Future] = None
        self._generation = 0

    @property
    def ready(self) -> bool:
        return self._vectors is not None

    @property
    def disabled(self) -> bool:
        return self._disabled

    async def get(self) -> Optional[AnchorVectors]:
        """Anchor vectors by key, or ``None`` when this anchor set is disabled."""
        if self._vectors is not None:
            return self._vectors
        if self._disabled:
            return None
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._initialize(self._generation))
        # shield so one cancelled caller does not cancel the shared task
        return await asyncio.shield(self._pending)

    def reset(self):
        """Forget computed vectors. An in-flight initialization is discarded."""
        self._generation += 1
        self._vectors = None
        self._disabled = False
        self._pending = None

    async def _initialize(self, generation: int) -> Optional[AnchorVectors]:
        keys = list(self._texts)
        logger.info("[ANCHORS] Embedding %d %s anchors", len(keys), self.name)
        try:
            results = await self._client.embed_batch([self._texts[key] for key in keys])
        except Exception as exc:
            logger.warning("[ANCHORS] %s anchor embedding raised %s", self.name, exc)
            results = []

        vectors = {
            key: tuple(result.embedding)
            for key, result in zip(keys, results)
            if result.embedding
        }
        vectors = self._drop_odd_dimensions(vectors)

        if generation != self._generation:
            # reset() ran while this task was in flight
            return self._vectors

        self._pending = None
        missing = self._required - set(vectors)
        if missing or not vectors:
            self._disabled = True
            logger.warning(
                "[ANCHORS] Failed to embed %s anchors (%s); semantic classification disabled",
                self.name,
                ", ".join(sorted(missing)) or "all",
            )
            return None

        self._vectors = MappingProxyType(vectors)
        logger.info("[ANCHORS] %s anchors ready (%d)", self.name, len(vectors))
        return self._vectors

    def _drop_odd_dimensions(self, vectors: Dict[str, Tuple[float, ...]]) -> Dict[str, Tuple[float, ...]]:
        """Keep only anchors sharing the most common dimension."""
        if not vectors:
            return vectors
        dimension, _ = Counter(len(vector) for vector in vectors.values()).most_common(1)[0]
        dropped = [key for key, vector in vectors.items() if len(vector) != dimension]
        if dropped:
            logger.warning("[ANCHORS] Dropping %s anchors with odd dimension: %s", self.name, ", ".join(dropped))
        return {key: vector for key, vector in vectors.items() if len(vector) == dimension}
