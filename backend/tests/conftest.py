"""Shared fixtures: a deterministic in-process embedding collaborator."""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import asyncio
from datetime import datetime, timezone

import pytest

from painscope.lexicon import get_lexicon
from painscope.services.embedding_client import EmbeddingResult
from painscope.signal_types import FeedbackCategory

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

# Axes of the fake embedding space
AXES = ["praise", "complaint"] + [category.value for category in FeedbackCategory]


def axis_vector(**weights):
    """Vector in the fake space, e.g. axis_vector(praise=1.0, complaint=0.1)."""
    return [float(weights.get(axis, 0.0)) for axis in AXES]


class FakeEmbeddingClient:
    """Looks texts up in a table; anchor texts map onto their own axis.

    Unknown texts and texts listed in ``fail`` come back as ``None``.
    ``raise_on_fragments`` and ``short_by`` only affect non-anchor batches.
    """

    def __init__(self, vectors=None, fail=(), fail_anchors=False, delay=0.0, raise_on_fragments=False, short_by=0):
        anchors = get_lexicon().anchors
        self.anchor_texts = {anchors.praise, anchors.complaint}
        self.anchor_texts.update(anchor.description for anchor in anchors.categories.values())
        self.vectors = {}
        if not fail_anchors:
            self.vectors[anchors.praise] = axis_vector(praise=1.0)
            self.vectors[anchors.complaint] = axis_vector(complaint=1.0)
            for category, anchor in anchors.categories.items():
                self.vectors[anchor.description] = axis_vector(**{category.value: 1.0})
        self.vectors.update(vectors or {})
        self.fail = set(fail)
        self.delay = delay
        self.raise_on_fragments = raise_on_fragments
        self.short_by = short_by
        self.batches = []

    @property
    def anchor_calls(self):
        return sum(1 for batch in self.batches if set(batch) & self.anchor_texts)

    @property
    def fragment_calls(self):
        return sum(1 for batch in self.batches if not set(batch) & self.anchor_texts)

    async def embed(self, text):
        results = await self.embed_batch([text])
        return results[0].embedding

    async def embed_batch(self, texts):
        self.batches.append(list(texts))
        if self.delay:
            await asyncio.sleep(self.delay)
        is_anchor_batch = bool(set(texts) & self.anchor_texts)
        if self.raise_on_fragments and not is_anchor_batch:
            raise RuntimeError("embedding service exploded")
        results = [
            EmbeddingResult(embedding=None if text in self.fail else self.vectors.get(text))
            for text in texts
        ]
        if self.short_by and not is_anchor_batch:
            results = results[:-self.short_by]
        return results


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def fake_client_factory():
    return FakeEmbeddingClient


@pytest.fixture
def axis():
    return axis_vector
